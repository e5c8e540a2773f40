import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response

from apps.core.openapi import ERROR_RESPONSE, id_query_parameter
from apps.core.scoping import TenantScopedAPIView
from apps.orders import services
from apps.orders.models import Order
from apps.orders.serializers import OrderCreateSerializer, OrderSerializer, OrderStatusSerializer

logger = logging.getLogger(__name__)


class OrderAPIView(TenantScopedAPIView):
    """
    Order lifecycle endpoints. Creating an order decrements stock and adds
    to the customer's totals; deleting it reverses both.
    """

    @extend_schema(
        tags=["orders"],
        summary="List orders",
        parameters=[
            OpenApiParameter("customerId", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("status", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             enum=[choice for choice, _ in Order.ORDER_STATUS_CHOICES]),
        ],
        responses={200: OrderSerializer(many=True), 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
    )
    def get(self, request):
        orders = services.list_orders(
            self.scope,
            customer_id=request.query_params.get('customerId'),
            status=request.query_params.get('status'),
        )
        return Response(OrderSerializer(orders, many=True).data)

    @extend_schema(
        tags=["orders"],
        summary="Create order",
        description=(
            "Creates the order and its items in one transaction. Every item is checked "
            "for stock before any stock is decremented; unit prices are frozen at creation."
        ),
        request=OrderCreateSerializer,
        responses={201: OrderSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[OpenApiExample(
            'CreateOrder',
            request_only=True,
            value={
                'customerId': '123e4567-e89b-12d3-a456-426614174000',
                'items': [{'productId': '9b2f7f4e-3c1a-4d59-9a55-0f4b9d7a1e21', 'quantity': 2}],
                'paymentMethod': 'card',
            },
        )],
    )
    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = services.create_order(
            self.scope,
            customer_id=data['customer_id'],
            items=data['items'],
            payment_method=data.get('payment_method'),
            status=data.get('status'),
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["orders"],
        summary="Update order status",
        description="Changes only the status; stock and customer totals are not touched.",
        request=OrderStatusSerializer,
        responses={200: OrderSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
    )
    def put(self, request):
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.update_order_status(
            self.scope, serializer.validated_data['id'], serializer.validated_data['status']
        )
        return Response(OrderSerializer(order).data)

    @extend_schema(
        tags=["orders"],
        summary="Delete order",
        description="Restores stock for every item and reverses the customer's totals.",
        parameters=[id_query_parameter("Order")],
        responses={
            200: OpenApiResponse(response=OpenApiTypes.OBJECT, description='{"success": true}'),
            404: ERROR_RESPONSE,
        },
    )
    def delete(self, request):
        order_id = self.required_query_param('id', "Order ID is required")
        services.delete_order(self.scope, order_id)
        return Response({'success': True})
