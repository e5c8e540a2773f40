import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response

from apps.core.exceptions import InvalidInput
from apps.core.openapi import ERROR_RESPONSE, id_query_parameter
from apps.core.scoping import TenantScopedAPIView
from apps.customers import services
from apps.customers.serializers import CustomerSerializer, CustomerWriteSerializer

logger = logging.getLogger(__name__)


class CustomerAPIView(TenantScopedAPIView):
    """
    Customer CRUD for the authenticated tenant.
    Aggregates (totalSpent, visitCount, loyaltyPoints, lastVisit) are read-only here.
    """

    @extend_schema(
        tags=["customers"],
        summary="List customers",
        parameters=[
            OpenApiParameter("sort", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False,
                             enum=list(services.SORT_FIELDS), description="Sort by name (default) or totalSpent"),
        ],
        responses={200: CustomerSerializer(many=True), 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
    )
    def get(self, request):
        customers = services.list_customers(self.scope, sort=request.query_params.get('sort', 'name'))
        return Response(CustomerSerializer(customers, many=True).data)

    @extend_schema(
        tags=["customers"],
        summary="Create customer",
        request=CustomerWriteSerializer,
        responses={201: CustomerSerializer, 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
    )
    def post(self, request):
        serializer = CustomerWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = services.create_customer(self.scope, **serializer.validated_data)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["customers"],
        summary="Update customer",
        description="Updates identity fields (name, email, phone, address) of the customer with the given id.",
        request=CustomerWriteSerializer,
        responses={200: CustomerSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
    )
    def put(self, request):
        customer_id = request.data.get('id') if hasattr(request.data, 'get') else None
        if not customer_id:
            raise InvalidInput("Customer ID is required")
        serializer = CustomerWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        customer = services.update_customer(self.scope, customer_id, **serializer.validated_data)
        return Response(CustomerSerializer(customer).data)

    @extend_schema(
        tags=["customers"],
        summary="Delete customer",
        description="Only customers without orders can be deleted.",
        parameters=[id_query_parameter("Customer")],
        responses={
            200: OpenApiResponse(response=OpenApiTypes.OBJECT, description='{"success": true}'),
            400: ERROR_RESPONSE,
            404: ERROR_RESPONSE,
        },
    )
    def delete(self, request):
        customer_id = self.required_query_param('id', "Customer ID is required")
        services.delete_customer(self.scope, customer_id)
        return Response({'success': True})


class CustomerClearAPIView(TenantScopedAPIView):
    @extend_schema(
        tags=["customers"],
        summary="Delete all customers",
        description="Deletes every order of the tenant (restoring stock), then every customer.",
        request=None,
        responses={200: OpenApiResponse(response=OpenApiTypes.OBJECT, description="Clear summary")},
    )
    def delete(self, request):
        count = services.clear_customers(self.scope)
        return Response({
            'success': True,
            'message': f"Deleted {count} customers",
            'count': count,
        })
