from rest_framework import serializers

from apps.core.dates import parse_flexible_datetime
from apps.orders.models import Order, OrderItem
from apps.products.serializers import ProductSummarySerializer


class OrderCustomerSerializer(serializers.Serializer):
    id = serializers.UUIDField(source='customer_id')
    name = serializers.CharField()
    email = serializers.EmailField()


class OrderItemSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='order_item_id', read_only=True)
    productId = serializers.UUIDField(source='product_id', read_only=True)
    product = ProductSummarySerializer(read_only=True)
    lineTotal = serializers.DecimalField(source='line_total', max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ("id", "productId", "product", "quantity", "price", "lineTotal")


class OrderSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='order_id', read_only=True)
    customerId = serializers.UUIDField(source='customer_id', read_only=True)
    customer = OrderCustomerSerializer(read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True)
    orderDate = serializers.DateTimeField(source='order_date', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Order
        fields = ("id", "customerId", "customer", "status", "paymentMethod", "orderDate",
                  "total", "items", "createdAt", "updatedAt")


# ---- Input serializers ----
class OrderItemInputSerializer(serializers.Serializer):
    # Ids stay strings so unknown or malformed ids surface as 404, not 400
    productId = serializers.CharField(source='product_id')
    quantity = serializers.IntegerField(min_value=1)


class OrderCreateSerializer(serializers.Serializer):
    customerId = serializers.CharField(source='customer_id')
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    paymentMethod = serializers.CharField(source='payment_method', max_length=50, required=False,
                                          allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=Order.ORDER_STATUS_CHOICES, required=False)


class OrderStatusSerializer(serializers.Serializer):
    id = serializers.CharField()
    status = serializers.ChoiceField(choices=Order.ORDER_STATUS_CHOICES)


class OrderImportRowSerializer(serializers.Serializer):
    customerEmail = serializers.EmailField(source='customer_email')
    productName = serializers.CharField(source='product_name', max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    orderDate = serializers.CharField(source='order_date', required=False, allow_blank=True, allow_null=True)
    paymentMethod = serializers.CharField(source='payment_method', max_length=50, required=False,
                                          allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=Order.ORDER_STATUS_CHOICES, required=False)

    def validate_orderDate(self, value):
        try:
            return parse_flexible_datetime(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc))
