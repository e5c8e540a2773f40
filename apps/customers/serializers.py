from rest_framework import serializers

from apps.core.dates import parse_flexible_datetime
from apps.customers.models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='customer_id', read_only=True)
    totalSpent = serializers.DecimalField(source='total_spent', max_digits=12, decimal_places=2, read_only=True)
    visitCount = serializers.IntegerField(source='visit_count', read_only=True)
    loyaltyPoints = serializers.IntegerField(source='loyalty_points', read_only=True)
    lastVisit = serializers.DateTimeField(source='last_visit', read_only=True)
    orderCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Customer
        fields = ("id", "name", "email", "phone", "address", "totalSpent", "visitCount",
                  "loyaltyPoints", "lastVisit", "orderCount", "createdAt", "updatedAt")

    def get_orderCount(self, obj) -> int:
        count = getattr(obj, 'order_count', None)
        return count if count is not None else obj.orders.count()


# ---- Input serializers ----
class CustomerWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CustomerImportRowSerializer(CustomerWriteSerializer):
    totalSpent = serializers.DecimalField(
        source='total_spent', max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    visitCount = serializers.IntegerField(source='visit_count', min_value=0, required=False, allow_null=True)
    loyaltyPoints = serializers.IntegerField(source='loyalty_points', min_value=0, required=False, allow_null=True)
    lastVisit = serializers.CharField(source='last_visit', required=False, allow_blank=True, allow_null=True)

    def validate_lastVisit(self, value):
        if value is None or str(value).strip().lower() in ('', 'never'):
            return None
        try:
            return parse_flexible_datetime(value)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc))
