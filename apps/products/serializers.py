from decimal import Decimal

from rest_framework import serializers

from apps.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='product_id', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Product
        fields = ("id", "name", "description", "category", "price", "cost", "stock",
                  "isActive", "createdAt", "updatedAt")


class ProductSummarySerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(source='product_id', read_only=True)

    class Meta:
        model = Product
        fields = ("id", "name", "category", "price")


# ---- Input serializers ----
class ProductWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    category = serializers.CharField(max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock = serializers.IntegerField(min_value=0, required=False, default=0)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')
    isActive = serializers.BooleanField(source='is_active', required=False, default=True)

    def validate(self, attrs):
        price = attrs.get('price')
        cost = attrs.get('cost')
        if (price is not None and price <= Decimal('0')) or (cost is not None and cost < Decimal('0')):
            raise serializers.ValidationError("Invalid price or cost")
        return attrs


class ProductUpdateSerializer(ProductWriteSerializer):
    """Catalogue edit: every field optional, stock not accepted."""
    stock = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)
