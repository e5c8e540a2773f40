import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Product(models.Model):
    """
    Catalogue item of a tenant.
    ``stock`` is stock on hand and is only changed by order creation and
    deletion (see apps.stocks.ledger).
    """
    product_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        db_column='tenant_id',
        related_name='products'
    )
    name = models.TextField(max_length=255, help_text="Product name")
    description = models.TextField(blank=True, default='', help_text="Product description")
    category = models.CharField(max_length=100, help_text="Menu category, e.g. coffee or pastry")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Current selling price"
    )
    cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Unit cost"
    )
    stock = models.PositiveIntegerField(default=0, help_text="Units on hand")
    is_active = models.BooleanField(default=True, help_text="Whether product is active")
    created_at = models.DateTimeField(auto_now_add=True, help_text="Product creation timestamp")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        indexes = [
            models.Index(fields=['tenant', 'name'], name='products_tenant_name_idx'),
            models.Index(fields=['tenant', 'category'], name='products_tenant_category_idx'),
            models.Index(fields=['tenant', 'is_active'], name='products_tenant_active_idx'),
            models.Index(fields=['created_at'], name='products_created_at_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.category})"
