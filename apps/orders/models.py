import uuid
from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class Order(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    ORDER_STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    # Allowed status changes; any status may be re-set to itself.
    STATUS_TRANSITIONS = {
        STATUS_PENDING: {STATUS_COMPLETED, STATUS_CANCELLED},
        STATUS_COMPLETED: {STATUS_CANCELLED},
        STATUS_CANCELLED: set(),
    }

    order_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        db_column='tenant_id',
        related_name='orders'
    )
    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.PROTECT,
        db_column='customer_id',
        related_name='orders'
    )
    status = models.CharField(max_length=20, choices=ORDER_STATUS_CHOICES, default=STATUS_PENDING)
    payment_method = models.CharField(max_length=50, default='cash')
    order_date = models.DateTimeField()
    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Sum of item price x quantity, frozen at creation"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        indexes = [
            models.Index(fields=['tenant', 'order_date', 'status'], name='orders_tenant_date_status_idx'),
            models.Index(fields=['tenant', 'customer'], name='orders_tenant_customer_idx'),
        ]

    def __str__(self):
        return f"Order {self.order_id} ({self.status})"

    def can_transition_to(self, status: str) -> bool:
        return status == self.status or status in self.STATUS_TRANSITIONS[self.status]


class OrderItem(models.Model):
    order_item_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        db_column='order_id',
        related_name='items'
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        db_column='product_id',
        related_name='order_items'
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Unit price snapshot at order time"
    )

    class Meta:
        db_table = 'order_items'
        indexes = [
            models.Index(fields=['product'], name='order_items_product_idx'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_id} @ {self.price}"

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
