import uuid
from django.db import models


class StockEvent(models.Model):
    """
    Audit trail of stock changes made by the order lifecycle.
    Product.stock stays the source of truth; these rows only record how it moved.
    """
    SOURCE_ORDER = 'order'
    SOURCE_ORDER_REVERSAL = 'order_reversal'
    SOURCE_CHOICES = [
        (SOURCE_ORDER, 'Order Fulfillment'),
        (SOURCE_ORDER_REVERSAL, 'Order Deletion'),
    ]

    stock_event_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        db_column='tenant_id',
        related_name='stock_events'
    )
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.CASCADE,
        db_column='product_id',
        related_name='stock_events'
    )
    delta = models.IntegerField(help_text="Stock level change (positive for increase, negative for decrease)")
    resulting_level = models.PositiveIntegerField(help_text="Stock level after this event")
    event_time = models.DateTimeField(help_text="When the stock event occurred")
    source = models.CharField(max_length=50, choices=SOURCE_CHOICES, help_text="Source of the stock event")
    order_id = models.UUIDField(null=True, blank=True, help_text="Order that caused the change")

    class Meta:
        db_table = 'stock_events'
        verbose_name = 'Stock Event'
        verbose_name_plural = 'Stock Events'
        indexes = [
            models.Index(fields=['product', 'event_time'], name='stock_events_product_time_idx'),
            models.Index(fields=['tenant', 'event_time'], name='stock_events_tenant_time_idx'),
            models.Index(fields=['order_id'], name='stock_events_order_idx'),
        ]

    def __str__(self):
        return f"Stock Event: {self.product_id} ({self.delta:+d}) at {self.event_time}"
