import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Customer(models.Model):
    """
    Customer of a tenant's shop.
    total_spent, visit_count and loyalty_points are running aggregates over
    the customer's orders, maintained by apps.customers.ledger.
    """
    customer_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.CASCADE,
        db_column='tenant_id',
        related_name='customers'
    )
    name = models.TextField(max_length=255, help_text="Customer name")
    email = models.EmailField(max_length=255, help_text="Customer email address, unique per tenant")
    phone = models.CharField(max_length=50, blank=True, default='', help_text="Phone number")
    address = models.TextField(blank=True, default='', help_text="Postal address")
    total_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Sum of order totals"
    )
    visit_count = models.PositiveIntegerField(default=0, help_text="Number of orders placed")
    loyalty_points = models.PositiveIntegerField(default=0, help_text="Whole currency units spent")
    last_visit = models.DateTimeField(null=True, blank=True, help_text="Time of the latest order")
    created_at = models.DateTimeField(auto_now_add=True, help_text="Customer creation timestamp")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        verbose_name = 'Customer'
        verbose_name_plural = 'Customers'
        indexes = [
            models.Index(fields=['tenant', 'name'], name='customers_tenant_name_idx'),
            models.Index(fields=['tenant', 'total_spent'], name='customers_tenant_spent_idx'),
            models.Index(fields=['created_at'], name='customers_created_at_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'email'],
                name='unique_tenant_customer_email'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.email})"
