import uuid
from django.db import models


class Tenant(models.Model):
    """
    An isolated business account. Every customer, product and order row
    belongs to exactly one tenant.
    """
    tenant_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.TextField(max_length=255, help_text="Business name")
    api_key_hash = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA-256 hex digest of the tenant API key",
    )
    created_at = models.DateTimeField(auto_now_add=True, help_text="Tenant creation timestamp")

    class Meta:
        db_table = 'tenants'
        verbose_name = 'Tenant'
        verbose_name_plural = 'Tenants'
        indexes = [
            models.Index(fields=['created_at'], name='tenants_created_at_idx'),
            models.Index(fields=['name'], name='tenants_name_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.tenant_id})"
