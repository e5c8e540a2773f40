"""
Tenant scoping: the single path from a request to tenant-owned rows.

Services receive a ``TenantScope`` instead of a tenant id so that every
query they issue is filtered by the owning tenant.
"""
import uuid

from django.db import models
from rest_framework.views import APIView

from apps.core.exceptions import InvalidInput, NotFound
from apps.tenants.models import Tenant


class TenantScope:
    def __init__(self, tenant: Tenant):
        self.tenant = tenant

    @property
    def tenant_id(self):
        return self.tenant.tenant_id

    def queryset(self, model) -> models.QuerySet:
        return model.objects.filter(tenant=self.tenant)

    def get(self, model, pk, label: str, for_update: bool = False):
        """
        Fetch one row owned by the tenant.

        Absent rows, rows of another tenant and malformed ids all raise the
        same ``NotFound("<label> not found")``.
        """
        try:
            pk = uuid.UUID(str(pk))
        except (TypeError, ValueError, AttributeError):
            raise NotFound(f"{label} not found")

        queryset = self.queryset(model)
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=pk)
        except model.DoesNotExist:
            raise NotFound(f"{label} not found")

    def new(self, model, **fields):
        """Build an unsaved instance owned by the tenant."""
        return model(tenant=self.tenant, **fields)


class TenantScopedAPIView(APIView):
    """
    Base view for tenant resources. Authentication and the HasTenant
    permission come from the REST framework defaults.
    """

    @property
    def scope(self) -> TenantScope:
        if not hasattr(self, '_scope'):
            self._scope = TenantScope(self.request.auth)
        return self._scope

    def required_query_param(self, name: str, message: str) -> str:
        value = self.request.query_params.get(name)
        if not value:
            raise InvalidInput(message)
        return value
