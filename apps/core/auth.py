import hashlib
import secrets
from typing import Optional, Tuple

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission

from apps.tenants.models import Tenant

API_KEY_HEADER = 'X-API-Key'


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()


def generate_api_key() -> str:
    return secrets.token_urlsafe(32)


class TenantPrincipal:
    """
    Stand-in for ``request.user`` on API-key requests. The tenant is the
    only identity the API knows about.
    """
    is_authenticated = True
    is_anonymous = False
    is_active = True
    is_staff = False
    is_superuser = False

    def __init__(self, tenant: Tenant):
        self.tenant = tenant
        self.pk = tenant.tenant_id

    def __str__(self):
        return f"tenant:{self.tenant.name}"


class TenantAPIKeyAuthentication(BaseAuthentication):
    """
    Authenticate a tenant from the X-API-Key header.
    - A missing header leaves the request anonymous (HasTenant turns that into 401)
    - An unknown key fails with 401 "Invalid API key"
    Only the SHA-256 digest of the key is stored, so the lookup is by hash.
    """

    def authenticate(self, request) -> Optional[Tuple[TenantPrincipal, Tenant]]:
        api_key = request.headers.get(API_KEY_HEADER)
        if not api_key:
            return None

        try:
            tenant = Tenant.objects.get(api_key_hash=hash_api_key(api_key.strip()))
        except Tenant.DoesNotExist:
            raise AuthenticationFailed('Invalid API key')

        return TenantPrincipal(tenant), tenant

    def authenticate_header(self, request):
        return API_KEY_HEADER


class HasTenant(BasePermission):
    """Allow only requests that carry an authenticated tenant."""

    def has_permission(self, request, view):
        return isinstance(request.auth, Tenant)
