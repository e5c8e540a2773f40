from typing import Tuple

from apps.core.auth import generate_api_key, hash_api_key
from apps.tenants.models import Tenant


def create_tenant(name: str) -> Tuple[Tenant, str]:
    """Create a tenant and return it together with its plain API key."""
    api_key = generate_api_key()
    tenant = Tenant.objects.create(name=name, api_key_hash=hash_api_key(api_key))
    return tenant, api_key


def rotate_api_key(tenant: Tenant) -> str:
    api_key = generate_api_key()
    tenant.api_key_hash = hash_api_key(api_key)
    tenant.save(update_fields=['api_key_hash'])
    return api_key
