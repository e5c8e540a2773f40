from io import StringIO

from django.core.management import call_command
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.auth import hash_api_key
from apps.tenants.models import Tenant
from apps.tenants.services import create_tenant


class TenantAuthenticationTest(APITestCase):
    """
    Every resource requires a valid X-API-Key.
    """

    def setUp(self):
        self.tenant, self.api_key = create_tenant("Corner Cafe")

    def test_missing_key_is_rejected(self):
        for url in ("/api/v1/customers", "/api/v1/products", "/api/v1/orders", "/api/v1/reports/sales"):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED, url)
            self.assertEqual(response.data, {"error": "Authentication credentials were not provided."})

    def test_unknown_key_is_rejected(self):
        self.client.credentials(HTTP_X_API_KEY="not-a-real-key")
        response = self.client.get("/api/v1/customers")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {"error": "Invalid API key"})

    def test_mutations_require_key(self):
        response = self.client.post("/api/v1/customers", {"name": "Ana", "email": "ana@example.com"})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.delete("/api/v1/orders?id=123")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_valid_key_is_accepted(self):
        self.client.credentials(HTTP_X_API_KEY=self.api_key)
        response = self.client.get("/api/v1/customers")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])

    def test_only_key_hash_is_stored(self):
        self.assertNotEqual(self.tenant.api_key_hash, self.api_key)
        self.assertEqual(self.tenant.api_key_hash, hash_api_key(self.api_key))


class CreateTenantCommandTest(APITestCase):
    def _api_key_from(self, output: str) -> str:
        line = [line for line in output.splitlines() if line.startswith("API key")][0]
        return line.split(":", 1)[1].strip()

    def test_command_creates_tenant_with_working_key(self):
        out = StringIO()
        call_command("create_tenant", "Harbour Espresso", stdout=out)

        tenant = Tenant.objects.get(name="Harbour Espresso")
        api_key = self._api_key_from(out.getvalue())
        self.assertEqual(tenant.api_key_hash, hash_api_key(api_key))

        self.client.credentials(HTTP_X_API_KEY=api_key)
        self.assertEqual(self.client.get("/api/v1/products").status_code, status.HTTP_200_OK)

    def test_rotate_replaces_key(self):
        tenant, old_key = create_tenant("Harbour Espresso")
        out = StringIO()
        call_command("create_tenant", "Harbour Espresso", "--rotate", stdout=out)

        new_key = self._api_key_from(out.getvalue())
        tenant.refresh_from_db()
        self.assertNotEqual(new_key, old_key)
        self.assertEqual(tenant.api_key_hash, hash_api_key(new_key))

        self.client.credentials(HTTP_X_API_KEY=old_key)
        self.assertEqual(self.client.get("/api/v1/products").status_code, status.HTTP_401_UNAUTHORIZED)
