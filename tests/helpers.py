from decimal import Decimal

from rest_framework.test import APITestCase

from apps.core.scoping import TenantScope
from apps.customers import services as customer_services
from apps.products import services as product_services
from apps.tenants.services import create_tenant


class TenantAPITestCase(APITestCase):
    """
    APITestCase with one authenticated tenant and a second, foreign tenant.
    setUp only touches the ORM so per-test settings overrides still reach
    the middleware on the first request.
    """

    def setUp(self):
        self.tenant, self.api_key = create_tenant("Blue Bottle Corner")
        self.other_tenant, self.other_api_key = create_tenant("Rival Roasters")
        self.scope = TenantScope(self.tenant)
        self.other_scope = TenantScope(self.other_tenant)
        self.client.credentials(HTTP_X_API_KEY=self.api_key)

    def as_other_tenant(self):
        self.client.credentials(HTTP_X_API_KEY=self.other_api_key)

    def make_customer(self, name="Ana Lima", email="ana@example.com", scope=None, **extra):
        return customer_services.create_customer(scope or self.scope, name=name, email=email, **extra)

    def make_product(self, name="Flat White", price="4.50", stock=10, cost="1.20",
                     category="coffee", scope=None, **extra):
        return product_services.create_product(
            scope or self.scope,
            name=name,
            category=category,
            price=Decimal(price),
            cost=Decimal(cost),
            stock=stock,
            **extra,
        )
