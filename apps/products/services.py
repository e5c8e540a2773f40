"""
Product catalogue operations, always scoped to one tenant.

Stock is only set when a product is created; afterwards it moves through
the order lifecycle (apps.stocks.ledger).
"""
import logging
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import QuerySet

from apps.core.exceptions import HasDependentOrders, InvalidInput
from apps.core.scoping import TenantScope
from apps.orders.models import OrderItem
from apps.orders.services import delete_all_orders
from apps.products.models import Product

logger = logging.getLogger(__name__)

CATALOGUE_FIELDS = ('name', 'description', 'category', 'price', 'cost', 'is_active')


def _check_pricing(price: Optional[Decimal], cost: Optional[Decimal]) -> None:
    if (price is not None and price <= 0) or (cost is not None and cost < 0):
        raise InvalidInput("Invalid price or cost")


def list_products(scope: TenantScope, category: Optional[str] = None,
                  active: Optional[bool] = None) -> QuerySet:
    queryset = scope.queryset(Product)
    if category:
        queryset = queryset.filter(category=category)
    if active is not None:
        queryset = queryset.filter(is_active=active)
    return queryset.order_by('category', 'name')


def find_by_name(scope: TenantScope, name: str) -> Optional[Product]:
    return scope.queryset(Product).filter(name=(name or '').strip()).order_by('created_at').first()


def create_product(scope: TenantScope, name: str, category: str, price: Decimal, cost: Decimal,
                   stock: int = 0, description: str = '', is_active: bool = True) -> Product:
    name = (name or '').strip()
    category = (category or '').strip()
    if not name or not category or price is None or cost is None:
        raise InvalidInput("Name, category, price, and cost are required")
    _check_pricing(price, cost)
    if stock is None or stock < 0:
        raise InvalidInput("Stock cannot be negative")

    product = scope.new(
        Product,
        name=name,
        category=category,
        price=price,
        cost=cost,
        stock=stock,
        description=description or '',
        is_active=is_active,
    )
    product.save()
    logger.info(f"Created product {product.product_id} '{name}' for tenant {scope.tenant_id}")
    return product


def update_product(scope: TenantScope, product_id, **changes) -> Product:
    """Update catalogue fields; a stock value in ``changes`` is ignored."""
    fields = {key: value for key, value in changes.items() if key in CATALOGUE_FIELDS}
    for key in ('name', 'category'):
        if key in fields:
            fields[key] = (fields[key] or '').strip()
            if not fields[key]:
                raise InvalidInput("Name, category, price, and cost are required")
    _check_pricing(fields.get('price'), fields.get('cost'))

    with transaction.atomic():
        product = scope.get(Product, product_id, 'Product', for_update=True)
        for key, value in fields.items():
            setattr(product, key, value if value is not None else '')
        product.save(update_fields=list(fields) + ['updated_at'])
    return product


def delete_product(scope: TenantScope, product_id) -> None:
    """Products referenced by any order item cannot be deleted."""
    with transaction.atomic():
        product = scope.get(Product, product_id, 'Product', for_update=True)
        if OrderItem.objects.filter(product=product).exists():
            raise HasDependentOrders()
        product.delete()
    logger.info(f"Deleted product {product_id} for tenant {scope.tenant_id}")


def clear_products(scope: TenantScope) -> int:
    """
    Delete every order of the tenant (restoring stock as usual), then
    every product. Returns the number of products removed.
    """
    with transaction.atomic():
        orders_removed = delete_all_orders(scope)
        products = scope.queryset(Product)
        count = products.count()
        products.delete()
    logger.info(
        f"Cleared {count} products and {orders_removed} orders for tenant {scope.tenant_id}"
    )
    return count
