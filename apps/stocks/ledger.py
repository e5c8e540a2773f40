"""
Product inventory ledger.

Stock moves only through here: decrements when an order is created and
increments when one is deleted. Every move is written to StockEvent.
"""
import logging
import uuid
from collections import OrderedDict
from typing import Dict, Iterable, Mapping, Optional

from django.utils import timezone

from apps.core.exceptions import InsufficientStock, NotFound
from apps.core.scoping import TenantScope
from apps.products.models import Product
from apps.stocks.models import StockEvent

logger = logging.getLogger(__name__)


def lock_products(scope: TenantScope, product_ids: Iterable) -> Dict[uuid.UUID, Product]:
    """
    Lock the tenant's products with the given ids, in primary key order,
    and return them by id. Any id that is malformed or not owned by the
    tenant raises NotFound.
    """
    wanted = OrderedDict()
    for raw_id in product_ids:
        try:
            wanted[uuid.UUID(str(raw_id))] = raw_id
        except (TypeError, ValueError, AttributeError):
            raise NotFound(f"Product {raw_id} not found")

    products = {
        product.pk: product
        for product in scope.queryset(Product)
        .select_for_update()
        .filter(pk__in=list(wanted))
        .order_by('pk')
    }
    for product_id, raw_id in wanted.items():
        if product_id not in products:
            raise NotFound(f"Product {raw_id} not found")
    return products


def check_availability(products: Mapping[uuid.UUID, Product], quantities: Mapping[uuid.UUID, int]) -> None:
    """Raise InsufficientStock for the first product that cannot cover its quantity."""
    for product_id, quantity in quantities.items():
        product = products[product_id]
        if product.stock < quantity:
            raise InsufficientStock(product.name)


def _record(product: Product, delta: int, source: str, order_id=None) -> StockEvent:
    return StockEvent.objects.create(
        tenant_id=product.tenant_id,
        product=product,
        delta=delta,
        resulting_level=product.stock,
        event_time=timezone.now(),
        source=source,
        order_id=order_id,
    )


def decrement_stock(product: Product, quantity: int, order_id=None) -> StockEvent:
    if product.stock < quantity:
        raise InsufficientStock(product.name)
    product.stock -= quantity
    product.save(update_fields=['stock', 'updated_at'])
    return _record(product, -quantity, StockEvent.SOURCE_ORDER, order_id)


def increment_stock(product: Product, quantity: int, order_id=None) -> StockEvent:
    product.stock += quantity
    product.save(update_fields=['stock', 'updated_at'])
    return _record(product, quantity, StockEvent.SOURCE_ORDER_REVERSAL, order_id)


def decrement_all(products: Mapping[uuid.UUID, Product], quantities: Mapping[uuid.UUID, int],
                  order_id: Optional[uuid.UUID] = None) -> None:
    """Check every line first, then decrement; nothing changes if any line is short."""
    check_availability(products, quantities)
    for product_id, quantity in quantities.items():
        decrement_stock(products[product_id], quantity, order_id)
    logger.debug(f"Decremented stock for {len(quantities)} products (order {order_id})")


def increment_all(products: Mapping[uuid.UUID, Product], quantities: Mapping[uuid.UUID, int],
                  order_id: Optional[uuid.UUID] = None) -> None:
    for product_id, quantity in quantities.items():
        increment_stock(products[product_id], quantity, order_id)
    logger.debug(f"Restored stock for {len(quantities)} products (order {order_id})")
