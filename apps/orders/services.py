"""
Order lifecycle: creation, status changes and deletion.

Creation and deletion each run in one transaction that also moves stock
and the customer's aggregates, so the ledgers always match the set of
existing orders. Lock order is customer, then products (by primary key).
"""
import logging
import uuid
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.core.exceptions import InvalidInput, InvalidStatusTransition, NotFound
from apps.core.scoping import TenantScope
from apps.customers import ledger as customer_ledger
from apps.customers.models import Customer
from apps.orders.models import Order, OrderItem
from apps.stocks import ledger as stock_ledger

logger = logging.getLogger(__name__)

ORDER_STATUSES = [choice for choice, _ in Order.ORDER_STATUS_CHOICES]


def _validate_status(status: str) -> str:
    if status not in ORDER_STATUSES:
        raise InvalidInput(f"Invalid status: {status}. Use one of: {', '.join(ORDER_STATUSES)}")
    return status


def _normalize_id(raw) -> str:
    try:
        return str(uuid.UUID(str(raw)))
    except (TypeError, ValueError, AttributeError):
        return str(raw)


def _summed_quantities(items: Iterable[Mapping]) -> "OrderedDict[str, int]":
    """Total quantity per product id, keeping first-seen order."""
    quantities = OrderedDict()
    for item in items:
        product_id = _normalize_id(item.get('product_id'))
        try:
            quantity = int(item['quantity'])
        except (KeyError, TypeError, ValueError):
            raise InvalidInput("Quantity must be a whole number")
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1")
        quantities[product_id] = quantities.get(product_id, 0) + quantity
    return quantities


def order_queryset(scope: TenantScope) -> QuerySet:
    return (
        scope.queryset(Order)
        .select_related('customer')
        .prefetch_related('items__product')
    )


def list_orders(scope: TenantScope, customer_id: Optional[str] = None, status: Optional[str] = None) -> QuerySet:
    queryset = order_queryset(scope)
    if customer_id:
        try:
            queryset = queryset.filter(customer_id=uuid.UUID(str(customer_id)))
        except ValueError:
            raise InvalidInput(f"Invalid customerId: {customer_id}")
    if status:
        queryset = queryset.filter(status=_validate_status(status))
    return queryset.order_by('-order_date', '-created_at')


def get_order(scope: TenantScope, order_id) -> Order:
    order = scope.get(Order, order_id, 'Order')
    return order_queryset(scope).get(pk=order.pk)


def create_order(scope: TenantScope, customer_id, items: List[Mapping],
                 payment_method: Optional[str] = None, status: Optional[str] = None,
                 order_date: Optional[datetime] = None) -> Order:
    """
    Create an order with its items.

    The customer and every product are resolved in the tenant's scope and
    locked, stock is checked for all lines before any line is decremented,
    and the total is priced from each product's current price. The
    customer's last visit becomes the order date.
    """
    if not customer_id or not items:
        raise InvalidInput("Customer and items are required")
    status = _validate_status(status or Order.STATUS_PENDING)
    payment_method = payment_method or settings.ORDERS_DEFAULT_PAYMENT_METHOD
    order_date = order_date or timezone.now()

    requested = _summed_quantities(items)
    lines = [(_normalize_id(item.get('product_id')), int(item['quantity'])) for item in items]

    with transaction.atomic():
        customer = scope.get(Customer, customer_id, 'Customer', for_update=True)
        products = stock_ledger.lock_products(scope, requested.keys())
        quantities = OrderedDict(
            (uuid.UUID(product_id), quantity) for product_id, quantity in requested.items()
        )
        stock_ledger.check_availability(products, quantities)

        total = Decimal('0.00')
        order_items = []
        for product_id, quantity in lines:
            product = products[uuid.UUID(product_id)]
            total += product.price * quantity
            order_items.append(OrderItem(product=product, quantity=quantity, price=product.price))

        order = scope.new(
            Order,
            customer=customer,
            status=status,
            payment_method=payment_method,
            order_date=order_date,
            total=total,
        )
        order.save()
        for order_item in order_items:
            order_item.order = order
        OrderItem.objects.bulk_create(order_items)

        stock_ledger.decrement_all(products, quantities, order_id=order.order_id)
        customer_ledger.apply_order_created(customer, total, visited_at=order_date)

    logger.info(
        f"Created order {order.order_id} for customer {customer.customer_id} "
        f"(tenant {scope.tenant_id}, total {total}, {len(order_items)} items)"
    )
    return get_order(scope, order.order_id)


def update_order_status(scope: TenantScope, order_id, status: str) -> Order:
    """
    Change only the status; stock and customer aggregates are untouched.
    Transitions are checked against Order.STATUS_TRANSITIONS unless
    ORDERS_ENFORCE_STATUS_TRANSITIONS is off.
    """
    status = _validate_status(status)
    enforce = getattr(settings, 'ORDERS_ENFORCE_STATUS_TRANSITIONS', True)

    with transaction.atomic():
        order = scope.get(Order, order_id, 'Order', for_update=True)
        previous = order.status
        if enforce and not order.can_transition_to(status):
            raise InvalidStatusTransition(previous, status)
        if status != previous:
            order.status = status
            order.save(update_fields=['status', 'updated_at'])

    if status != previous:
        logger.info(f"Order {order.order_id} status {previous} -> {status} (tenant {scope.tenant_id})")
    return get_order(scope, order.order_id)


def delete_order(scope: TenantScope, order_id) -> None:
    """Exact inverse of create_order: restore stock, reverse aggregates, remove the order."""
    with transaction.atomic():
        order = scope.get(Order, order_id, 'Order', for_update=True)
        customer = scope.queryset(Customer).select_for_update().get(pk=order.customer_id)

        quantities = OrderedDict()
        for item in order.items.all():
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
        products = stock_ledger.lock_products(scope, quantities.keys())

        stock_ledger.increment_all(products, quantities, order_id=order.order_id)
        customer_ledger.apply_order_deleted(customer, order.total)
        order.delete()

    logger.info(f"Deleted order {order_id} (tenant {scope.tenant_id}, total {order.total})")


def delete_all_orders(scope: TenantScope) -> int:
    """Delete every order of the tenant through delete_order. Returns the count."""
    order_ids = list(scope.queryset(Order).order_by('order_date').values_list('pk', flat=True))
    with transaction.atomic():
        for order_id in order_ids:
            delete_order(scope, order_id)
    return len(order_ids)

