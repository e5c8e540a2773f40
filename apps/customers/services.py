"""
Customer operations, always scoped to one tenant.
"""
import logging
from decimal import Decimal
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import Count, QuerySet

from apps.core.exceptions import DuplicateEmail, HasOrders, InvalidInput
from apps.core.scoping import TenantScope
from apps.customers.ledger import loyalty_points_for
from apps.customers.models import Customer
from apps.orders.services import delete_all_orders

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ('name', 'email', 'phone', 'address')
SORT_FIELDS = {
    'name': ('name', 'created_at'),
    'totalSpent': ('-total_spent', 'name'),
}


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def list_customers(scope: TenantScope, sort: str = 'name') -> QuerySet:
    if sort not in SORT_FIELDS:
        raise InvalidInput(f"Invalid sort: {sort}. Use one of: {', '.join(SORT_FIELDS)}")
    return (
        scope.queryset(Customer)
        .annotate(order_count=Count('orders'))
        .order_by(*SORT_FIELDS[sort])
    )


def _ensure_email_available(scope: TenantScope, email: str, exclude_pk=None) -> None:
    queryset = scope.queryset(Customer).filter(email=email)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        raise DuplicateEmail()


def create_customer(scope: TenantScope, name: str, email: str, phone: str = '', address: str = '',
                    total_spent: Optional[Decimal] = None, visit_count: int = 0,
                    loyalty_points: Optional[int] = None, last_visit=None) -> Customer:
    """
    Create a customer. Interactive creation starts every aggregate at zero;
    imports may carry historical totals, with loyalty points defaulting to
    the whole units of total_spent.
    """
    email = normalize_email(email)
    name = (name or '').strip()
    if not name or not email:
        raise InvalidInput("Name and email are required")

    total_spent = total_spent if total_spent is not None else Decimal('0.00')
    if loyalty_points is None:
        loyalty_points = loyalty_points_for(total_spent)

    _ensure_email_available(scope, email)
    try:
        with transaction.atomic():
            customer = scope.new(
                Customer,
                name=name,
                email=email,
                phone=phone or '',
                address=address or '',
                total_spent=total_spent,
                visit_count=visit_count or 0,
                loyalty_points=loyalty_points,
                last_visit=last_visit,
            )
            customer.save()
    except IntegrityError:
        # Lost a race against a concurrent insert of the same email
        raise DuplicateEmail()

    logger.info(f"Created customer {customer.customer_id} for tenant {scope.tenant_id}")
    return customer


def update_customer(scope: TenantScope, customer_id, **changes) -> Customer:
    """Update identity fields only; aggregates are owned by the ledger."""
    fields = {key: value for key, value in changes.items() if key in IDENTITY_FIELDS}
    if 'email' in fields:
        fields['email'] = normalize_email(fields['email'])
        if not fields['email']:
            raise InvalidInput("Name and email are required")
    if 'name' in fields:
        fields['name'] = (fields['name'] or '').strip()
        if not fields['name']:
            raise InvalidInput("Name and email are required")

    try:
        with transaction.atomic():
            customer = scope.get(Customer, customer_id, 'Customer', for_update=True)
            if 'email' in fields:
                _ensure_email_available(scope, fields['email'], exclude_pk=customer.pk)
            for key, value in fields.items():
                setattr(customer, key, value if value is not None else '')
            customer.save(update_fields=list(fields) + ['updated_at'])
    except IntegrityError:
        raise DuplicateEmail()
    return customer


def delete_customer(scope: TenantScope, customer_id) -> None:
    """Only customers without any orders can be deleted."""
    with transaction.atomic():
        customer = scope.get(Customer, customer_id, 'Customer', for_update=True)
        if customer.orders.exists():
            raise HasOrders()
        customer.delete()
    logger.info(f"Deleted customer {customer_id} for tenant {scope.tenant_id}")


def clear_customers(scope: TenantScope) -> int:
    """
    Delete every order of the tenant through the normal order deletion
    path (so stock is restored), then every customer. Returns the number
    of customers removed.
    """
    with transaction.atomic():
        orders_removed = delete_all_orders(scope)
        customers = scope.queryset(Customer)
        count = customers.count()
        customers.delete()
    logger.info(
        f"Cleared {count} customers and {orders_removed} orders for tenant {scope.tenant_id}"
    )
    return count
