"""
Customer aggregate ledger.

Running totals over a customer's orders. Callers hold a row lock on the
customer (select_for_update) inside the order transaction.
"""
from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from django.utils import timezone

from apps.customers.models import Customer

AGGREGATE_FIELDS = ['total_spent', 'visit_count', 'loyalty_points', 'last_visit', 'updated_at']


def loyalty_points_for(amount) -> int:
    """One point per whole currency unit, rounded down: 4.99 earns 4."""
    amount = Decimal(amount)
    if amount <= 0:
        return 0
    return int(amount.to_integral_value(rounding=ROUND_FLOOR))


def apply_order_created(customer: Customer, total: Decimal, visited_at: Optional[datetime] = None) -> Customer:
    customer.total_spent += total
    customer.visit_count += 1
    customer.loyalty_points += loyalty_points_for(total)
    customer.last_visit = visited_at or timezone.now()
    customer.save(update_fields=AGGREGATE_FIELDS)
    return customer


def apply_order_deleted(customer: Customer, total: Decimal) -> Customer:
    """
    Inverse of apply_order_created, clamped at zero. last_visit is left
    as it is since no visit history is kept.
    """
    customer.total_spent = max(Decimal('0.00'), customer.total_spent - total)
    customer.visit_count = max(0, customer.visit_count - 1)
    customer.loyalty_points = max(0, customer.loyalty_points - loyalty_points_for(total))
    customer.save(update_fields=AGGREGATE_FIELDS)
    return customer
