"""
Sales report over a rolling window, compared with the window before it.
Cancelled orders never count towards any figure.
"""
from collections import OrderedDict, defaultdict
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from django.db.models import Count, DecimalField, ExpressionWrapper, F, QuerySet, Sum
from django.utils import timezone

from apps.core.scoping import TenantScope
from apps.orders.models import Order, OrderItem

MAX_DAYS = 365
TOP_PRODUCTS = 5
CENTS = Decimal('0.01')


def _money(value) -> Decimal:
    return (value or Decimal('0')).quantize(CENTS, rounding=ROUND_HALF_UP)


def growth_percent(current, previous) -> float:
    """Percentage change; a rise from zero counts as 100%."""
    current = Decimal(current or 0)
    previous = Decimal(previous or 0)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    change = (current - previous) / previous * 100
    return float(change.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def _counted_orders(scope: TenantScope, start: datetime, end: datetime) -> QuerySet:
    return (
        scope.queryset(Order)
        .exclude(status=Order.STATUS_CANCELLED)
        .filter(order_date__gte=start, order_date__lt=end)
    )


def _period_summary(orders: QuerySet, start: datetime, end: datetime) -> Dict:
    totals = orders.aggregate(revenue=Sum('total'), orders=Count('pk'))
    revenue = _money(totals['revenue'])
    count = totals['orders'] or 0
    return {
        'start': start,
        'end': end,
        'revenue': revenue,
        'orders': count,
        'averageOrderValue': _money(revenue / count) if count else Decimal('0.00'),
    }


def _payment_methods(orders: QuerySet) -> List[Dict]:
    rows = (
        orders.values('payment_method')
        .annotate(revenue=Sum('total'), orders=Count('pk'))
        .order_by('-revenue', 'payment_method')
    )
    return [
        {'paymentMethod': row['payment_method'], 'revenue': _money(row['revenue']), 'orders': row['orders']}
        for row in rows
    ]


def _top_products(orders: QuerySet, limit: int) -> List[Dict]:
    line_total = ExpressionWrapper(F('price') * F('quantity'), output_field=DecimalField(max_digits=14, decimal_places=2))
    rows = (
        OrderItem.objects.filter(order__in=orders)
        .values('product_id', 'product__name')
        .annotate(units=Sum('quantity'), revenue=Sum(line_total))
        .order_by('-units', 'product__name')[:limit]
    )
    return [
        {
            'productId': row['product_id'],
            'name': row['product__name'],
            'quantity': row['units'],
            'revenue': _money(row['revenue']),
        }
        for row in rows
    ]


def _daily_revenue(orders: QuerySet, start: datetime, days: int) -> List[Dict]:
    first_day = timezone.localtime(start).date()
    buckets = OrderedDict(
        ((first_day + timedelta(days=offset)).isoformat(), {'revenue': Decimal('0'), 'orders': 0})
        for offset in range(days + 1)
    )
    extra = defaultdict(lambda: {'revenue': Decimal('0'), 'orders': 0})
    for row in orders.values('order_date', 'total').iterator(chunk_size=5000):
        key = timezone.localtime(row['order_date']).date().isoformat()
        bucket = buckets[key] if key in buckets else extra[key]
        bucket['revenue'] += row['total']
        bucket['orders'] += 1
    buckets.update(extra)
    return [
        {'date': key, 'revenue': _money(bucket['revenue']), 'orders': bucket['orders']}
        for key, bucket in buckets.items()
    ]


def sales_report(scope: TenantScope, days: int = 30, now: Optional[datetime] = None,
                 top: int = TOP_PRODUCTS) -> Dict:
    now = now or timezone.now()
    current_start = now - timedelta(days=days)
    previous_start = current_start - timedelta(days=days)

    current_orders = _counted_orders(scope, current_start, now)
    previous_orders = _counted_orders(scope, previous_start, current_start)

    current = _period_summary(current_orders, current_start, now)
    previous = _period_summary(previous_orders, previous_start, current_start)

    return {
        'periodDays': days,
        'currentPeriod': current,
        'previousPeriod': previous,
        'growth': {
            'revenue': growth_percent(current['revenue'], previous['revenue']),
            'orders': growth_percent(current['orders'], previous['orders']),
        },
        'paymentMethods': _payment_methods(current_orders),
        'topProducts': _top_products(current_orders, top),
        'dailyRevenue': _daily_revenue(current_orders, current_start, days),
    }
