from datetime import datetime, time
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime


def parse_flexible_datetime(value) -> Optional[datetime]:
    """
    Parse an ISO datetime, a bare date or a ``YYYY-MM-DD HH:MM:SS`` string
    into an aware datetime. Returns None for empty values and raises
    ValueError for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        value = str(value).strip()
        if not value:
            return None
        parsed = parse_datetime(value.replace('Z', '+00:00'))
        if parsed is None:
            day = parse_date(value)
            if day is not None:
                parsed = datetime.combine(day, time.min)
            else:
                try:
                    parsed = datetime.strptime(value, '%m/%d/%Y')
                except ValueError:
                    raise ValueError(f"Invalid date: {value}")

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_current_timezone())
    return parsed
