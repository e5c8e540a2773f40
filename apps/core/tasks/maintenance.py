from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def sweep_rate_limits():
    """
    Remove expired rate limit counters from the cache table.
    """
    from apps.core.rate_limit import sweep_expired_entries

    try:
        removed = sweep_expired_entries()
        logger.info(f"Rate limit sweep removed {removed} expired entries")
        return removed
    except Exception as e:
        logger.error(f"Rate limit sweep failed: {str(e)}")
        raise
