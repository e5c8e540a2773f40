from apps.core.tasks.maintenance import sweep_rate_limits

__all__ = ['sweep_rate_limits']
