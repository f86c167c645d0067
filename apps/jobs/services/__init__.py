"""Services for scheduled jobs that span several apps."""

from .summary import build_weekly_summary, weekly_summary
from .followups import DAYS_AFTER_RETREAT, send_followups

__all__ = [
    'build_weekly_summary',
    'weekly_summary',
    'DAYS_AFTER_RETREAT',
    'send_followups',
]
