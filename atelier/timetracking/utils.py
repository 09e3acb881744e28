from datetime import datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone


def format_duration(minutes):
    """45 -> '45m', 60 -> '1h', 90 -> '1h 30m'"""
    if minutes < 60:
        return f"{minutes}m"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}m"


def minutes_between(start, end):
    """Whole minutes between two datetimes, rounded half up"""
    seconds = Decimal(str((end - start).total_seconds()))
    return max(0, int((seconds / 60).quantize(Decimal('1'), rounding=ROUND_HALF_UP)))


def current_session_minutes(start_time, now=None):
    return minutes_between(start_time, now or timezone.now())


def period_start(period, now=None):
    """
    Start of a stats period: today from local midnight, week as the last
    seven days, month from the first of the month. 'all' has no start.
    """
    now = now or timezone.now()
    local_now = timezone.localtime(now)
    today = timezone.make_aware(datetime.combine(local_now.date(), time.min))
    if period == 'today':
        return today
    if period == 'week':
        return now - timedelta(days=7)
    if period == 'month':
        return today.replace(day=1)
    return None
