# app/time_helpers.py
# Helper functions for timestamps and site-local calendar days

from datetime import datetime, time, timedelta
from pytz import timezone
import pytz

DEFAULT_SITE_TIMEZONE = 'Europe/Paris'


def utcnow():
    """Naive UTC now, matching how every DateTime column is stored."""
    return datetime.utcnow()


def get_site_timezone(tz_name=None):
    """Site timezone from config (SITE_TIMEZONE), falling back to the default."""
    if tz_name is None:
        from flask import current_app
        tz_name = current_app.config.get('SITE_TIMEZONE', DEFAULT_SITE_TIMEZONE)
    return timezone(tz_name)


def get_day_start_utc(tz_name=None, now=None):
    """
    Get the UTC datetime of the start of the current site-local day (midnight local time).

    Used for "today" counters such as contact messages received today.

    Returns:
        datetime: naive UTC datetime of local midnight
    """
    site_tz = get_site_timezone(tz_name)

    if now is None:
        local_now = datetime.now(site_tz)
    else:
        local_now = pytz.UTC.localize(now).astimezone(site_tz)

    local_midnight = site_tz.localize(datetime.combine(local_now.date(), time(0, 0, 0)))

    return local_midnight.astimezone(pytz.UTC).replace(tzinfo=None)


def ban_expiry_from_days(days, now=None):
    """Expiry datetime for a ban lasting `days`; None means permanent."""
    if not days:
        return None
    return (now or utcnow()) + timedelta(days=int(days))
