import logging
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import settings

logger = logging.getLogger(__name__)


def get_app_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.APP_TIMEZONE)
    except ZoneInfoNotFoundError:
        logger.warning("Invalid APP_TIMEZONE '%s'; falling back to UTC", settings.APP_TIMEZONE)
        return ZoneInfo("UTC")


def now_in_app_tz() -> datetime:
    return datetime.now(get_app_timezone())


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime) -> date:
    """Calendar date of a timestamp in the application timezone."""
    return ensure_utc(value).astimezone(get_app_timezone()).date()


def today_in_app_tz() -> date:
    return now_in_app_tz().date()
