from datetime import UTC, datetime
from uuid import uuid4
from zoneinfo import ZoneInfo

from sales.utils import settings


def utcnow() -> datetime:
    return datetime.now(UTC)


def local_now() -> datetime:
    """Current time in the organization's timezone (sale periods are local dates)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def new_id() -> str:
    return str(uuid4())
