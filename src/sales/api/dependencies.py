"""Request dependencies shared by the routers."""

import secrets

from fastapi import Header, HTTPException

from sales.utils import settings
from sales.utils.logging import get_logger

logger = get_logger(__name__)


def require_admin(x_admin_key: str | None = Header(None, description="Back-office shared secret")) -> None:
    """Reject the request with 401 unless ``x-admin-key`` matches the configured key."""
    expected = settings.ADMIN_KEY
    if not expected or not x_admin_key or not secrets.compare_digest(x_admin_key, expected):
        logger.warning("Admin request rejected", has_key=bool(x_admin_key))
        raise HTTPException(status_code=401, detail="Unauthorized")
