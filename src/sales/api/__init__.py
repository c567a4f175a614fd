"""Sales API package."""

from sales.api.admin import admin_router
from sales.api.errors import register_exception_handlers
from sales.api.routes import event_router, order_router, promo_router, section_router

__all__ = [
    "admin_router",
    "event_router",
    "order_router",
    "promo_router",
    "register_exception_handlers",
    "section_router",
]
