"""ScoutShop FastAPI application.

Storefront and back office for the sales domain. Commands are processed
synchronously; each request runs inside the sales domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml ("test", "production").
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sales.domain import sales

sales.init()

from sales.api import (  # noqa: E402
    admin_router,
    event_router,
    order_router,
    promo_router,
    register_exception_handlers,
    section_router,
)
from sales.utils import settings  # noqa: E402
from sales.utils.clock import new_id  # noqa: E402
from sales.utils.logging import add_context, clear_context, get_logger  # noqa: E402

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="ScoutShop API",
    description="Online ordering for scouting section sales, meals and raffles",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the sales domain context and bind a request id to every log line."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id") or new_id(), path=request.url.path)
    try:
        with sales.domain_context():
            return await call_next(request)
    finally:
        clear_context()


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(section_router)
app.include_router(event_router)
app.include_router(order_router)
app.include_router(promo_router)
app.include_router(admin_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": sales.name},
        }
    )
