"""TokoStream FastAPI application.

Multi-domain web server that processes commands synchronously via HTTP.
Each request is wrapped in the correct domain context based on URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notifications.domain import notifications
from ordering.domain import ordering
from shared.http import register_error_handlers
from shared.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
ordering.init()
notifications.init()

from wiring import wire_services  # noqa: E402

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/order-statuses": ordering,
    "/customers": ordering,
    "/subscription": ordering,
    "/notifications": notifications,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.background_dispatcher.shutdown(wait_for_tasks=True)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="TokoStream API",
    description="Multi-tenant retail orders: Ordering & Notifications domains",
    lifespan=lifespan,
)
wire_services(app)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    domain = _resolve_domain(request.url.path)
    if domain is None:
        # No domain match: health check, docs, etc.
        return await call_next(request)

    clear_context()
    add_context(
        path=request.url.path,
        tenant_id=request.headers.get("x-tenant-id"),
        request_id=request.headers.get("x-request-id") or uuid4().hex,
    )
    with domain.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from notifications.api import router as notifications_router  # noqa: E402
from ordering.api import customer_router, order_router, status_router, subscription_router  # noqa: E402

app.include_router(order_router)
app.include_router(status_router)
app.include_router(customer_router)
app.include_router(subscription_router)
app.include_router(notifications_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "pending_notifications": app.state.background_dispatcher.pending,
            "domains": {
                "ordering": {"name": ordering.name},
                "notifications": {"name": notifications.name},
            },
        }
    )
