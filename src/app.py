"""Tradutema delivery FastAPI application.

Serves the public upload link at the site root and processes every request
synchronously inside the delivery domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (memory store by default,
# PostgreSQL under "production").
from delivery.domain import delivery  # noqa: E402
from delivery.utils.logging import add_context, clear_context  # noqa: E402
from fastapi import FastAPI, Request

delivery.init()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Tradutema Delivery",
    description="Secure delivery of translated documents through single-use links",
    docs_url=None,
    redoc_url=None,
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the delivery domain context for each request."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    with delivery.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from delivery.api import delivery_router  # noqa: E402
from delivery.api.schemas import HealthResponse  # noqa: E402

app.include_router(delivery_router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", domain=delivery.name)
