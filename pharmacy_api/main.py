"""
Pharmacy inventory API.

ARCHITECTURE:
- FastAPI routes: thin, translate HTTP to service calls
- Services: one unit of work per operation, role checks, audit logging
- stock_service.apply_delta: the only writer of Medicine.stock
- SQL database: source of truth; every stock change has an inventory log row

CONSISTENCY MODEL:
- Stock never goes negative (conditional UPDATE + CHECK constraint)
- A multi-item invoice or import is applied entirely or not at all
- Deleting an invoice or import reverses exactly what it applied
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from pharmacy_api.api.routes import (
    auth,
    customers,
    imports,
    interactions,
    inventory,
    invoices,
    medicines,
    suppliers,
)
from pharmacy_api.core.config import settings
from pharmacy_api.core.exceptions import register_exception_handlers
from pharmacy_api.core.logging_config import configure_logging
from pharmacy_api.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and create tables before serving requests."""
    configure_logging()
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized (%s)", settings.ENVIRONMENT)
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Pharmacy Inventory API",
    description="Medicines, sales, goods receipts and an auditable stock ledger.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Trust only specific hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


register_exception_handlers(app)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(medicines.router, prefix="/medicines", tags=["medicines"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
app.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
app.include_router(imports.router, prefix="/imports", tags=["imports"])
app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
app.include_router(interactions.router, prefix="/interactions", tags=["interactions"])


@app.get("/health")
def health():
    return {"status": "ok"}
