from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from portal.routers import (
    billing,
    contacts,
    contracts,
    dashboard,
    invoices,
    obligations,
    reminders,
    sponsors,
    workspaces,
)
from portal.config import settings
from portal.errors import PortalError
import logging
import sys

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Log startup information
logger.info("="*60)
logger.info(f"Starting {settings.app_name} API")
logger.info("="*60)
logger.info(f"Identity provider configured: {bool(settings.identity_url)}")
logger.info(f"Email provider: {settings.email_provider}")
logger.info(f"Reminder cron secret configured: {bool(settings.cron_secret)}")
logger.info(f"Void invoices may be reopened: {settings.allow_void_reopen}")
logger.info("="*60)

# Create tables (in production, use migrations)
# Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=f"{settings.app_name} API",
    description="API for managing sponsors, contracts, obligations and invoices",
    version="1.0.0"
)


def parse_cors_origins(origins_str: str) -> list:
    """Parse CORS origins string into a list."""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


all_origins = parse_cors_origins(settings.cors_origins) or ["http://localhost:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=all_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(workspaces.router)
app.include_router(invoices.router)
app.include_router(dashboard.router)
app.include_router(reminders.router)  # Called by the external scheduler
app.include_router(sponsors.router)
app.include_router(contracts.router)
app.include_router(contacts.router)
app.include_router(obligations.router)
app.include_router(billing.router)


@app.get("/")
def root():
    return {"message": f"{settings.app_name} API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Domain errors carry their own status code and machine-readable code"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"},
    )
