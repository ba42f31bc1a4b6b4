import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import ALLOWED_ORIGINS
from .database import Base, SessionLocal, engine
from .domain.attachments.router import router as attachments_router
from .domain.billing.router import router as billing_router
from .domain.company.router import router as company_router
from .domain.customers.router import router as customers_router
from .domain.dashboard.router import router as dashboard_router
from .domain.employee_portal.router import router as employee_portal_router
from .domain.employees.router import router as employees_router
from .domain.event_log.router import router as event_log_router
from .domain.feedback.router import router as feedback_router
from .domain.invoices.router import router as invoices_router
from .domain.jobs.router import router as jobs_router
from .domain.messages.router import router as messages_router
from .domain.portal.router import router as portal_router
from .domain.quotes.router import router as quotes_router
from .domain.shifts.router import router as shifts_router
from .errors import register_exception_handlers
from .routes.auth import router as auth_router
from .routes.geocoding import router as geocoding_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables created successfully")

    from .auth import cleanup_expired_sessions

    db = SessionLocal()
    try:
        cleanup_expired_sessions(db)
    finally:
        db.close()

    from .rate_limiter import get_redis_client

    if get_redis_client() is None:
        logger.info("Rate limits kept in memory only")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="CleanManager API", version="1.0.0", lifespan=lifespan)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    elapsed_ms = (time.time() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
api = APIRouter(prefix="/api")
api.include_router(auth_router)
api.include_router(company_router)
api.include_router(customers_router)
api.include_router(employees_router)
api.include_router(jobs_router)
api.include_router(quotes_router)
api.include_router(invoices_router)
api.include_router(dashboard_router)
api.include_router(shifts_router)
api.include_router(messages_router)
api.include_router(attachments_router)
api.include_router(event_log_router)
api.include_router(employee_portal_router)
api.include_router(feedback_router)
api.include_router(portal_router)
api.include_router(billing_router)
api.include_router(geocoding_router)
app.include_router(api)


@app.get("/")
def root():
    return {"message": "CleanManager API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
