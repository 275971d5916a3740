# movieboard/main.py
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .api.v1.router import api_router, public_router
from .database import check_db_health, close_db, init_db
from .utils import firebase_auth

# ============================================================
# Setup Logging
# ============================================================
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================
# Startup/Shutdown Events
# ============================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ✅ STARTUP
    logger.info(f"🚀 Starting {settings.APP_NAME}...")
    logger.info(f"🌐 Environment: {settings.ENVIRONMENT}")
    logger.info(f"🔒 Debug mode: {settings.DEBUG}")

    init_db()

    try:
        firebase_auth.init_firebase()
    except Exception as e:
        logger.error(f"❌ Firebase startup failed: {e}")
        logger.warning("⚠️ API will start; session endpoints will return errors")

    logger.info("✅ Application startup complete!")

    yield

    # ❌ SHUTDOWN
    logger.info(f"🛑 Shutting down {settings.APP_NAME}...")
    close_db()
    logger.info("👋 Goodbye!")


# ============================================================
# Create FastAPI Application
# ============================================================

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Content management and app API for the Movieboard streaming catalog",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# ============================================================
# Middleware Configuration
# ============================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
    max_age=3600,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next: Callable):
    """Add unique request ID for tracing"""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable):
    """Log all requests with timing"""
    start_time = time.time()
    logger.info(f"➡️ {request.method} {request.url.path}")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"⬅️ {request.method} {request.url.path} "
        f"[{response.status_code}] {duration:.3f}s"
    )
    response.headers["X-Process-Time"] = str(duration)
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next: Callable):
    response = await call_next(request)

    if settings.HTTPS_ONLY:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

# ============================================================
# API Routers
# ============================================================

app.include_router(api_router, prefix="/api/v1")
app.include_router(public_router, prefix="/api/v1/public")

# ============================================================
# Root Endpoints
# ============================================================


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/health"
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Fast health check for load balancers (no dependency checks)"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health/detailed", tags=["Health"])
def health_check_detailed() -> dict:
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }

    if check_db_health():
        health_status["database"] = "connected"
    else:
        health_status["database"] = "disconnected"
        health_status["status"] = "degraded"

    health_status["storage"] = "s3" if settings.is_s3_enabled else "disabled"
    health_status["vector_search"] = "configured" if settings.is_vector_search_enabled else "disabled"
    return health_status

# ============================================================
# Exception Handlers
# ============================================================


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400)"""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        f"❌ Unhandled exception [Request ID: {request_id}]: {str(exc)}",
        exc_info=True
    )

    # Hide internal errors in production
    error_detail = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=500,
        content={
            "detail": error_detail,
            "request_id": request_id
        }
    )

# ============================================================
# Run Application
# ============================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "movieboard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
