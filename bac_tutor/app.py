# FILE: bac_tutor/app.py
"""
FastAPI application entry point for the BAC Tutor backend
Quiz-taking sessions and the AI tutoring proxy
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bac_tutor import __version__
from bac_tutor.config import get_settings
from bac_tutor.errors import TutorError
from bac_tutor.logging_config import configure_logging
from bac_tutor.middleware.body_limit import BodySizeLimitMiddleware
from bac_tutor.middleware.rate_limit import RateLimitMiddleware
from bac_tutor.routes import chat, health, quiz_sessions
from bac_tutor.services.record_store import close_record_store
from bac_tutor.services.session_registry import close_session_registry

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown"""
    configure_logging()
    logger.info(f"Starting BAC Tutor backend v{__version__} (record_store={settings.record_store})")

    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not configured; /gemini-chat will fail")

    yield

    # Shutdown: stop every countdown before the store goes away
    logger.info("Shutting down BAC Tutor backend")
    await close_session_registry()
    await close_record_store()


app = FastAPI(
    title="BAC Tutor API",
    description="Quiz-taking sessions and AI tutoring for the Algerian BAC curriculum",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=settings.cors_headers,
)

# Rate limiting (completion proxy only)
if settings.rate_limit_enabled:
    app.add_middleware(RateLimitMiddleware, rpm=settings.rate_limit_rpm, paths=("/gemini-chat",))

# Body size limit
app.add_middleware(BodySizeLimitMiddleware, max_size=settings.body_size_limit_kb * 1024)


# Exception handlers
@app.exception_handler(TutorError)
async def tutor_error_handler(request: Request, exc: TutorError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "detail": _jsonable_errors(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


def _jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]


# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(quiz_sessions.router, prefix="/quiz-sessions", tags=["quiz-sessions"])
app.include_router(chat.router, prefix="/gemini-chat", tags=["chat"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "BAC Tutor",
        "version": __version__,
        "status": "active"
    }


def main():
    import uvicorn
    uvicorn.run(
        "bac_tutor.app:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.environment == "development"
    )


if __name__ == "__main__":
    main()
