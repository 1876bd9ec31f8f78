from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from emotion_recognition.core.config import settings
from emotion_recognition.core.database import get_db, init_db
from emotion_recognition.core.exceptions import EmotionServiceError, UnauthorizedError
from emotion_recognition.core.logging import setup_logging, get_logger
from emotion_recognition.api.routers import auth, users, sessions, emotions, images
from emotion_recognition.services.ingestion import first_error_message


logger = get_logger(__name__)

# --- Application Lifecycle (Lifespan) ---
@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Lifecycle manager for the FastAPI application.
    Configures logging and makes sure the schema exists before serving requests.
    """
    setup_logging()
    logger.info("Initializing database...")
    init_db()
    logger.info("Application ready. Docs at /docs")
    yield
    logger.info("Shutting down...")

# --- FastAPI Instance ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Session-based facial emotion recognition backend",
    version=settings.VERSION,
    lifespan=lifespan
)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error Handling ---
# Services raise EmotionServiceError subclasses; this is the only place they
# become HTTP responses.
@app.exception_handler(EmotionServiceError)
async def service_error_handler(request: Request, exc: EmotionServiceError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a 400 that names the first violated constraint."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": first_error_message(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        f"Unhandled database error: {exc}",
        extra={"endpoint": request.url.path},
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# --- REST API Routers ---
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(sessions.router, prefix="/api/v1/sessions", tags=["Sessions"])
app.include_router(emotions.router, prefix="/api/v1/emotions", tags=["Emotions"])
app.include_router(images.router, prefix="/api/v1/images", tags=["Images"])


# --- Root Endpoint ---
@app.get("/", tags=["System"])
async def root():
    """Basic root endpoint for service discovery."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME} API",
        "status": "active",
        "docs": "/docs"
    }

# --- Health Check Endpoint ---
@app.get("/api/v1/health", tags=["System"])
def health_check(db: Session = Depends(get_db)):
    """
    Verifies the operational status of the API and its database connection.
    """
    try:
        # Executes a minimal query to verify the connection
        db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "database": "connected",
            "environment": settings.ENVIRONMENT,
            "version": settings.VERSION,
        }
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed"
        )
