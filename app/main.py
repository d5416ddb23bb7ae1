import logging

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlmodel import SQLModel

from app.core.config import settings
from app.core.rate_limit import limiter
from app.api.v1.api import api_router
from app.db.session import engine
from app.middleware.error_middleware import ErrorHandlingMiddleware, moderation_error_handler
from app.services.errors import ModerationError
from app.db import base  # noqa: F401  registers every table on SQLModel.metadata

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=settings.log_format or "%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Listing lifecycle and moderation service for a rental marketplace",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ModerationError, moderation_error_handler)

# Add CORS middleware - locked down for production
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)
app.add_middleware(ErrorHandlingMiddleware)


@app.on_event("startup")
async def startup_event():
    """
    Application startup event.
    Creates missing tables when configured to; deployments use alembic.
    """
    if settings.auto_create_tables:
        SQLModel.metadata.create_all(engine)
        logger.info("Database tables created")

# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return Response(status_code=200)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
