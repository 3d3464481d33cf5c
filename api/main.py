"""FastAPI application for the supplement advisor.

Run with:
  uvicorn api.main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.exceptions import MiningInProgressError
from api.routers import patterns, recommendations
from supplement_engine.config import get_config
from supplement_engine.exceptions import (
    PatternLookupError,
    PatternNotFoundError,
    SupplementEngineError,
)

config = get_config()

# Configure logging
logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Supplement Advisor API",
    description="Supplement recommendations for repair estimates, mined from approved insurance supplement history",
    version="1.0.0",
)

# CORS origins can be set via CORS_ORIGINS env var as comma-separated list
cors_origins_str: str = getattr(config, "cors_origins", "")
cors_origins: List[str] = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()] if cors_origins_str else []

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Exception handlers
@app.exception_handler(PatternNotFoundError)
async def pattern_not_found_handler(request: Request, exc: PatternNotFoundError):
    """Handle pattern not found errors."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "error_type": "PatternNotFoundError"},
    )


@app.exception_handler(PatternLookupError)
async def pattern_lookup_handler(request: Request, exc: PatternLookupError):
    """Handle pattern store read failures."""
    logger.error(f"Pattern lookup failed: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "error_type": "PatternLookupError"},
    )


@app.exception_handler(MiningInProgressError)
async def mining_in_progress_handler(request: Request, exc: MiningInProgressError):
    """Handle concurrent mining requests."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "error_type": "MiningInProgressError"},
    )


@app.exception_handler(SupplementEngineError)
async def engine_error_handler(request: Request, exc: SupplementEngineError):
    """Handle other engine errors."""
    logger.error(f"Engine error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    # Convert errors to JSON-serializable format
    serializable_errors = []
    for error in exc.errors():
        serializable_error = {}
        for key, value in error.items():
            if isinstance(value, Exception):
                serializable_error[key] = str(value)
            elif key == "ctx" and isinstance(value, dict):
                serializable_error[key] = {k: str(v) for k, v in value.items()}
            else:
                serializable_error[key] = value
        serializable_errors.append(serializable_error)

    logger.warning(f"Validation error: {serializable_errors}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": serializable_errors, "error_type": "ValidationError"},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    error_detail = str(exc) if exc else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": error_detail, "error_type": type(exc).__name__},
    )


# Include routers
app.include_router(recommendations.router)
app.include_router(patterns.router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Supplement Advisor API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
