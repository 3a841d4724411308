"""
Ephemeral Paste - Main FastAPI application.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ephemeral_paste.config import settings
from ephemeral_paste.database import reset_store
from ephemeral_paste.errors import PasteNotFoundError, StorageError, ValidationError
from ephemeral_paste.routes import health, pages, pastes

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Ephemeral Paste",
    description="Share text that disappears after a time limit or a number of views",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include route modules
app.include_router(health.router)
app.include_router(pastes.router)
app.include_router(pages.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(PasteNotFoundError)
async def not_found_handler(request: Request, exc: PasteNotFoundError) -> JSONResponse:
    # Same body for missing, expired and exhausted pastes
    return JSONResponse(status_code=exc.status_code, content={"error": "not_found"})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    error = str(exc) if settings.DEBUG else "internal_error"
    return JSONResponse(status_code=exc.status_code, content={"error": error})


@app.on_event("startup")
async def startup_event():
    """Startup event handler."""
    logger.info("Ephemeral Paste application starting...")
    logger.info(f"Storage driver: {settings.resolved_driver()}")
    if settings.TEST_MODE:
        logger.warning("TEST_MODE is on: x-test-now-ms overrides the clock")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event handler."""
    logger.info("Ephemeral Paste application shutting down...")
    reset_store()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "ephemeral_paste.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
