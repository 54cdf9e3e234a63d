"""
Deposit OCR - Main FastAPI Application

Unattended document ingestion:
- Watches a deposit folder for new files
- Extracts text with the Mistral OCR API into a mirrored export tree
- Moves originals out of the deposit folder
- Keeps a history of processed documents
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api import admin, health, history
from app.utils.config import get_settings
from app.utils.extraction import get_extraction_client
from app.utils.history_store import HistoryStore
from app.utils.log_setup import configure_logging
from domains.file_ingest.collectors.deposit_watcher import DepositWatcher
from domains.file_ingest.processors.file_processor import FileProcessor


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.get_log_dir())
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")

    # One history log and one watcher per process, owned by the app
    history_store = HistoryStore(settings.get_history_dir())
    processor = FileProcessor(get_extraction_client(), history_store)
    watcher = DepositWatcher(processor)

    app.state.history = history_store
    app.state.watcher = watcher

    watcher.on_configuration_changed(settings.watch_configuration())
    logger.success(f"Deposit watcher {watcher.state.value}")

    yield

    # Cleanup
    logger.info("Shutting down application...")
    await watcher.shutdown()
    logger.success("Application shut down complete")


# Create FastAPI app
settings = get_settings()
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Unattended OCR ingestion of a deposit folder",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
        }
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(history.router, prefix="/history", tags=["History"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Deposit OCR",
        "version": settings.api_version,
        "status": "operational",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
