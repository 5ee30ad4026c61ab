#!/usr/bin/env python3
"""
Dispatch API - FastAPI Application

HTTP surface for matching, offers, claims, contractor metrics and payouts.

Usage:
    python -m web.backend.app

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
    - http://localhost:8080/redoc - Alternative API Documentation
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from core.errors import DispatchError
from pipeline.scheduler import PayoutScheduler
from .config import get_config
from .dependencies import get_app_context
from .exceptions import (
    dispatch_exception_handler,
    http_exception_handler,
    general_exception_handler
)
from .routers import (
    jobs_router,
    contractors_router,
    payouts_router
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load configuration
config = get_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if config.web.run_scheduler:
        ctx = get_app_context()
        scheduler = PayoutScheduler(ctx.payout_processor, config.settlement, ledger=ctx.ledger)
        scheduler.start()
        app.state.scheduler = scheduler
    yield
    if scheduler is not None:
        scheduler.shutdown()


# Create FastAPI app
app = FastAPI(
    title="Dispatch API",
    description="Contractor matching, job claims and weekly payouts",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Register exception handlers
app.add_exception_handler(DispatchError, dispatch_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Include routers
app.include_router(jobs_router)
app.include_router(contractors_router)
app.include_router(payouts_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "dispatch-web"}


def main():
    """Run the web server."""
    import uvicorn

    logger.info(f"Starting Dispatch Web Server on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
