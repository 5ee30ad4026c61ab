#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

from functools import lru_cache

from core.app_context import AppContext
from database import database
from .config import get_config


@lru_cache()
def get_app_context() -> AppContext:
    """
    FastAPI dependency returning the wired services.

    Binds the shared session factory to the configured database on first use.

    Usage:
        @router.get("/endpoint")
        def my_endpoint(ctx: AppContext = Depends(get_app_context)):
            ...
    """
    config = get_config()
    database.configure_engine(
        config.database.url,
        pool_pre_ping=True,  # Verify connections before using
    )
    return AppContext.build(config)
