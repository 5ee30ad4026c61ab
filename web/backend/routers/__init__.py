"""API route handlers."""

from .jobs import router as jobs_router
from .contractors import router as contractors_router
from .payouts import router as payouts_router
