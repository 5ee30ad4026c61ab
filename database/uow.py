import contextlib
import logging

from database.database import SessionLocal
from database.repository import DispatchRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def dispatch_uow(session_factory=None):
    """Per-unit-of-work transaction scope.

    Yields a DispatchRepository bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    Usage:
        with dispatch_uow() as repo:
            job = repo.jobs.get(job_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = (session_factory or SessionLocal)()
    try:
        repo = DispatchRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
