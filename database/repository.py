import logging

from sqlalchemy.orm import Session

from database.repositories import (
    JobRepository,
    ContractorRepository,
    AssignmentRepository,
    ReviewRepository,
    PayoutRepository,
)

logger = logging.getLogger(__name__)


class DispatchRepository:
    """Facade bundling the per-table repositories over one Session."""

    def __init__(self, db: Session):
        self.db = db
        self.jobs = JobRepository(db)
        self.contractors = ContractorRepository(db)
        self.assignments = AssignmentRepository(db)
        self.reviews = ReviewRepository(db)
        self.payouts = PayoutRepository(db)

    def flush(self) -> None:
        self.db.flush()
