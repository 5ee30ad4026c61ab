from typing import Any, Optional, Tuple

from sqlalchemy import select, func

from database.models import Review
from database.repositories.base import BaseRepository


class ReviewRepository(BaseRepository):
    def add(self, job_id: Any, contractor_id: Any, rating: int, comment: Optional[str] = None) -> Review:
        review = Review(job_id=job_id, contractor_id=contractor_id, rating=rating, comment=comment)
        self.db.add(review)
        self.db.flush()
        return review

    def get_rating_stats(self, contractor_id: Any) -> Tuple[int, Optional[float]]:
        """Return (review count, mean rating); mean is None with no reviews."""
        stmt = select(func.count(Review.id), func.avg(Review.rating)).where(
            Review.contractor_id == contractor_id
        )
        count, average = self.db.execute(stmt).one()
        return int(count or 0), (float(average) if average is not None else None)
