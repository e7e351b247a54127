"""Read-only access to rating records for the reporting layer."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import joinedload

from quantify.models import Rating, Store


@dataclass(frozen=True)
class RatingFilter:
    """Any combination of these narrows the result; all None means every rating."""

    store_id: Optional[int] = None
    user_id: Optional[int] = None
    owner_id: Optional[int] = None
    created_after: Optional[datetime] = None


class RatingRepository:
    """Fetches rating snapshots. Never raises for an empty match."""

    def fetch_ratings(self, rating_filter: RatingFilter = RatingFilter()) -> List[Rating]:
        query = Rating.query.options(joinedload(Rating.user), joinedload(Rating.store))

        if rating_filter.store_id is not None:
            query = query.filter(Rating.store_id == rating_filter.store_id)
        if rating_filter.user_id is not None:
            query = query.filter(Rating.user_id == rating_filter.user_id)
        if rating_filter.owner_id is not None:
            query = query.join(Store, Store.id == Rating.store_id).filter(Store.owner_id == rating_filter.owner_id)
        if rating_filter.created_after is not None:
            query = query.filter(Rating.created_at >= rating_filter.created_after)

        return query.order_by(Rating.created_at.asc(), Rating.id.asc()).all()

    def fetch_values(self, rating_filter: RatingFilter = RatingFilter()) -> List[int]:
        return [rating.value for rating in self.fetch_ratings(rating_filter)]
