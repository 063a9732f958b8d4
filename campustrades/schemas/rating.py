"""Rating schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from campustrades.schemas.conversation import ProfileSummary


class PendingRating(BaseModel):
    """A purchase the viewer has not rated yet."""
    product_id: str
    title: str
    seller_id: str
    seller: Optional[ProfileSummary] = None


class PendingRatingListResponse(BaseModel):
    pending: List[PendingRating]


class RatingCreate(BaseModel):
    """Range is checked by the rating service."""
    product_id: str
    rating: int


class RatingResponse(BaseModel):
    id: str
    product_id: str
    seller_id: str
    buyer_id: str
    rating: int
    created_at: datetime

    class Config:
        from_attributes = True
