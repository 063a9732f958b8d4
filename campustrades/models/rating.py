"""Rating model for SQLModel."""
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from campustrades.utils.timefmt import utcnow

MIN_RATING = 1
MAX_RATING = 5


class Rating(SQLModel, table=True):
    """A buyer's 1-5 star rating of the seller for one purchased product."""
    __tablename__ = "ratings"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    product_id: str = Field(foreign_key="products.id", index=True)
    seller_id: str = Field(foreign_key="profiles.id", index=True)
    buyer_id: str = Field(foreign_key="profiles.id", index=True)
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    created_at: datetime = Field(default_factory=utcnow)
