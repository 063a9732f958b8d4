"""
Rating Service

Finds completed purchases the viewer has not rated and records ratings.
"""

from typing import List
import logging

from sqlmodel import select

from campustrades.errors import ProductNotFound, ValidationError
from campustrades.models.product import PRODUCT_STATUS_SOLD, Product
from campustrades.models.profile import Profile
from campustrades.models.rating import MAX_RATING, MIN_RATING, Rating
from campustrades.schemas.conversation import ProfileSummary
from campustrades.schemas.rating import PendingRating
from campustrades.services.base import ViewerService
from campustrades.utils.logger import event_logger
from campustrades.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)


def is_valid_rating(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_RATING <= value <= MAX_RATING


class RatingService(ViewerService):
    """Service for purchase ratings"""

    def pending(self) -> List[PendingRating]:
        """Products sold to the viewer that the viewer has not rated yet."""
        if not self.viewer.is_authenticated:
            return []

        viewer_id = self.viewer.user_id
        already_rated = select(Rating.id).where(
            Rating.product_id == Product.id,
            Rating.buyer_id == viewer_id,
        )
        statement = (
            select(Product)
            .where(
                Product.buyer_id == viewer_id,
                Product.status == PRODUCT_STATUS_SOLD,
                ~already_rated.exists(),
            )
            .order_by(Product.created_at.asc())
        )

        with self.backend("load pending ratings"):
            products = list(self.session.exec(statement).all())
            seller_ids = {p.seller_id for p in products}
            sellers = {}
            if seller_ids:
                rows = self.session.exec(select(Profile).where(Profile.id.in_(seller_ids))).all()
                sellers = {row.id: row for row in rows}

        pending = []
        for product in products:
            seller = sellers.get(product.seller_id)
            pending.append(PendingRating(
                product_id=product.id,
                title=product.title,
                seller_id=product.seller_id,
                seller=ProfileSummary(
                    id=seller.id,
                    full_name=seller.full_name,
                    avatar_url=seller.avatar_url,
                ) if seller else None,
            ))
        return pending

    def submit(self, product_id: str, rating: int) -> Rating:
        """
        Rate the seller of a product the viewer bought.

        Raises:
            ValidationError: Rating outside 1-5, or the purchase is already rated
            ProductNotFound: No such product sold to the viewer
        """
        viewer_id = self.viewer.require()
        if not is_valid_rating(rating):
            raise ValidationError(
                f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}",
                field="rating",
            )

        with self.backend("submit rating"):
            product = self.session.get(Product, product_id)
            if product is None or product.buyer_id != viewer_id or product.status != PRODUCT_STATUS_SOLD:
                raise ProductNotFound(product_id)

            existing = self.session.exec(
                select(Rating).where(Rating.product_id == product_id, Rating.buyer_id == viewer_id)
            ).first()
            if existing:
                raise ValidationError("You have already rated this purchase", field="product_id")

            row = Rating(
                product_id=product.id,
                seller_id=product.seller_id,
                buyer_id=viewer_id,
                rating=rating,
            )
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)

        metrics_collector.increment_counter("ratings_submitted_total")
        event_logger.info(
            "rating.submitted",
            product_id=product_id,
            seller_id=row.seller_id,
            buyer_id=viewer_id,
            rating=rating,
        )
        return row
