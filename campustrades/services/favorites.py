"""Favorites Service: products a viewer has saved."""
from typing import List, Tuple
import logging

from sqlmodel import select

from campustrades.errors import ProductNotFound
from campustrades.models.favorite import Favorite
from campustrades.models.product import Product
from campustrades.services.base import ViewerService

logger = logging.getLogger(__name__)


class FavoriteService(ViewerService):

    def list_favorites(self) -> List[Tuple[Favorite, Product]]:
        """Saved products, newest first; empty for anonymous viewers."""
        if not self.viewer.is_authenticated:
            return []
        statement = (
            select(Favorite, Product)
            .where(Favorite.product_id == Product.id)
            .where(Favorite.user_id == self.viewer.user_id)
            .order_by(Favorite.created_at.desc())
        )
        with self.backend("load favorites"):
            return list(self.session.exec(statement).all())

    def is_favorite(self, product_id: str) -> bool:
        if not self.viewer.is_authenticated:
            return False
        with self.backend("load favorite"):
            return self._find(product_id) is not None

    def toggle(self, product_id: str) -> bool:
        """Save or unsave a product. Returns the new state."""
        viewer_id = self.viewer.require()
        with self.backend("update favorites"):
            if self.session.get(Product, product_id) is None:
                raise ProductNotFound(product_id)

            existing = self._find(product_id)
            if existing:
                self.session.delete(existing)
                saved = False
            else:
                self.session.add(Favorite(user_id=viewer_id, product_id=product_id))
                saved = True
            self.session.commit()

        logger.info(f"User {viewer_id} {'saved' if saved else 'removed'} product {product_id}")
        return saved

    def _find(self, product_id: str):
        return self.session.exec(
            select(Favorite).where(
                Favorite.user_id == self.viewer.user_id,
                Favorite.product_id == product_id,
            )
        ).first()
