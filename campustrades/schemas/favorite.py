"""Favorite schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class FavoriteItem(BaseModel):
    product_id: str
    title: str
    price: float
    image_url: Optional[str] = None
    status: str
    created_at: datetime


class FavoriteListResponse(BaseModel):
    favorites: List[FavoriteItem]


class FavoriteStatusResponse(BaseModel):
    product_id: str
    is_favorite: bool
