"""Favorites API Router."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from campustrades.db.config import get_session
from campustrades.middleware.auth import get_current_viewer, get_optional_viewer
from campustrades.schemas.favorite import FavoriteItem, FavoriteListResponse, FavoriteStatusResponse
from campustrades.services.favorites import FavoriteService
from campustrades.viewer import ViewerContext

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("", response_model=FavoriteListResponse)
async def list_favorites(
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_optional_viewer),
):
    rows = FavoriteService(session, viewer).list_favorites()
    return FavoriteListResponse(favorites=[
        FavoriteItem(
            product_id=product.id,
            title=product.title,
            price=product.price,
            image_url=product.image_urls[0] if product.image_urls else None,
            status=product.status,
            created_at=favorite.created_at,
        )
        for favorite, product in rows
    ])


@router.get("/{product_id}", response_model=FavoriteStatusResponse)
async def is_favorite(
    product_id: str,
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_optional_viewer),
):
    return FavoriteStatusResponse(
        product_id=product_id,
        is_favorite=FavoriteService(session, viewer).is_favorite(product_id),
    )


@router.post("/{product_id}/toggle", response_model=FavoriteStatusResponse)
async def toggle_favorite(
    product_id: str,
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_current_viewer),
):
    return FavoriteStatusResponse(
        product_id=product_id,
        is_favorite=FavoriteService(session, viewer).toggle(product_id),
    )
