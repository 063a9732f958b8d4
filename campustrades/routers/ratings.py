"""Ratings API Router: the rate-your-purchase prompt."""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from campustrades.db.config import get_session
from campustrades.middleware.auth import get_current_viewer, get_optional_viewer
from campustrades.schemas.rating import PendingRatingListResponse, RatingCreate, RatingResponse
from campustrades.services.ratings import RatingService
from campustrades.viewer import ViewerContext

router = APIRouter(prefix="/ratings", tags=["Ratings"])


@router.get("/pending", response_model=PendingRatingListResponse)
async def pending_ratings(
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_optional_viewer),
):
    """Purchases waiting for the viewer's rating."""
    return PendingRatingListResponse(pending=RatingService(session, viewer).pending())


@router.post("", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def submit_rating(
    request: RatingCreate,
    session: Session = Depends(get_session),
    viewer: ViewerContext = Depends(get_current_viewer),
):
    return RatingService(session, viewer).submit(request.product_id, request.rating)
