# app/api/v1/routers/recommendations.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
import logging
import time

from app.api.deps import engagement_service, viewer_identity
from app.api.v1.schemas.product import ProductOut, ViewIn, ViewOut
from app.domain.models.product import ViewerIdentity
from app.domain.services.engagement_svc import EngagementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("/view", response_model=ViewOut)
async def track_view(
    body: ViewIn,
    identity: ViewerIdentity = Depends(viewer_identity),
    svc: EngagementService = Depends(engagement_service),
):
    """Count a product view once per user, or once per guest session/IP."""
    res = await svc.track_view(body.product_id, identity)
    return ViewOut(counted=res.counted, view_count=res.view_count)


@router.get("/product/{product_id}", response_model=List[ProductOut])
async def product_recommendations(
    product_id: str,
    limit: Optional[int] = Query(None, ge=1, le=50),
    svc: EngagementService = Depends(engagement_service),
):
    t0 = time.perf_counter()
    items = await svc.recommend(product_id, limit)
    logger.info(
        "Response: product_recommendations product_id=%s count=%s elapsed_time=%.4fs",
        product_id, len(items), time.perf_counter() - t0,
    )
    return [ProductOut.from_product(p) for p in items]


@router.get("/user", response_model=List[ProductOut])
async def user_recommendations(
    limit: Optional[int] = Query(None, ge=1, le=50),
    identity: ViewerIdentity = Depends(viewer_identity),
    svc: EngagementService = Depends(engagement_service),
):
    if not identity.user_id:
        raise HTTPException(status_code=401, detail="Sign in to get personal recommendations.")
    items = await svc.recommend_for_user(identity.user_id, limit)
    return [ProductOut.from_product(p) for p in items]


@router.get("/trending", response_model=List[ProductOut])
async def trending(
    limit: Optional[int] = Query(None, ge=1, le=50),
    svc: EngagementService = Depends(engagement_service),
):
    t0 = time.perf_counter()
    items = await svc.trending(limit)
    logger.info("Response: trending returned %s items in %.4fs", len(items), time.perf_counter() - t0)
    return [ProductOut.from_product(p) for p in items]
