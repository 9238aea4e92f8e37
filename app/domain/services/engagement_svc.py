# app/domain/services/engagement_svc.py
"""
Engagement & ranking: deduplicated view tracking, similar-product
recommendations and the trending (popularity) list.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional
import logging
import time

from app.core.config import Settings
from app.core.errors import InvalidInputError, NotFoundError
from app.domain.models.product import (
    Product,
    RankedProduct,
    ViewerIdentity,
    ViewRecord,
    ViewResult,
)
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services.constants import TRENDING_CACHE_SHAPE
from app.utils.cache import cache_get, cache_set
from app.utils.images import with_normalized_images

logger = logging.getLogger(__name__)


def has_viewed(product: Product, identity: ViewerIdentity) -> bool:
    """
    True if `identity` already has a view on record.
    Users match on user_id only; guests match on session_id OR ip_address.
    """
    if identity.user_id:
        return any(r.user_id == identity.user_id for r in product.viewed_by)
    for r in product.viewed_by:
        if identity.session_id and r.session_id == identity.session_id:
            return True
        if identity.ip_address and r.ip_address == identity.ip_address:
            return True
    return False


def build_view_record(identity: ViewerIdentity, now: Optional[datetime] = None) -> ViewRecord:
    # guests never carry a user_id, users never carry a session_id
    return ViewRecord(
        user_id=identity.user_id or None,
        session_id=None if identity.user_id else (identity.session_id or None),
        ip_address=identity.ip_address or "",
        viewed_at=now or datetime.now(timezone.utc),
    )


class EngagementService:
    def __init__(self, repo: ProductRepo, settings: Settings, redis=None):
        self.repo = repo
        self.settings = settings
        self.redis = redis

    def _check_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.settings.default_reco_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= self.settings.max_reco_limit:
            raise InvalidInputError(
                f"limit must be between 1 and {self.settings.max_reco_limit}",
                details={"limit": limit},
            )
        return limit

    async def _load(self, product_id: str) -> Product:
        product = await self.repo.get(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found", details={"product_id": product_id})
        return product

    # ----- View tracking ----------------------------------------------------------

    async def track_view(self, product_id: str, identity: ViewerIdentity) -> ViewResult:
        if identity.is_anonymous:
            raise InvalidInputError("A view needs a user id, a session id or an IP address")

        product = await self._load(product_id)
        if has_viewed(product, identity):
            logger.debug("track_view dedup(read) product_id=%s", product_id)
            return ViewResult(product_id=product_id, counted=False, view_count=product.view_count)

        # The store re-checks the dedup predicate inside the same update
        new_count = await self.repo.record_view(product_id, identity, build_view_record(identity))
        if new_count is None:
            logger.debug("track_view dedup(write) product_id=%s", product_id)
            return ViewResult(product_id=product_id, counted=False, view_count=product.view_count)

        logger.info(
            "track_view counted product_id=%s user=%s view_count=%s",
            product_id, bool(identity.user_id), new_count,
        )
        return ViewResult(product_id=product_id, counted=True, view_count=new_count)

    # ----- Recommendations --------------------------------------------------------

    async def recommend(self, product_id: str, limit: Optional[int] = None) -> List[Product]:
        """Published products sharing category, type or a tag with `product_id`."""
        limit = self._check_limit(limit)
        t0 = time.perf_counter()
        source = await self._load(product_id)
        items = await self.repo.find_similar(source, limit)
        logger.info(
            "recommend done product_id=%s items=%s time=%.3fs",
            product_id, len(items), time.perf_counter() - t0,
        )
        return items

    async def trending(self, limit: Optional[int] = None) -> List[RankedProduct]:
        limit = self._check_limit(limit)
        t0 = time.perf_counter()
        cache_key = f"{self.settings.trending_cache_prefix}:{TRENDING_CACHE_SHAPE}:{limit}"

        cached = await cache_get(self.redis, cache_key)
        if isinstance(cached, list):
            logger.info("trending cache_hit key=%s items=%s", cache_key, len(cached))
            return [RankedProduct.model_validate(x) for x in cached]

        ranked = await self.repo.top_by_popularity(limit)
        items = [with_normalized_images(p, self.settings.uploads_prefix) for p in ranked]

        await cache_set(
            self.redis,
            cache_key,
            [p.model_dump(mode="json") for p in items],
            ex=self.settings.trending_cache_ttl,
        )
        logger.info("trending done items=%s time=%.3fs", len(items), time.perf_counter() - t0)
        return items

    async def recommend_for_user(self, user_id: str, limit: Optional[int] = None) -> List[RankedProduct]:
        # No personalization signal yet: every user gets the trending list
        logger.debug("recommend_for_user user_id=%s -> trending", user_id)
        return await self.trending(limit)
