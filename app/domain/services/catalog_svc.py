# app/domain/services/catalog_svc.py
from __future__ import annotations
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError

from app.core.config import Settings
from app.core.errors import InvalidInputError, NotFoundError
from app.domain.models.product import Product, Variant
from app.domain.repositories.product_repo import ProductRepo
from app.utils.cache import cache_delete_prefix

logger = logging.getLogger(__name__)


def _check_variant_ids(variants: List[Variant]) -> None:
    seen = set()
    for v in variants:
        if v.id in seen:
            raise InvalidInputError(f"Duplicate variant id '{v.id}'", details={"variant_id": v.id})
        seen.add(v.id)


def available_colors(products: List[Product]) -> List[Dict[str, Any]]:
    """Sum in-stock units per variant color across `products`."""
    counts: Counter = Counter()
    for product in products:
        for v in product.variants:
            if v.color and v.stock > 0:
                counts[v.color] += v.stock
    return [{"color": color, "count": count} for color, count in counts.items()]


class CatalogService:
    def __init__(self, repo: ProductRepo, settings: Settings, redis=None):
        self.repo = repo
        self.settings = settings
        self.redis = redis

    async def _drop_trending(self) -> None:
        # status, counters and images all feed the cached trending list
        removed = await cache_delete_prefix(self.redis, self.settings.trending_cache_prefix)
        if removed:
            logger.debug("trending cache cleared keys=%s", removed)

    async def list_products(self, status: Optional[str] = None) -> List[Product]:
        return await self.repo.list_by_status(status)

    async def get_product(self, product_id: str) -> Product:
        product = await self.repo.get(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found", details={"product_id": product_id})
        return product

    async def create_product(self, data: Dict[str, Any]) -> Product:
        # Counters and the view log are never client-supplied
        payload = {k: v for k, v in data.items()
                   if k not in ("product_id", "view_count", "purchase_count", "sold_count", "viewed_by")}
        product = Product.model_validate({
            **payload,
            "product_id": uuid.uuid4().hex,
            "created_at": datetime.now(timezone.utc),
        })
        _check_variant_ids(product.variants)
        await self.repo.insert(product)
        await self._drop_trending()
        logger.info("product created product_id=%s status=%s", product.product_id, product.status)
        return product

    async def update_product(self, product_id: str, patch: Dict[str, Any]) -> Product:
        current = await self.get_product(product_id)
        if not patch:
            return current
        try:
            merged = Product.model_validate({**current.model_dump(), **patch})
        except ValidationError as e:
            raise InvalidInputError(
                "Update would leave the product invalid",
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
            ) from None
        _check_variant_ids(merged.variants)

        product = await self.repo.update(product_id, patch)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found", details={"product_id": product_id})
        await self._drop_trending()
        logger.info("product updated product_id=%s fields=%s", product_id, sorted(patch))
        return product

    async def delete_product(self, product_id: str) -> None:
        if not await self.repo.delete(product_id):
            raise NotFoundError(f"Product '{product_id}' not found", details={"product_id": product_id})
        await self._drop_trending()
        logger.info("product deleted product_id=%s", product_id)

    async def available_colors(self) -> List[Dict[str, Any]]:
        return available_colors(await self.repo.list_by_status(None))

    async def new_arrivals(self, days: Optional[int] = None) -> List[Product]:
        days = days or self.settings.new_arrivals_days
        since = datetime.now(timezone.utc) - timedelta(days=days)
        return await self.repo.list_created_since(since)

    async def best_sellers(self, limit: Optional[int] = None) -> List[Product]:
        return await self.repo.list_best_sellers(limit or self.settings.best_sellers_limit)
