# app/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime
import functools
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.core.errors import StorageError
from app.domain.models.product import Product, RankedProduct, ViewerIdentity, ViewRecord
from app.domain.repositories.queries import (
    PUBLIC_PROJECTION,
    RECOMMENDATION_SORT,
    similarity_filter,
    stock_guard_filter,
    trending_pipeline,
    view_dedup_filter,
)

logger = logging.getLogger(__name__)


def _translate_errors(fn):
    """Surface driver failures as StorageError, chained to the original."""
    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error("products.%s failed: %s", fn.__name__, e)
            raise StorageError(f"Product store error during {fn.__name__}: {e}") from e
    return wrapper


def _to_document(product: Product) -> Dict[str, Any]:
    doc = product.model_dump()
    # viewed_by is excluded from dumps; the store still keeps it
    doc["viewed_by"] = [r.model_dump() for r in product.viewed_by]
    return doc


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Products are addressed by their `product_id` field, never by Mongo's _id.
    Counter and stock mutations go through single-document atomic updates.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    # ----- Reads ----------------------------------------------------------------

    @_translate_errors
    async def get(self, product_id: str) -> Optional[Product]:
        doc = await self.col.find_one({"product_id": product_id}, {"_id": 0})
        return Product.model_validate(doc) if doc else None

    @_translate_errors
    async def find_many(
        self,
        filt: Optional[Dict[str, Any]] = None,
        sort: Optional[Sequence[Tuple[str, int]]] = None,
        limit: int = 0,
    ) -> List[Product]:
        cursor = self.col.find(filt or {}, PUBLIC_PROJECTION)
        if sort:
            cursor = cursor.sort(list(sort))
        if limit:
            cursor = cursor.limit(limit)
        return [Product.model_validate(doc) async for doc in cursor]

    async def list_by_status(self, status: Optional[str] = None) -> List[Product]:
        return await self.find_many({"status": status} if status else None)

    async def list_created_since(self, since: datetime) -> List[Product]:
        return await self.find_many({"created_at": {"$gte": since}}, sort=[("created_at", -1)])

    async def list_best_sellers(self, limit: int) -> List[Product]:
        return await self.find_many(sort=[("sold_count", -1), ("product_id", 1)], limit=limit)

    async def find_similar(self, source: Product, limit: int) -> List[Product]:
        filt = similarity_filter(source)
        if filt is None:
            return []
        return await self.find_many(filt, sort=RECOMMENDATION_SORT, limit=limit)

    @_translate_errors
    async def top_by_popularity(self, limit: int) -> List[RankedProduct]:
        docs = await self.col.aggregate(trending_pipeline(limit)).to_list(length=limit)
        return [RankedProduct.model_validate(d) for d in docs]

    # ----- Writes ---------------------------------------------------------------

    @_translate_errors
    async def insert(self, product: Product) -> Product:
        await self.col.insert_one(_to_document(product))
        return product

    @_translate_errors
    async def update(self, product_id: str, patch: Dict[str, Any]) -> Optional[Product]:
        doc = await self.col.find_one_and_update(
            {"product_id": product_id},
            {"$set": patch},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        return Product.model_validate(doc) if doc else None

    @_translate_errors
    async def delete(self, product_id: str) -> bool:
        res = await self.col.delete_one({"product_id": product_id})
        return res.deleted_count == 1

    @_translate_errors
    async def adjust_variant_stock(self, product_id: str, variant_id: str, delta: int) -> Optional[int]:
        """
        Atomically add `delta` to one variant's stock.
        Decrements only apply while the variant holds at least `-delta` units.
        Returns the stored stock after the update, or None when nothing matched.
        """
        doc = await self.col.find_one_and_update(
            stock_guard_filter(product_id, variant_id, delta),
            {"$inc": {"variants.$.stock": delta}},
            projection={"_id": 0, "variants": 1},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        for v in doc.get("variants") or []:
            if v.get("id") == variant_id:
                return int(v.get("stock", 0))
        return None

    @_translate_errors
    async def record_view(self, product_id: str, identity: ViewerIdentity, record: ViewRecord) -> Optional[int]:
        """
        Push `record` and bump view_count in one update, only if `identity`
        has not viewed the product yet. Returns the new view_count, or None
        when the view was already counted (or the product is gone).
        """
        filt = {"product_id": product_id, **view_dedup_filter(identity)}
        doc = await self.col.find_one_and_update(
            filt,
            {"$inc": {"view_count": 1}, "$push": {"viewed_by": record.model_dump()}},
            projection={"_id": 0, "view_count": 1},
            return_document=ReturnDocument.AFTER,
        )
        return int(doc.get("view_count", 0)) if doc else None
