# app/domain/repositories/queries.py
"""
MongoDB filters, updates and pipelines for the products collection.
Pure builders, kept apart from the repository so they can be inspected in tests.
"""
from __future__ import annotations
from typing import Any, Dict, List, Tuple

from app.domain.models.product import PUBLISHED, Product, ViewerIdentity
from app.domain.services.constants import PURCHASE_WEIGHT

# purchases first, then views; product_id keeps equal scores deterministic
RECOMMENDATION_SORT: List[Tuple[str, int]] = [
    ("purchase_count", -1),
    ("view_count", -1),
    ("product_id", 1),
]

# Never ship the view log (user ids, IPs) out of the store
PUBLIC_PROJECTION: Dict[str, int] = {"_id": 0, "viewed_by": 0}


def similarity_filter(source: Product) -> Dict[str, Any] | None:
    """
    Published products other than `source` sharing its category, its type, or
    at least one tag. Returns None when `source` has nothing to match on.
    """
    clauses: List[Dict[str, Any]] = []
    if source.category:
        clauses.append({"category": source.category})
    if source.type:
        clauses.append({"type": source.type})
    if source.tags:
        clauses.append({"tags": {"$in": list(source.tags)}})
    if not clauses:
        return None
    return {
        "product_id": {"$ne": source.product_id},
        "status": PUBLISHED,
        "$or": clauses,
    }


def view_dedup_filter(identity: ViewerIdentity) -> Dict[str, Any]:
    """
    Predicate that holds only while `identity` has no entry in viewed_by.
    `$ne` on an array path means "no element equals", so AND-ing the guest
    clauses rejects a match on the session OR on the IP.
    """
    if identity.user_id:
        return {"viewed_by.user_id": {"$ne": identity.user_id}}
    filt: Dict[str, Any] = {}
    if identity.session_id:
        filt["viewed_by.session_id"] = {"$ne": identity.session_id}
    if identity.ip_address:
        filt["viewed_by.ip_address"] = {"$ne": identity.ip_address}
    return filt


def stock_guard_filter(product_id: str, variant_id: str, delta: int) -> Dict[str, Any]:
    """Match the variant, and for decrements only while it still holds enough units."""
    cond: Dict[str, Any] = {"id": variant_id}
    if delta < 0:
        cond["stock"] = {"$gte": -delta}
    return {"product_id": product_id, "variants": {"$elemMatch": cond}}


def trending_pipeline(limit: int) -> List[Dict[str, Any]]:
    """Published products scored by 2 x purchases + views, best first."""
    return [
        {"$match": {"status": PUBLISHED}},
        {"$project": PUBLIC_PROJECTION},
        # absent counters read as zero (not persisted)
        {"$addFields": {
            "view_count": {"$ifNull": ["$view_count", 0]},
            "purchase_count": {"$ifNull": ["$purchase_count", 0]},
            "sold_count": {"$ifNull": ["$sold_count", 0]},
        }},
        {"$addFields": {
            "popularity": {"$add": [{"$multiply": ["$purchase_count", PURCHASE_WEIGHT]}, "$view_count"]},
        }},
        {"$sort": {"popularity": -1, "product_id": 1}},
        {"$limit": int(limit)},
    ]
