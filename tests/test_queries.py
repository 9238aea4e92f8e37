"""Tests for the MongoDB query and pipeline builders."""

from app.domain.models.product import ViewerIdentity
from app.domain.repositories.queries import (
    RECOMMENDATION_SORT,
    similarity_filter,
    stock_guard_filter,
    trending_pipeline,
    view_dedup_filter,
)
from conftest import make_product


def test_similarity_filter_uses_present_attributes_only():
    src = make_product("src", category="shoes", tags=["summer"])
    filt = similarity_filter(src)
    assert filt == {
        "product_id": {"$ne": "src"},
        "status": "published",
        "$or": [{"category": "shoes"}, {"tags": {"$in": ["summer"]}}],
    }


def test_similarity_filter_without_attributes():
    assert similarity_filter(make_product("src")) is None


def test_recommendation_sort_order():
    assert RECOMMENDATION_SORT == [("purchase_count", -1), ("view_count", -1), ("product_id", 1)]


def test_view_dedup_filter_for_user():
    who = ViewerIdentity(user_id="u1", session_id="s1", ip_address="1.1.1.1")
    assert view_dedup_filter(who) == {"viewed_by.user_id": {"$ne": "u1"}}


def test_view_dedup_filter_for_guest():
    who = ViewerIdentity(session_id="s1", ip_address="1.1.1.1")
    assert view_dedup_filter(who) == {
        "viewed_by.session_id": {"$ne": "s1"},
        "viewed_by.ip_address": {"$ne": "1.1.1.1"},
    }


def test_view_dedup_filter_guest_without_session():
    assert view_dedup_filter(ViewerIdentity(ip_address="1.1.1.1")) == {
        "viewed_by.ip_address": {"$ne": "1.1.1.1"},
    }


def test_stock_guard_only_guards_decrements():
    assert stock_guard_filter("p", "A", 3) == {"product_id": "p", "variants": {"$elemMatch": {"id": "A"}}}
    assert stock_guard_filter("p", "A", -3) == {
        "product_id": "p",
        "variants": {"$elemMatch": {"id": "A", "stock": {"$gte": 3}}},
    }


def test_trending_pipeline_shape():
    pipeline = trending_pipeline(4)
    stages = [next(iter(s)) for s in pipeline]

    assert stages[0] == "$match"
    assert pipeline[0]["$match"] == {"status": "published"}
    assert pipeline[1]["$project"]["viewed_by"] == 0
    assert pipeline[2]["$addFields"]["view_count"] == {"$ifNull": ["$view_count", 0]}
    assert pipeline[2]["$addFields"]["purchase_count"] == {"$ifNull": ["$purchase_count", 0]}
    assert pipeline[3]["$addFields"]["popularity"] == {
        "$add": [{"$multiply": ["$purchase_count", 2]}, "$view_count"]
    }
    assert pipeline[-2] == {"$sort": {"popularity": -1, "product_id": 1}}
    assert pipeline[-1] == {"$limit": 4}
