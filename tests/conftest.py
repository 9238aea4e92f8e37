"""Shared fixtures: an in-memory product repository and a wired test app."""

from datetime import datetime, timezone
from fnmatch import fnmatch
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.api.deps import product_repo, redis_dep
from app.core.config import Settings
from app.domain.models.product import PUBLISHED, Product, RankedProduct, ViewerIdentity, ViewRecord
from app.main import create_app


def make_product(product_id: str, **overrides) -> Product:
    data: Dict[str, Any] = {
        "product_id": product_id,
        "name": f"Product {product_id}",
        "regular_price": 10.0,
        "status": PUBLISHED,
        "created_at": datetime.now(timezone.utc),
    }
    data.update(overrides)
    return Product.model_validate(data)


class FakeProductRepo:
    """
    Mimics ProductRepo's semantics in memory. Stored products are copied in
    and out so tests only see changes that went through the repo.
    """

    def __init__(self, products: Optional[List[Product]] = None):
        self.products: Dict[str, Product] = {}
        for p in products or []:
            self.add(p)

    def add(self, product: Product) -> None:
        self.products[product.product_id] = product.model_copy(deep=True)

    def stored(self, product_id: str) -> Product:
        return self.products[product_id]

    async def get(self, product_id: str) -> Optional[Product]:
        p = self.products.get(product_id)
        return p.model_copy(deep=True) if p else None

    async def list_by_status(self, status: Optional[str] = None) -> List[Product]:
        return [p.model_copy(deep=True) for p in self.products.values() if not status or p.status == status]

    async def list_created_since(self, since: datetime) -> List[Product]:
        items = [p for p in self.products.values() if p.created_at and p.created_at >= since]
        return sorted(items, key=lambda p: p.created_at, reverse=True)

    async def list_best_sellers(self, limit: int) -> List[Product]:
        items = sorted(self.products.values(), key=lambda p: (-p.sold_count, p.product_id))
        return items[:limit]

    async def find_similar(self, source: Product, limit: int) -> List[Product]:
        def matches(p: Product) -> bool:
            return (
                (source.category and p.category == source.category)
                or (source.type and p.type == source.type)
                or bool(set(source.tags) & set(p.tags))
            )

        items = [
            p for p in self.products.values()
            if p.product_id != source.product_id and p.status == PUBLISHED and matches(p)
        ]
        items.sort(key=lambda p: (-p.purchase_count, -p.view_count, p.product_id))
        return [p.model_copy(deep=True) for p in items[:limit]]

    async def top_by_popularity(self, limit: int) -> List[RankedProduct]:
        ranked = [
            RankedProduct(**p.model_dump(), popularity=2 * p.purchase_count + p.view_count)
            for p in self.products.values()
            if p.status == PUBLISHED
        ]
        ranked.sort(key=lambda p: (-p.popularity, p.product_id))
        return ranked[:limit]

    async def insert(self, product: Product) -> Product:
        self.add(product)
        return product

    async def update(self, product_id: str, patch: Dict[str, Any]) -> Optional[Product]:
        p = self.products.get(product_id)
        if p is None:
            return None
        updated = Product.model_validate({**p.model_dump(), **patch, "viewed_by": p.viewed_by})
        self.products[product_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, product_id: str) -> bool:
        return self.products.pop(product_id, None) is not None

    async def adjust_variant_stock(self, product_id: str, variant_id: str, delta: int) -> Optional[int]:
        p = self.products.get(product_id)
        variant = p.find_variant(variant_id) if p else None
        if variant is None or variant.stock + delta < 0:
            return None
        variant.stock += delta
        return variant.stock

    async def record_view(self, product_id: str, identity: ViewerIdentity, record: ViewRecord) -> Optional[int]:
        p = self.products.get(product_id)
        if p is None:
            return None
        for r in p.viewed_by:
            if identity.user_id:
                if r.user_id == identity.user_id:
                    return None
            elif (identity.session_id and r.session_id == identity.session_id) or (
                identity.ip_address and r.ip_address == identity.ip_address
            ):
                return None
        p.viewed_by.append(record)
        p.view_count += 1
        return p.view_count


class FakeRedis:
    def __init__(self):
        self.data: Dict[str, str] = {}
        self.set_calls = 0

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.set_calls += 1
        self.data[key] = value

    async def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    async def scan_iter(self, match="*"):
        for key in list(self.data):
            if fnmatch(key, match):
                yield key

    async def ping(self):
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, REDIS_URL="", DEBUG=False)


@pytest.fixture
def repo() -> FakeProductRepo:
    return FakeProductRepo()


@pytest.fixture
def client(settings, repo) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[product_repo] = lambda: repo
    app.dependency_overrides[redis_dep] = lambda: None
    return TestClient(app)
