# app/api/deps.py
from typing import Optional

from fastapi import Cookie, Depends, Header, Request

from app.core.config import Settings
from app.core.errors import StorageError
from app.domain.models.product import ViewerIdentity
from app.domain.repositories.product_repo import ProductRepo
from app.domain.services.catalog_svc import CatalogService
from app.domain.services.engagement_svc import EngagementService
from app.domain.services.inventory_svc import InventoryService


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


# MongoDB database handle opened by the lifespan
def mongo_db(request: Request):
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise StorageError("MongoDB is not connected")
    return db


# Redis client, or None when caching is disabled
def redis_dep(request: Request):
    return getattr(request.app.state, "redis", None)


def product_repo(db=Depends(mongo_db), settings: Settings = Depends(app_settings)) -> ProductRepo:
    return ProductRepo(db, settings.products_collection)


def inventory_service(repo: ProductRepo = Depends(product_repo)) -> InventoryService:
    return InventoryService(repo)


def catalog_service(
    repo: ProductRepo = Depends(product_repo),
    settings: Settings = Depends(app_settings),
    redis=Depends(redis_dep),
) -> CatalogService:
    return CatalogService(repo, settings, redis)


def engagement_service(
    repo: ProductRepo = Depends(product_repo),
    settings: Settings = Depends(app_settings),
    redis=Depends(redis_dep),
) -> EngagementService:
    return EngagementService(repo, settings, redis)


def viewer_identity(
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
    x_session_id: Optional[str] = Header(default=None),
    x_forwarded_for: Optional[str] = Header(default=None),
    session_id: Optional[str] = Cookie(default=None),
) -> ViewerIdentity:
    """
    Resolve who is making the request. The auth layer in front of this service
    is expected to set X-User-Id for signed-in users.
    """
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else ""
    return ViewerIdentity(
        user_id=x_user_id or None,
        session_id=session_id or x_session_id or None,
        ip_address=ip or "",
    )
