# app/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query, Response
from typing import List, Optional
import logging

from app.api.deps import catalog_service
from app.api.v1.schemas.product import ColorCount, ProductIn, ProductOut, ProductPatch
from app.domain.models.product import ProductStatus
from app.domain.services.catalog_svc import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _out(products) -> List[ProductOut]:
    return [ProductOut.from_product(p) for p in products]


@router.get("", response_model=List[ProductOut])
async def list_products(svc: CatalogService = Depends(catalog_service)):
    return _out(await svc.list_products())


@router.get("/status/{status}", response_model=List[ProductOut])
async def list_products_by_status(status: ProductStatus, svc: CatalogService = Depends(catalog_service)):
    return _out(await svc.list_products(status))


@router.get("/colors", response_model=List[ColorCount])
async def available_colors(svc: CatalogService = Depends(catalog_service)):
    """Colors of in-stock variants with their total units, for storefront filters."""
    return await svc.available_colors()


@router.get("/new-arrivals", response_model=List[ProductOut])
async def new_arrivals(
    days: Optional[int] = Query(None, ge=1, le=365, description="Look-back window in days"),
    svc: CatalogService = Depends(catalog_service),
):
    return _out(await svc.new_arrivals(days))


@router.get("/best-sellers", response_model=List[ProductOut])
async def best_sellers(
    limit: Optional[int] = Query(None, ge=1, le=100),
    svc: CatalogService = Depends(catalog_service),
):
    return _out(await svc.best_sellers(limit))


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: str, svc: CatalogService = Depends(catalog_service)):
    return ProductOut.from_product(await svc.get_product(product_id))


@router.post("", response_model=ProductOut, status_code=201)
async def create_product(body: ProductIn, svc: CatalogService = Depends(catalog_service)):
    return ProductOut.from_product(await svc.create_product(body.model_dump()))


@router.put("/{product_id}", response_model=ProductOut)
async def update_product(product_id: str, body: ProductPatch, svc: CatalogService = Depends(catalog_service)):
    patch = body.model_dump(exclude_unset=True)
    return ProductOut.from_product(await svc.update_product(product_id, patch))


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str, svc: CatalogService = Depends(catalog_service)):
    await svc.delete_product(product_id)
    return Response(status_code=204)
