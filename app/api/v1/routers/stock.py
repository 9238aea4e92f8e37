# app/api/v1/routers/stock.py
from fastapi import APIRouter, Depends
import logging
import time

from app.api.deps import inventory_service
from app.api.v1.schemas.product import ProductOut, StockCheckIn, StockUpdateIn
from app.domain.models.product import StockChange, StockCheck
from app.domain.services.inventory_svc import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["stock"])


@router.post("/check-stock", response_model=StockCheck)
async def check_stock(body: StockCheckIn, svc: InventoryService = Depends(inventory_service)):
    """
    Is `quantity` of the variant available? An unknown variant is a normal
    answer (available=false), an unknown product is a 404.
    """
    return await svc.check(body.product_id, body.variant_id, body.quantity)


@router.put("/update-stock", response_model=StockChange)
async def update_stock(body: StockUpdateIn, svc: InventoryService = Depends(inventory_service)):
    t0 = time.perf_counter()
    res = await svc.update_stock(body.product_id, body.variant_id, body.quantity, body.operation)
    logger.info(
        "Response: update_stock product_id=%s variant_id=%s op=%s new_stock=%s in %.4fs",
        body.product_id, body.variant_id, body.operation.value, res.new_stock, time.perf_counter() - t0,
    )
    return res


@router.get("/{product_id}/stock", response_model=ProductOut)
async def product_stock(product_id: str, svc: InventoryService = Depends(inventory_service)):
    """Product with its real-time stock status."""
    return ProductOut.from_product(await svc.stock_snapshot(product_id))
