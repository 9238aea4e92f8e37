# app/domain/services/inventory_svc.py
"""
Inventory ledger.

The ledger functions are pure: they take the Product aggregate explicitly and
either answer a question about it or mutate it in memory. `InventoryService`
wires them to the repository and persists stock changes with a guarded atomic
update so concurrent requests cannot drive a variant negative.
"""
from __future__ import annotations
import logging
import time

from app.core.errors import InsufficientStockError, InvalidInputError, NotFoundError, StorageError
from app.domain.models.product import (
    Product,
    STOCK_IN,
    STOCK_OUT,
    StockChange,
    StockCheck,
    StockDirection,
)
from app.domain.repositories.product_repo import ProductRepo

logger = logging.getLogger(__name__)


def _validate_quantity(quantity) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        raise InvalidInputError(
            "Quantity must be a non-negative integer", details={"quantity": quantity}
        )
    return quantity


def _validate_direction(direction) -> StockDirection:
    try:
        return StockDirection(direction)
    except ValueError:
        raise InvalidInputError(
            "Direction must be 'increase' or 'decrease'", details={"direction": str(direction)}
        ) from None


def check_availability(product: Product, variant_id: str, requested_qty: int) -> StockCheck:
    requested_qty = _validate_quantity(requested_qty)
    variant = product.find_variant(variant_id)
    if variant is None:
        return StockCheck(available=False, current_stock=0, reason="variant not found")

    available = variant.stock >= requested_qty
    return StockCheck(
        available=available,
        current_stock=variant.stock,
        reason="in stock" if available else "insufficient stock",
    )


def apply_stock_change(product: Product, variant_id: str, quantity: int, direction) -> int:
    """
    Apply an increase/decrease to one variant in memory and return its new stock.
    A decrease that would go below zero raises and leaves the variant untouched.
    """
    quantity = _validate_quantity(quantity)
    direction = _validate_direction(direction)

    variant = product.find_variant(variant_id)
    if variant is None:
        raise NotFoundError(
            f"Variant '{variant_id}' not found",
            details={"product_id": product.product_id, "variant_id": variant_id},
        )

    if direction is StockDirection.DECREASE:
        if variant.stock < quantity:
            raise InsufficientStockError(variant_id, quantity, variant.stock)
        variant.stock -= quantity
    else:
        variant.stock += quantity

    return variant.stock


def derive_stock_status(product: Product) -> str:
    if not product.variants:
        return STOCK_OUT
    total = sum(v.stock or 0 for v in product.variants)
    return STOCK_IN if total > 0 else STOCK_OUT


class InventoryService:
    def __init__(self, repo: ProductRepo):
        self.repo = repo

    async def _load(self, product_id: str) -> Product:
        product = await self.repo.get(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found", details={"product_id": product_id})
        return product

    async def check(self, product_id: str, variant_id: str, quantity: int) -> StockCheck:
        product = await self._load(product_id)
        result = check_availability(product, variant_id, quantity)
        logger.debug(
            "stock_check product_id=%s variant_id=%s qty=%s available=%s stock=%s",
            product_id, variant_id, quantity, result.available, result.current_stock,
        )
        return result

    async def update_stock(self, product_id: str, variant_id: str, quantity: int, direction) -> StockChange:
        t0 = time.perf_counter()
        product = await self._load(product_id)

        # Validates variant/quantity/direction and the sufficient-stock rule
        # against the loaded snapshot before touching the store.
        apply_stock_change(product, variant_id, quantity, direction)

        delta = quantity if StockDirection(direction) is StockDirection.INCREASE else -quantity
        new_stock = await self.repo.adjust_variant_stock(product_id, variant_id, delta)

        if new_stock is None:
            # Guard failed at the store: someone else changed the variant meanwhile
            fresh = await self._load(product_id)
            variant = fresh.find_variant(variant_id)
            if variant is None:
                raise NotFoundError(
                    f"Variant '{variant_id}' not found",
                    details={"product_id": product_id, "variant_id": variant_id},
                )
            logger.warning(
                "stock_update lost race product_id=%s variant_id=%s qty=%s stock=%s",
                product_id, variant_id, quantity, variant.stock,
            )
            if delta < 0 and variant.stock < quantity:
                raise InsufficientStockError(variant_id, quantity, variant.stock)
            # Stock moved but would still cover the request: caller retries
            raise StorageError(
                f"Stock of variant '{variant_id}' changed concurrently, retry the update",
                details={"product_id": product_id, "variant_id": variant_id, "conflict": True},
            )

        product.find_variant(variant_id).stock = new_stock
        logger.info(
            "stock_update done product_id=%s variant_id=%s delta=%s new_stock=%s time=%.3fs",
            product_id, variant_id, delta, new_stock, time.perf_counter() - t0,
        )
        return StockChange(
            product_id=product_id,
            variant_id=variant_id,
            new_stock=new_stock,
            stock_status=derive_stock_status(product),
        )

    async def stock_snapshot(self, product_id: str) -> Product:
        return await self._load(product_id)
