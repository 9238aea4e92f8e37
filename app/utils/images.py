# app/utils/images.py
from __future__ import annotations
from typing import Optional, TypeVar

from app.domain.models.product import Product

P = TypeVar("P", bound=Product)


def normalize_image_ref(ref: Optional[str], prefix: str = "/uploads") -> str:
    """
    Turn a stored image reference into a servable path.
    'cat.jpg' -> '/uploads/cat.jpg'; absolute URLs and '/uploads/...' pass through.
    """
    if not ref:
        return ""
    marker = prefix.rstrip("/") + "/"
    if ref.startswith("http") or marker in ref:
        return ref
    return f"{marker}{ref.lstrip('/')}"


def with_normalized_images(product: P, prefix: str = "/uploads") -> P:
    primary = product.image_url or (product.images[0] if product.images else None)
    return product.model_copy(update={
        "image_url": normalize_image_ref(primary, prefix),
        "images": [normalize_image_ref(img, prefix) for img in product.images],
    })
