# api/v1/schemas/product.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from app.domain.models.product import Product, ProductStatus, StockDirection, Variant
from app.domain.services.inventory_svc import derive_stock_status


class ProductOut(Product):
    stock_status: str
    popularity: Optional[int] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductOut":
        return cls(**product.model_dump(), stock_status=derive_stock_status(product))


class ProductIn(BaseModel):
    name: str
    description: Optional[str] = None
    regular_price: float = Field(ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    images: List[str] = []
    image_url: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    gender: Optional[str] = None
    tags: List[str] = []
    variants: List[Variant] = []
    status: ProductStatus = "draft"


class ProductPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    regular_price: Optional[float] = Field(default=None, ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    images: Optional[List[str]] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    gender: Optional[str] = None
    tags: Optional[List[str]] = None
    variants: Optional[List[Variant]] = None
    status: Optional[ProductStatus] = None

    @field_validator("name", "regular_price", "status", "images", "tags", "variants")
    @classmethod
    def _not_null(cls, v, info):
        # omit a field to keep it; null would leave an unreadable document
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ColorCount(BaseModel):
    color: str
    count: int


class StockCheckIn(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(ge=0)


class StockUpdateIn(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(ge=0)
    operation: StockDirection


class ViewIn(BaseModel):
    product_id: str


class ViewOut(BaseModel):
    success: bool = True
    counted: bool
    view_count: int
