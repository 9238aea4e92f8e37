from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from enum import Enum

ProductStatus = Literal["draft", "published", "archived", "scheduled"]
PUBLISHED: ProductStatus = "published"

STOCK_IN = "in stock"
STOCK_OUT = "out of stock"


class StockDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class Variant(BaseModel):
    id: str
    size: str
    color: str
    stock: int = Field(0, ge=0)
    image: Optional[str] = None


class ViewRecord(BaseModel):
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    ip_address: str = ""
    viewed_at: datetime


class ViewerIdentity(BaseModel):
    """Who is looking at a product; resolved by the API layer."""
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    ip_address: str = ""

    @property
    def is_anonymous(self) -> bool:
        return not self.user_id and not self.session_id and not self.ip_address


class Product(BaseModel):
    product_id: str
    name: str
    description: Optional[str] = None
    regular_price: float
    sale_price: Optional[float] = None
    images: List[str] = []
    image_url: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    gender: Optional[str] = None
    tags: List[str] = []
    view_count: int = 0
    purchase_count: int = 0
    sold_count: int = 0
    # Append-only dedup log; kept out of every serialized payload
    viewed_by: List[ViewRecord] = Field(default_factory=list, exclude=True)
    variants: List[Variant] = []
    status: ProductStatus = "draft"
    created_at: Optional[datetime] = None

    @field_validator("view_count", "purchase_count", "sold_count", mode="before")
    @classmethod
    def _absent_counter_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("images", "tags", "variants", mode="before")
    @classmethod
    def _absent_list_is_empty(cls, v):
        return [] if v is None else v

    def find_variant(self, variant_id: str) -> Optional[Variant]:
        # exact, case-sensitive match
        return next((v for v in self.variants if v.id == variant_id), None)


class RankedProduct(Product):
    popularity: int = 0


class StockCheck(BaseModel):
    available: bool
    current_stock: int
    reason: str
    model_config = {"frozen": True}


class StockChange(BaseModel):
    product_id: str
    variant_id: str
    new_stock: int
    stock_status: str
    model_config = {"frozen": True}


class ViewResult(BaseModel):
    product_id: str
    counted: bool
    view_count: int
    model_config = {"frozen": True}
