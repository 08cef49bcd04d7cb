"""Product models mirroring the backend catalog API"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class ProductType(str, Enum):
    FLOWER = "flower"
    BOUQUET = "bouquet"


class ProductSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class ProductImage(BaseModel):
    """Image attached to a product"""
    id: Optional[str] = None
    product_id: Optional[str] = None
    url: str
    alt_text: Optional[str] = None
    is_primary: bool = False


class Product(BaseModel):
    """Product in the catalog. Money amounts are in cents."""
    id: str
    name: str
    sku: Optional[str] = None
    price: int = Field(ge=0)
    discount: int = Field(ge=0, default=0)
    tax: int = Field(ge=0, default=0)
    subtotal: Optional[int] = None
    description: str = ""
    is_active: bool = True
    size: Optional[ProductSize] = None
    colors: list[str] = []
    product_type: Optional[ProductType] = None
    stock: Optional[int] = None
    images: list[ProductImage] = []

    @property
    def sale_price(self) -> int:
        """Price after the unit discount"""
        return self.price - self.discount

    @property
    def primary_image(self) -> Optional[ProductImage]:
        """The primary image, or the first one if none is flagged"""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None


class Pagination(BaseModel):
    """Pagination block of list responses"""
    page: int = 1
    page_size: int = 20
    total_items: int = 0
    total_pages: int = 0


class ProductListFilters(BaseModel):
    """Query filters for the product list endpoint"""
    page: Optional[int] = Field(default=None, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1, le=100)
    is_active: Optional[bool] = None
    in_stock: Optional[bool] = None
    product_type: Optional[ProductType] = None
    size: Optional[ProductSize] = None
    search: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    colors: list[str] = []
    sort_by: Optional[str] = None
    sort_direction: Optional[SortDirection] = None
    include_images: Optional[bool] = None

    def to_params(self) -> dict[str, str]:
        """Render the set filters as query parameters"""
        params: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True, mode="json").items():
            if isinstance(value, list):
                if value:
                    params[key] = ",".join(value)
            elif isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        return params


class ProductListResponse(BaseModel):
    """Response from GET /products"""
    products: list[Product] = []
    pagination: Pagination = Pagination()


class ProductCountResponse(BaseModel):
    """Response from GET /products/count"""
    count: int = 0
