# Storefront Models

from .product import (
    Product,
    ProductImage,
    ProductType,
    ProductSize,
    SortDirection,
    Pagination,
    ProductListFilters,
    ProductListResponse,
    ProductCountResponse,
)
from .order import (
    OrderStatus,
    PaymentStatus,
    OrderRequest,
    CreateOrderResponse,
    Address,
    Order,
    OrderLine,
    OrderDetails,
    OrderListResponse,
)
from .checkout import CheckoutForm

__all__ = [
    "Product",
    "ProductImage",
    "ProductType",
    "ProductSize",
    "SortDirection",
    "Pagination",
    "ProductListFilters",
    "ProductListResponse",
    "ProductCountResponse",
    "OrderStatus",
    "PaymentStatus",
    "OrderRequest",
    "CreateOrderResponse",
    "Address",
    "Order",
    "OrderLine",
    "OrderDetails",
    "OrderListResponse",
    "CheckoutForm",
]
