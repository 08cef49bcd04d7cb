"""Order models mirroring the backend order API"""

from pydantic import BaseModel
from typing import Optional
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class OrderRequest(BaseModel):
    """Payload for POST /orders/create"""
    name: str
    email: str
    phone: str
    street: str
    house_no: str
    postal_code: str
    city: str
    country: str
    customer_note: Optional[str] = None
    products: dict[str, int]


class CreateOrderResponse(BaseModel):
    """Acknowledgement returned after an order is created"""
    order_number: str
    order_id: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING


class Address(BaseModel):
    """Delivery address stored with an order"""
    id: str
    user_id: Optional[str] = None
    street: str
    house_no: str
    postal_code: str
    city: str
    country: str


class Order(BaseModel):
    """Order header"""
    id: str
    order_number: str
    name: str
    email: str
    phone: str
    note: Optional[str] = None
    address_id: Optional[str] = None
    payment_link: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class OrderLine(BaseModel):
    """Product line of an order, prices in cents"""
    id: str
    order_id: str
    product_id: str
    quantity: int
    unit_price: int
    unit_discount: int = 0
    unit_tax: int = 0
    unit_subtotal: int = 0
    line_total: int = 0
    product_name: str
    product_sku: Optional[str] = None


class OrderDetails(BaseModel):
    """Order with its lines and address"""
    order: Order
    order_lines: list[OrderLine] = []
    address: Optional[Address] = None
    total: int = 0


class OrderPagination(BaseModel):
    page: int = 1
    page_size: int = 20
    total: int = 0
    total_pages: int = 0


class OrderListResponse(BaseModel):
    """Response from GET /admin/orders"""
    orders: list[Order] = []
    pagination: OrderPagination = OrderPagination()
