"""Checkout form model"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional

from ..core.config import get_settings
from .order import OrderRequest

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CheckoutForm(BaseModel):
    """Customer contact and delivery address entered at checkout"""
    # Customer data
    name: str = Field(min_length=2, max_length=100)
    email: str = Field(min_length=1, max_length=254, pattern=EMAIL_PATTERN)
    phone: str = Field(min_length=10, max_length=20)
    customer_note: Optional[str] = Field(default=None, max_length=500)

    # Address data
    street: str = Field(min_length=2, max_length=200)
    house_no: str = Field(min_length=1, max_length=10)
    postal_code: str = Field(min_length=4, max_length=10)
    city: str = Field(min_length=2, max_length=100)
    country: str = Field(default_factory=lambda: get_settings().default_country, min_length=2, max_length=2)

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("country", mode="before")
    @classmethod
    def fill_default_country(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return get_settings().default_country
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("customer_note", mode="before")
    @classmethod
    def blank_note_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_order_request(self, products: dict[str, int]) -> OrderRequest:
        """Combine the form with the cart's product->quantity map"""
        if not products:
            raise ValueError("An order needs at least one product")

        return OrderRequest(
            **self.model_dump(),
            products=dict(products),
        )
