# Storefront Routes

from .cart import router as cart_router
from .checkout import router as checkout_router
from .pages import router as pages_router

__all__ = ["cart_router", "checkout_router", "pages_router"]
