"""Cart API routes"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field

from ..core.cart import CartNotice, ProductSnapshot
from ..core.i18n import translate
from ..core.session import UserSession
from ..security.session_middleware import get_user_session
from ..services.api_client import StorefrontApiClient
from ..services.errors import ApiError
from .dependencies import get_api_client, get_api_locale

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


class AddToCartRequest(BaseModel):
    """Request to add one unit of a product"""
    product_id: str = Field(min_length=1)


class UpdateCartItemRequest(BaseModel):
    """Request to set a line's quantity; zero or less removes it"""
    quantity: int


def _notice_payload(notice: Optional[CartNotice], locale: str) -> Optional[dict]:
    if notice is None:
        return None
    return {
        "type": notice.kind,
        "title": translate(notice.title_key, locale, **notice.params),
        "description": (
            translate(notice.description_key, locale, **notice.params)
            if notice.description_key
            else None
        ),
    }


@router.get("")
async def get_cart(session: UserSession = Depends(get_user_session)):
    """Current cart with its totals"""
    return {"cart": session.cart.to_dict()}


@router.post("/items")
async def add_to_cart(
    request: AddToCartRequest,
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
    locale: str = Depends(get_api_locale),
):
    """Add one unit of a product, snapshotting its price and stock"""
    try:
        product = await api.get_product(request.product_id)
    except ApiError as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail="Product not found")
        raise HTTPException(status_code=502, detail="Product service unavailable")

    notice = session.cart.add(ProductSnapshot.from_product(product))
    session.cart.pop_notice()

    return {
        "cart": session.cart.to_dict(),
        "notice": _notice_payload(notice, locale),
    }


@router.put("/items/{product_id}")
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    session: UserSession = Depends(get_user_session),
):
    """Update item quantity in cart"""
    session.cart.set_quantity(product_id, request.quantity)
    return {"cart": session.cart.to_dict()}


@router.delete("/items/{product_id}")
async def remove_from_cart(
    product_id: str,
    session: UserSession = Depends(get_user_session),
):
    """Remove an item from the cart; unknown items are ignored"""
    session.cart.remove(product_id)
    return {"cart": session.cart.to_dict()}


@router.delete("")
async def clear_cart(session: UserSession = Depends(get_user_session)):
    """Clear all items from cart"""
    session.cart.clear()
    return {"cart": session.cart.to_dict()}
