"""Checkout API routes"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ..core.session import UserSession
from ..security.session_middleware import get_user_session
from ..services.api_client import StorefrontApiClient
from ..services.checkout import BlockReason, SubmissionState
from .dependencies import get_api_client, get_api_locale

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])

JUST_PLACED_FLASH = "just_placed_order"

_FAILURE_STATUS = {
    SubmissionState.RATE_LIMITED: 429,
    SubmissionState.REJECTED: 400,
    SubmissionState.TRANSPORT_ERROR: 502,
}

_BLOCKED_STATUS = {
    BlockReason.EMPTY_CART: 422,
    BlockReason.INVALID: 422,
    BlockReason.IN_FLIGHT: 409,
}


@router.get("")
async def get_checkout_state(session: UserSession = Depends(get_user_session)):
    """Values, field errors and message kept from the last attempt"""
    flow = session.checkout
    return {
        "state": flow.state.value,
        "values": flow.values,
        "field_errors": flow.field_errors,
        "message": flow.message,
        "cart": session.cart.to_dict(),
    }


@router.delete("/errors/{field_name}")
async def clear_field_error(
    field_name: str,
    session: UserSession = Depends(get_user_session),
):
    """Clear the flag on a field the customer has edited"""
    session.checkout.clear_field_error(field_name)
    return {"field_errors": session.checkout.field_errors}


@router.post("")
async def submit_checkout(
    data: dict[str, Any] = Body(...),
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
    locale: str = Depends(get_api_locale),
):
    """
    Place an order for the current cart.

    On success the cart is cleared and the response carries the
    confirmation URL. The one-shot "just placed" signal is stored on the
    session for the confirmation page.
    """
    outcome = await session.checkout.submit(session.cart, data, api, locale)

    if outcome.success:
        session.set_flash(JUST_PLACED_FLASH, outcome.order_number)
        return JSONResponse(status_code=201, content=outcome.to_dict())

    if outcome.blocked:
        status_code = _BLOCKED_STATUS[outcome.blocked]
    else:
        status_code = _FAILURE_STATUS[outcome.state]

    content = outcome.to_dict()
    content["values"] = outcome.values
    return JSONResponse(status_code=status_code, content=content)
