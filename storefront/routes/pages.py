"""Server-rendered storefront pages"""

import logging
import os
from functools import partial
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from ..core.cart import ProductSnapshot
from ..core.config import settings
from ..core.i18n import format_price, iter_supported_locales, translate
from ..core.session import UserSession
from ..models.product import ProductListFilters, ProductListResponse, ProductType
from ..security.session_middleware import get_user_session
from ..services.api_client import StorefrontApiClient
from ..services.errors import ApiError
from .checkout import JUST_PLACED_FLASH
from .dependencies import get_api_client, get_locale

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])

templates_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
templates = Jinja2Templates(directory=templates_dir)

PRODUCTS_PAGE_SIZE = 12


def _render(
    request: Request,
    name: str,
    locale: str,
    session: UserSession,
    status_code: int = 200,
    **context,
):
    other_locale = next(code for code in iter_supported_locales() if code != locale)
    return templates.TemplateResponse(
        request,
        name,
        {
            "title": settings.app_name,
            "locale": locale,
            "other_locale": other_locale,
            "t": partial(translate, locale=locale),
            "price": partial(format_price, locale=locale),
            "cart_count": session.cart.item_count,
            **context,
        },
        status_code=status_code,
    )


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _local_path(target: Optional[str], fallback: str) -> str:
    # Only same-site paths are followed
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return fallback


async def _fetch_product(api: StorefrontApiClient, product_id: str):
    try:
        return await api.get_product(product_id)
    except ApiError as e:
        if e.status == 404:
            raise HTTPException(status_code=404, detail="Product not found")
        logger.error(f"Could not load product {product_id}: {e}")
        raise HTTPException(status_code=502, detail="Product service unavailable")


# ==================== Catalog ====================

@router.get("/{locale}")
async def home(
    request: Request,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
):
    """Landing page with a few active products"""
    try:
        featured = (await api.get_active_products(page=1, page_size=6)).products
    except ApiError as e:
        logger.warning(f"Featured products unavailable: {e}")
        featured = []

    return _render(
        request,
        "index.html",
        locale,
        session,
        products=featured,
        notice=session.cart.pop_notice(),
    )


@router.get("/{locale}/products")
async def products(
    request: Request,
    page: int = Query(1, ge=1),
    product_type: Optional[ProductType] = Query(None, alias="type"),
    search: Optional[str] = Query(None),
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
):
    """Paginated catalog of active products"""
    filters = ProductListFilters(
        page=page,
        page_size=PRODUCTS_PAGE_SIZE,
        is_active=True,
        product_type=product_type,
        search=search or None,
        include_images=True,
    )
    try:
        listing = await api.list_products(filters)
    except ApiError as e:
        logger.warning(f"Product list unavailable: {e}")
        listing = ProductListResponse()

    return _render(
        request,
        "products.html",
        locale,
        session,
        listing=listing,
        product_type=product_type.value if product_type else None,
        notice=session.cart.pop_notice(),
    )


@router.get("/{locale}/products/{product_id}")
async def product_detail(
    request: Request,
    product_id: str,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
):
    """Product detail page"""
    product = await _fetch_product(api, product_id)
    line = session.cart.get(product.id)

    return _render(
        request,
        "product.html",
        locale,
        session,
        product=product,
        in_cart=line.quantity if line else 0,
        notice=session.cart.pop_notice(),
    )


# ==================== Cart ====================

@router.post("/{locale}/cart/add/{product_id}")
async def add_to_cart(
    request: Request,
    product_id: str,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
):
    """Add one unit and go back to where the button was pressed"""
    product = await _fetch_product(api, product_id)
    session.cart.add(ProductSnapshot.from_product(product))

    form = await request.form()
    return _redirect(_local_path(form.get("next"), f"/{locale}/products/{product_id}"))


@router.get("/{locale}/cart")
async def cart_page(
    request: Request,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
):
    """Cart contents with totals"""
    return _render(
        request,
        "cart.html",
        locale,
        session,
        cart=session.cart,
        notice=session.cart.pop_notice(),
        free_shipping_threshold=int(settings.free_shipping_threshold * 100),
    )


@router.post("/{locale}/cart/update/{product_id}")
async def update_cart_item(
    request: Request,
    product_id: str,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
):
    form = await request.form()
    try:
        quantity = int(form.get("quantity", ""))
    except ValueError:
        return _redirect(f"/{locale}/cart")

    session.cart.set_quantity(product_id, quantity)
    return _redirect(f"/{locale}/cart")


@router.post("/{locale}/cart/remove/{product_id}")
async def remove_cart_item(
    product_id: str,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
):
    session.cart.remove(product_id)
    return _redirect(f"/{locale}/cart")


@router.post("/{locale}/cart/clear")
async def clear_cart(
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
):
    session.cart.clear()
    return _redirect(f"/{locale}/cart")


# ==================== Checkout ====================

@router.get("/{locale}/checkout")
async def checkout_page(
    request: Request,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
):
    """Checkout form, pre-filled with the values of the last attempt"""
    flow = session.checkout
    values = {"country": settings.default_country, **flow.values}

    return _render(
        request,
        "checkout.html",
        locale,
        session,
        cart=session.cart,
        values=values,
        errors=flow.field_errors,
        message=flow.pop_message(),
        submitting=flow.in_flight,
    )


@router.post("/{locale}/checkout")
async def submit_checkout(
    request: Request,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
    api: StorefrontApiClient = Depends(get_api_client),
):
    """Place the order; failures re-render the form with everything kept"""
    form = await request.form()
    data = {key: value for key, value in form.items() if isinstance(value, str)}

    outcome = await session.checkout.submit(session.cart, data, api, locale)

    if outcome.success:
        session.set_flash(JUST_PLACED_FLASH, outcome.order_number)
        return _redirect(outcome.redirect_url)

    # Rendered here, so a later visit starts without it
    session.checkout.pop_message()
    return _render(
        request,
        "checkout.html",
        locale,
        session,
        status_code=200 if outcome.blocked else 400,
        cart=session.cart,
        values={"country": settings.default_country, **outcome.values},
        errors=outcome.field_errors,
        message=outcome.message,
        submitting=False,
    )


@router.get("/{locale}/order-confirmation/{order_number}")
async def order_confirmation(
    request: Request,
    order_number: str,
    locale: str = Depends(get_locale),
    session: UserSession = Depends(get_user_session),
):
    """
    Confirmation page.

    The celebration only shows on the first render after checkout; a
    refresh or a later visit renders the plain page.
    """
    just_placed = session.pop_flash(JUST_PLACED_FLASH)
    if just_placed is not None and just_placed != order_number:
        # Keep the signal for the order it belongs to
        session.set_flash(JUST_PLACED_FLASH, just_placed)

    return _render(
        request,
        "confirmation.html",
        locale,
        session,
        order_number=order_number,
        celebrate=just_placed == order_number,
    )
