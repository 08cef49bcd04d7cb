"""
Storefront API Client

HTTP client for the shop backend (products, orders, admin orders).
Unwraps the backend's response envelope and raises ApiError on failure.
"""

import asyncio
import logging
from typing import Optional, Any

import httpx

from ..models.product import (
    Product,
    ProductListFilters,
    ProductListResponse,
    ProductCountResponse,
)
from ..models.order import (
    CreateOrderResponse,
    Order,
    OrderDetails,
    OrderListResponse,
    OrderRequest,
    OrderStatus,
    PaymentStatus,
)
from .errors import ApiError

logger = logging.getLogger(__name__)

SAFE_METHODS = ("GET", "HEAD", "OPTIONS")
CSRF_PATH = "/auth/csrf"


class StorefrontApiClient:
    """
    Client for the shop backend API.

    Every response is wrapped as ``{status, success, message, data,
    timestamp}``; the client returns ``data`` or raises ApiError.
    Mutating requests carry an ``X-CSRF-Token`` header.
    """

    def __init__(
        self,
        api_base_url: str,
        timeout: float = 15.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            api_base_url: Base URL of the backend API
            timeout: Per-request timeout in seconds
            max_retries: Retries for GET requests that fail with a 5xx
            retry_base_delay: First backoff delay, doubled on each retry
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = api_base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
        self._csrf_token: Optional[str] = None

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    # ==================== CSRF ====================

    async def _get_csrf_token(self, refresh: bool = False) -> Optional[str]:
        if self._csrf_token and not refresh:
            return self._csrf_token

        try:
            data = await self._request("GET", CSRF_PATH)
        except ApiError as e:
            # Continue without a token and let the server reject the request
            logger.warning(f"Failed to get CSRF token: {e}")
            return None

        token = data.get("csrf_token") if isinstance(data, dict) else None
        self._csrf_token = token
        return token

    async def _generate_headers(self, method: str, path: str, refresh_csrf: bool = False) -> dict[str, str]:
        """Generate headers including the CSRF token for mutating requests"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        if method not in SAFE_METHODS and not path.startswith(CSRF_PATH):
            token = await self._get_csrf_token(refresh=refresh_csrf)
            if token:
                headers["X-CSRF-Token"] = token

        return headers

    # ==================== Transport ====================

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> Optional[dict]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def _raise_for_envelope(self, response: httpx.Response) -> Any:
        envelope = self._parse_envelope(response)

        if response.status_code >= 400 or (envelope is not None and envelope.get("success") is False):
            message = envelope.get("message") if envelope else None
            data = envelope.get("data") if envelope else None
            logger.error(f"Request failed: {response.status_code} - {message or response.text[:200]}")
            raise ApiError(
                message if isinstance(message, str) else "",
                status=response.status_code,
                data=data,
            )

        if envelope is None:
            raise ApiError("", status=response.status_code)

        return envelope.get("data")

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
        refresh_csrf: bool = False,
    ) -> httpx.Response:
        headers = await self._generate_headers(method, path, refresh_csrf=refresh_csrf)
        try:
            return await self._http_client.request(
                method=method,
                url=path,
                params=params,
                headers=headers,
                json=body,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: {method} {path}")
            raise ApiError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"No response from server: {method} {path} - {e}")
            raise ApiError("No response received from server. Please check your network.") from e

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> Any:
        """Make an HTTP request and return the envelope's data"""
        attempt = 0
        csrf_retried = False

        while True:
            response = await self._send(method, path, params=params, body=body)

            # Idempotent requests are retried on server errors
            if (
                response.status_code >= 500
                and method in SAFE_METHODS
                and attempt < self.max_retries
            ):
                attempt += 1
                delay = self.retry_base_delay * (2 ** (attempt - 1))
                logger.info(
                    f"Retrying request ({attempt}/{self.max_retries}) after "
                    f"{response.status_code} error: {path}"
                )
                await asyncio.sleep(delay)
                continue

            # A stale CSRF token is refreshed once
            if response.status_code == 403 and method not in SAFE_METHODS and not csrf_retried:
                envelope = self._parse_envelope(response) or {}
                message = str(envelope.get("message") or "")
                if "csrf" in message.lower():
                    logger.info("CSRF token invalid, refreshing...")
                    csrf_retried = True
                    self._csrf_token = None
                    continue

            return self._raise_for_envelope(response)

    # ==================== Product APIs ====================

    async def list_products(self, filters: Optional[ProductListFilters] = None) -> ProductListResponse:
        """List products with optional filters"""
        params = filters.to_params() if filters else {}
        data = await self._request("GET", "/products", params=params)
        return ProductListResponse.model_validate(data or {})

    async def get_product(self, product_id: str, include_images: bool = True) -> Product:
        """Get product details"""
        data = await self._request(
            "GET",
            f"/products/{product_id}",
            params={"include_images": "true" if include_images else "false"},
        )
        if not isinstance(data, dict):
            raise ApiError("", status=200, data=data)
        return Product.model_validate(data.get("product", data))

    async def get_active_products(
        self,
        page: int = 1,
        page_size: int = 20,
        include_images: bool = True,
    ) -> ProductListResponse:
        """Get only active products"""
        data = await self._request(
            "GET",
            "/products/active",
            params={
                "page": page,
                "page_size": page_size,
                "include_images": "true" if include_images else "false",
            },
        )
        return ProductListResponse.model_validate(data or {})

    async def count_products(self, filters: Optional[ProductListFilters] = None) -> int:
        """Count products matching the filters"""
        params = filters.to_params() if filters else {}
        for key in ("page", "page_size", "include_images", "sort_by", "sort_direction"):
            params.pop(key, None)
        data = await self._request("GET", "/products/count", params=params)
        return ProductCountResponse.model_validate(data or {}).count

    # ==================== Order APIs ====================

    async def create_order(self, order: OrderRequest) -> CreateOrderResponse:
        """Create an order for a guest or logged-in customer"""
        data = await self._request(
            "POST",
            "/orders/create",
            body=order.model_dump(exclude_none=True),
        )
        if not isinstance(data, dict) or not data.get("order_number"):
            raise ApiError("", status=200, data=data)
        return CreateOrderResponse.model_validate(data)

    async def get_my_orders(self) -> list[Order]:
        """Get the logged-in customer's orders"""
        data = await self._request("GET", "/orders/my-orders")
        return [Order.model_validate(o) for o in (data or {}).get("orders", [])]

    async def get_my_order(self, order_id: str) -> OrderDetails:
        """Get one of the logged-in customer's orders"""
        data = await self._request("GET", f"/orders/my-orders/{order_id}")
        return OrderDetails.model_validate(data)

    # ==================== Admin order APIs ====================

    async def list_admin_orders(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> OrderListResponse:
        """List all orders with optional status filters"""
        params: dict[str, Any] = {"page": page, "page_size": page_size}
        if status:
            params["status"] = status.value
        if payment_status:
            params["payment_status"] = payment_status.value

        data = await self._request("GET", "/admin/orders", params=params)
        return OrderListResponse.model_validate(data or {})

    async def get_admin_order(self, order_id: str) -> OrderDetails:
        """Get any order with its lines"""
        data = await self._request("GET", f"/admin/orders/{order_id}")
        return OrderDetails.model_validate(data)

    async def attach_payment_link(self, order_id: str, payment_link: str) -> None:
        """Attach a Tikkie payment link to an order"""
        await self._request(
            "POST",
            f"/admin/orders/{order_id}/payment-link",
            body={"payment_link": payment_link},
        )

    async def mark_order_paid(self, order_id: str) -> None:
        """Mark an order as paid"""
        await self._request("POST", f"/admin/orders/{order_id}/mark-paid")

    async def update_order_status(self, order_id: str, status: OrderStatus) -> None:
        """Set an order's status; the backend decides whether the change is allowed"""
        await self._request(
            "PUT",
            f"/admin/orders/{order_id}/status",
            body={"status": status.value},
        )

    async def delete_order(self, order_id: str) -> None:
        """Soft delete an order"""
        await self._request("DELETE", f"/admin/orders/{order_id}")
