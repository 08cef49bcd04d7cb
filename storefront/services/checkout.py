"""
Checkout flow

Validates the checkout form, turns the cart into exactly one order
request, and interprets the backend's answer:

    Idle -> Submitting -> (Success | RateLimited | Rejected | TransportError)

Only Success takes the ordered lines out of the cart. Every other outcome
returns the flow to Idle with the entered values kept so the customer can
correct and resubmit.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

from pydantic import ValidationError

from ..core.cart import CartStore
from ..core.config import settings
from ..core.i18n import has_message, translate
from ..models.checkout import CheckoutForm
from .api_client import StorefrontApiClient
from .errors import (
    ApiError,
    RateLimited,
    Rejected,
    SubmissionFailure,
    classify_failure,
)

logger = logging.getLogger(__name__)

_ERROR_KINDS = {
    "missing": "required",
    "string_too_short": "tooShort",
    "string_too_long": "tooLong",
}


class SubmissionState(str, Enum):
    """State of a checkout submission"""
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


class BlockReason(str, Enum):
    """Why a submission never reached the backend"""
    EMPTY_CART = "empty_cart"
    INVALID = "invalid"
    IN_FLIGHT = "in_flight"


def _message_key(field_name: str, error_type: str, value: Any) -> str:
    kind = _ERROR_KINDS.get(error_type, "invalid")
    if kind == "tooShort" and isinstance(value, str) and not value.strip():
        kind = "required"
    return f"validation.{field_name}.{kind}"


def validate_checkout(
    data: dict[str, Any],
    locale: Optional[str] = None,
) -> tuple[Optional[CheckoutForm], dict[str, str]]:
    """
    Validate checkout input in one pass.

    Returns the parsed form, or None together with a map of every failing
    field to its localized message. Fields are checked independently.
    """
    try:
        form = CheckoutForm.model_validate(data)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            if not error["loc"]:
                continue
            field_name = str(error["loc"][0])
            if field_name in errors:
                continue
            key = _message_key(field_name, error["type"], data.get(field_name))
            errors[field_name] = translate(key, locale)
        return None, errors

    return form, {}


def failure_message(failure: SubmissionFailure, locale: Optional[str] = None) -> str:
    """Localized text shown to the customer for a failed submission"""
    if isinstance(failure, RateLimited):
        return translate(
            "toasts.apiErrors.rateLimitDescription",
            locale,
            minutes=failure.cooldown_minutes,
        )

    if isinstance(failure, Rejected):
        message = failure.message
        # Backend error codes such as "error.order.insufficientStock"
        if message.startswith(("error.", "success.")) and has_message(f"backend.{message}", locale):
            return translate(f"backend.{message}", locale)
        return message

    return translate("toasts.apiErrors.requestFailed", locale)


def confirmation_url(locale: str, order_number: str) -> str:
    return f"/{locale}/order-confirmation/{quote(order_number, safe='')}"


@dataclass
class CheckoutOutcome:
    """Result of one submit attempt"""
    state: SubmissionState
    values: dict[str, Any] = field(default_factory=dict)
    field_errors: dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None
    blocked: Optional[BlockReason] = None
    failure: Optional[SubmissionFailure] = None
    order_number: Optional[str] = None
    redirect_url: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state == SubmissionState.SUCCESS

    @property
    def just_placed(self) -> bool:
        return self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "success": self.success,
            "message": self.message,
            "field_errors": self.field_errors,
            "blocked": self.blocked.value if self.blocked else None,
            "order_number": self.order_number,
            "redirect_url": self.redirect_url,
            "just_placed": self.just_placed,
        }


class CheckoutFlow:
    """
    Checkout state for one browser session.

    Holds the last entered values and field errors between attempts and
    refuses a second submission while one is in flight.
    """

    def __init__(self, cooldown_default: Optional[int] = None):
        self.state = SubmissionState.IDLE
        self.values: dict[str, Any] = {}
        self.field_errors: dict[str, str] = {}
        self.message: Optional[str] = None
        self.cooldown_default = cooldown_default or settings.rate_limit_default_minutes

    @property
    def in_flight(self) -> bool:
        return self.state == SubmissionState.SUBMITTING

    def clear_field_error(self, field_name: str) -> None:
        """Drop the flag on one edited field, leaving the others"""
        self.field_errors.pop(field_name, None)

    def pop_message(self) -> Optional[str]:
        """Return the last attempt's message once, then forget it"""
        message, self.message = self.message, None
        return message

    def _blocked(self, reason: BlockReason, message: Optional[str]) -> CheckoutOutcome:
        self.message = message
        return CheckoutOutcome(
            state=self.state,
            values=dict(self.values),
            field_errors=dict(self.field_errors),
            message=message,
            blocked=reason,
        )

    async def submit(
        self,
        cart: CartStore,
        data: dict[str, Any],
        api: StorefrontApiClient,
        locale: str,
    ) -> CheckoutOutcome:
        """Validate, send one order request, and apply the outcome"""
        if self.in_flight:
            return self._blocked(
                BlockReason.IN_FLIGHT,
                translate("order.checkout.alreadySubmitting", locale),
            )

        self.values = {key: value for key, value in data.items() if isinstance(value, str)}
        form, self.field_errors = validate_checkout(data, locale)

        if cart.is_empty:
            return self._blocked(
                BlockReason.EMPTY_CART,
                translate("order.checkout.emptyCart", locale),
            )
        if form is None:
            return self._blocked(
                BlockReason.INVALID,
                translate("order.checkout.fixErrors", locale),
            )

        order = form.to_order_request(cart.products_map())
        self.state = SubmissionState.SUBMITTING
        self.message = None
        logger.info(f"Submitting order with {cart.item_count} items ({len(order.products)} products)")

        try:
            response = await api.create_order(order)
        except (ApiError, ValidationError) as e:
            # An unexpected success body counts as a transport failure
            failure = classify_failure(e, self.cooldown_default)
            return self._fail(failure, locale)
        finally:
            if self.state == SubmissionState.SUBMITTING:
                self.state = SubmissionState.IDLE

        # Only a confirmed order number takes the ordered lines out
        cart.discard_ordered(order.products)
        self.values = {}
        self.field_errors = {}
        logger.info(f"Order {response.order_number} placed")

        return CheckoutOutcome(
            state=SubmissionState.SUCCESS,
            message=translate("order.checkout.orderSuccess", locale),
            order_number=response.order_number,
            redirect_url=confirmation_url(locale, response.order_number),
        )

    def _fail(self, failure: SubmissionFailure, locale: str) -> CheckoutOutcome:
        if isinstance(failure, RateLimited):
            state = SubmissionState.RATE_LIMITED
        elif isinstance(failure, Rejected):
            state = SubmissionState.REJECTED
        else:
            state = SubmissionState.TRANSPORT_ERROR

        message = failure_message(failure, locale)
        self.message = message
        logger.warning(f"Order submission failed: {state.value} ({failure})")

        return CheckoutOutcome(
            state=state,
            values=dict(self.values),
            field_errors={},
            message=message,
            failure=failure,
        )
