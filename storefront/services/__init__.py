# Storefront Services

from .errors import ApiError, RateLimited, Rejected, TransportFailure, classify_failure
from .api_client import StorefrontApiClient
from .checkout import CheckoutFlow, CheckoutOutcome, SubmissionState, validate_checkout

__all__ = [
    "ApiError",
    "RateLimited",
    "Rejected",
    "TransportFailure",
    "classify_failure",
    "StorefrontApiClient",
    "CheckoutFlow",
    "CheckoutOutcome",
    "SubmissionState",
    "validate_checkout",
]
