"""
Unit Tests: order failure classification
"""

import pytest

from storefront.services.errors import (
    ApiError,
    RateLimited,
    Rejected,
    TransportFailure,
    classify_failure,
)


class TestClassifyFailure:

    def test_429_with_cooldown_is_rate_limited(self):
        error = ApiError("Too many orders", status=429, data={"cooldown_minutes": 15})

        assert classify_failure(error) == RateLimited(cooldown_minutes=15)

    @pytest.mark.parametrize("data", [None, {}, {"cooldown_minutes": "soon"}, {"cooldown_minutes": 0}, [15]])
    def test_429_without_usable_cooldown_uses_default(self, data):
        error = ApiError("", status=429, data=data)

        assert classify_failure(error) == RateLimited(cooldown_minutes=30)

    def test_default_cooldown_can_be_overridden(self):
        error = ApiError("", status=429)

        assert classify_failure(error, default_cooldown=45) == RateLimited(cooldown_minutes=45)

    def test_server_message_is_rejected(self):
        error = ApiError("error.order.insufficientStock", status=400)

        assert classify_failure(error) == Rejected(message="error.order.insufficientStock")

    def test_5xx_with_message_is_rejected(self):
        assert classify_failure(ApiError("Database unavailable", status=503)) == Rejected(
            message="Database unavailable"
        )

    def test_error_without_message_is_transport(self):
        assert isinstance(classify_failure(ApiError("", status=500)), TransportFailure)

    def test_no_response_is_transport(self):
        error = ApiError("Request timed out")

        assert error.is_transport_error
        assert isinstance(classify_failure(error), TransportFailure)

    def test_other_exceptions_are_transport(self):
        assert isinstance(classify_failure(RuntimeError("boom")), TransportFailure)


class TestApiError:

    def test_str_falls_back_to_status(self):
        error = ApiError(status=502)

        assert error.message == ""
        assert str(error) == "Request failed with status 502"

    def test_message_is_kept(self):
        error = ApiError("Not found", status=404, data={"id": "p1"})

        assert str(error) == "Not found"
        assert error.data == {"id": "p1"}
        assert not error.is_transport_error
