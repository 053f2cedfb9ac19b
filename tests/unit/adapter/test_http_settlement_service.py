"""Unit tests for HttpSettlementService using httpx.MockTransport"""

import json

import httpx
import pytest

from src.adapter.services.settlement_service import HttpSettlementService
from src.app.services.settlement_service import (
    SettlementNotConfiguredError,
    SettlementRejectedError,
    SettlementTransientError,
)


def service_with(handler, endpoint="https://credits.example.com/", api_key="secret"):
    return HttpSettlementService(endpoint, api_key, transport=httpx.MockTransport(handler))


async def deduct(service, attempt=1):
    return await service.deduct(
        owner_id="user_1", amount=1, request_id="req-1", operation="ai_rename", attempt=attempt
    )


@pytest.mark.asyncio
class TestHttpSettlementService:

    async def test_confirmed_request_shape(self):
        """
        Given: The remote service accepts the deduction
        When: Deducting on the third attempt
        Then: The request carries the request id, retry count and bearer token
        """
        # Arrange
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "remaining_balance": "4", "transaction_id": 991})

        # Act
        confirmation = await deduct(service_with(handler), attempt=3)

        # Assert
        assert confirmation.confirmed is True
        assert confirmation.request_id == "req-1"
        assert confirmation.remaining_balance == 4
        assert confirmation.transaction_id == "991"
        assert seen["url"] == "https://credits.example.com/v1/credits/deduct"
        assert seen["headers"]["Authorization"] == "Bearer secret"
        assert seen["headers"]["X-Request-ID"] == "req-1"
        assert seen["headers"]["X-Retry-Count"] == "2"
        assert seen["body"]["user_id"] == "user_1"
        assert seen["body"]["amount"] == 1
        assert seen["body"]["retry_count"] == 2
        assert "timestamp" in seen["body"]

    async def test_success_false_is_declined(self):
        service = service_with(lambda request: httpx.Response(200, json={"success": False, "message": "frozen"}))

        with pytest.raises(SettlementRejectedError) as exc_info:
            await deduct(service)

        assert exc_info.value.reason == "declined"
        assert "frozen" in str(exc_info.value)

    @pytest.mark.parametrize(
        "status, reason",
        [(402, "insufficient"), (401, "auth"), (403, "auth"), (400, "bad_request"), (404, "declined")],
    )
    async def test_terminal_statuses(self, status, reason):
        service = service_with(lambda request: httpx.Response(status, text="nope"))

        with pytest.raises(SettlementRejectedError) as exc_info:
            await deduct(service)

        assert exc_info.value.reason == reason

    @pytest.mark.parametrize("status", [500, 502, 503])
    async def test_server_errors_are_transient(self, status):
        service = service_with(lambda request: httpx.Response(status))

        with pytest.raises(SettlementTransientError):
            await deduct(service)

    async def test_rate_limit_carries_retry_after(self):
        service = service_with(lambda request: httpx.Response(429, headers={"Retry-After": "12"}))

        with pytest.raises(SettlementTransientError) as exc_info:
            await deduct(service)

        assert exc_info.value.retry_after == 12.0

    @pytest.mark.parametrize("remaining", ["n/a", {"credits": 4}, [4]])
    async def test_malformed_remaining_balance_still_confirms(self, remaining):
        """
        Given: The remote service confirms but reports a balance that is not a number
        When: Deducting
        Then: The deduction is confirmed without a remaining balance
        """
        service = service_with(
            lambda request: httpx.Response(200, json={"success": True, "remaining_balance": remaining})
        )

        confirmation = await deduct(service)

        assert confirmation.confirmed is True
        assert confirmation.remaining_balance is None

    async def test_malformed_body_is_transient(self):
        service = service_with(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(SettlementTransientError, match="Invalid JSON"):
            await deduct(service)

    async def test_timeout_is_transient(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(SettlementTransientError, match="timed out"):
            await deduct(service_with(handler))

    async def test_connection_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SettlementTransientError, match="connection failed"):
            await deduct(service_with(handler))

    @pytest.mark.parametrize("endpoint, api_key", [("", "secret"), ("https://credits.example.com", "")])
    async def test_not_configured(self, endpoint, api_key):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(SettlementNotConfiguredError):
            await deduct(service_with(handler, endpoint=endpoint, api_key=api_key))
