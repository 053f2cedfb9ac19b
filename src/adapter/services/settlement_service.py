"""HTTP Remote Settlement Service

Charges credits on the remote credit service over HTTPS before the local
ledger is updated.
"""

import logging
from typing import Optional
import httpx
from src.app.services.settlement_service import (
    RemoteSettlementService,
    SettlementConfirmation,
    SettlementNotConfiguredError,
    SettlementRejectedError,
    SettlementTransientError,
)
from src.domain.base import utcnow

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "seo-media-renamer/1.0"


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _remaining_balance(value, request_id: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        # The deduction is confirmed either way
        logger.warning(f"Ignoring malformed remaining_balance {value!r} for settlement request {request_id}")
        return None


class HttpSettlementService(RemoteSettlementService):
    """
    POST {endpoint}/v1/credits/deduct

    Status mapping:
        200 + success=true  -> confirmation
        200 + success=false -> declined
        402                 -> insufficient
        401 / 403           -> auth
        400                 -> bad_request
        429, 5xx, timeout, connection error, malformed body -> transient
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = (endpoint or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    @property
    def url(self) -> str:
        return f"{self.endpoint}/v1/credits/deduct"

    async def deduct(
        self,
        owner_id: str,
        amount: int,
        request_id: str,
        operation: str,
        attempt: int = 1,
    ) -> SettlementConfirmation:
        if not self.endpoint or not self.api_key:
            raise SettlementNotConfiguredError("Credit settlement service is not configured")

        payload = {
            "user_id": owner_id,
            "amount": amount,
            "operation": operation,
            "timestamp": utcnow().isoformat(),
            "request_id": request_id,
            "retry_count": attempt - 1,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            "X-Request-ID": request_id,
            "X-Retry-Count": str(attempt - 1),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise SettlementTransientError(f"Credit settlement timed out: {e}")
        except httpx.HTTPError as e:
            raise SettlementTransientError(f"Credit settlement connection failed: {e}")

        status = response.status_code
        if status == 200:
            try:
                body = response.json()
            except ValueError:
                raise SettlementTransientError("Invalid JSON response from credit settlement service")
            if not isinstance(body, dict) or not body.get("success"):
                message = body.get("message") if isinstance(body, dict) else None
                raise SettlementRejectedError(message or "Credit deduction declined", reason="declined")

            return SettlementConfirmation(
                confirmed=True,
                request_id=request_id,
                remaining_balance=_remaining_balance(body.get("remaining_balance"), request_id),
                transaction_id=str(body["transaction_id"]) if body.get("transaction_id") is not None else None,
            )

        logger.warning(f"Credit settlement returned HTTP {status} for request {request_id} (attempt {attempt})")

        if status == 402:
            raise SettlementRejectedError("Insufficient credits on remote account", reason="insufficient")
        if status in (401, 403):
            raise SettlementRejectedError("Credit settlement authentication failed", reason="auth")
        if status == 429:
            raise SettlementTransientError("Credit settlement rate limited", retry_after=_retry_after(response))
        if status == 400:
            raise SettlementRejectedError(f"Credit settlement rejected the request: {response.text[:200]}", reason="bad_request")
        if status >= 500:
            raise SettlementTransientError(f"Credit settlement server error (HTTP {status})")
        raise SettlementRejectedError(f"Unexpected credit settlement response (HTTP {status})", reason="declined")
