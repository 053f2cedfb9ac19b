"""Integration tests for Credits and AI API endpoints"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from config import ApplicationConfig
from src.domain.base import utcnow
from src.domain.errors import ConfigurationError

PREFIX = ApplicationConfig.API_PREFIX
USER = {"X-User-Id": "user_1"}
ADMIN = {"X-User-Id": "admin_1", "X-User-Role": "admin"}


class TestCreditsAPIIntegration:
    """Integration test suite for Credits API endpoints"""

    @pytest.mark.asyncio
    async def test_my_credits(self, client: AsyncClient, fund_account):
        await fund_account("user_1", balance=4)

        response = await client.get(f"{PREFIX}/credits/me", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == 4
        assert data["ai_available"] is True
        assert data["stats"]["current_balance"] == 4

    @pytest.mark.asyncio
    async def test_my_credits_without_account(self, client: AsyncClient):
        response = await client.get(f"{PREFIX}/credits/me", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == 0
        assert data["ai_available"] is False
        assert data["ai_unavailable_reason"] == "No credits available"

    @pytest.mark.asyncio
    async def test_admin_adds_credits(self, client: AsyncClient, fund_account):
        """POST /credits/{owner}/add by an admin returns the transaction"""
        # Arrange
        await fund_account("user_1", balance=2)

        # Act
        response = await client.post(f"{PREFIX}/credits/user_1/add", json={"amount": 10}, headers=ADMIN)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["transaction_type"] == "add"
        assert data["balance_before"] == 2
        assert data["balance_after"] == 12

    @pytest.mark.asyncio
    async def test_add_credits_requires_admin(self, client: AsyncClient):
        response = await client.post(f"{PREFIX}/credits/user_1/add", json={"amount": 10}, headers=USER)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    @pytest.mark.asyncio
    async def test_add_credits_rejects_zero(self, client: AsyncClient):
        response = await client.post(f"{PREFIX}/credits/user_1/add", json={"amount": 0}, headers=ADMIN)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_admin_resets_credits(self, client: AsyncClient, fund_account):
        await fund_account("user_1", balance=7)

        response = await client.post(f"{PREFIX}/credits/user_1/reset", json={"new_balance": 2}, headers=ADMIN)

        assert response.status_code == 200
        data = response.json()
        assert data["previous_balance"] == 7
        assert data["new_balance"] == 2
        assert data["transaction"]["amount"] == -5

    @pytest.mark.asyncio
    async def test_admin_grants_free_credits_once(self, client: AsyncClient):
        url = f"{PREFIX}/credits/user_1/free-credits"
        payload = {"registered_at": "2024-01-01T00:00:00Z"}

        first = await client.post(url, json=payload, headers=ADMIN)
        second = await client.post(url, json=payload, headers=ADMIN)

        assert first.status_code == 200
        assert first.json()["granted"] is True
        assert first.json()["balance"] == ApplicationConfig.FREE_CREDITS_AMOUNT
        assert second.json()["granted"] is False
        assert second.json()["reason"] == "already_granted"

    @pytest.mark.asyncio
    async def test_grant_on_behalf_requires_admin(self, client: AsyncClient):
        response = await client.post(
            f"{PREFIX}/credits/user_1/free-credits",
            json={"registered_at": "2000-01-01T00:00:00Z"},
            headers=USER,
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_self_service_ignores_claimed_registration_date(self, client: AsyncClient):
        """
        Given: A brand-new user
        When: Claiming free credits with a back-dated registration time in the body
        Then: The claim is judged on the credit account age and refused
        """
        # Act
        response = await client.post(
            f"{PREFIX}/credits/me/free-credits",
            json={"registered_at": "2000-01-01T00:00:00Z"},
            headers={"X-User-Id": "brand_new_user"},
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["granted"] is False
        assert response.json()["reason"] == "account_too_new"
        assert response.json()["balance"] == 0

    @pytest.mark.asyncio
    async def test_self_service_grant_for_established_account(self, client: AsyncClient, fund_account):
        await fund_account("user_1", balance=0, created_at=utcnow() - timedelta(days=2))

        response = await client.post(f"{PREFIX}/credits/me/free-credits", headers=USER)

        assert response.status_code == 200
        assert response.json()["granted"] is True
        assert response.json()["balance"] == ApplicationConfig.FREE_CREDITS_AMOUNT

    @pytest.mark.asyncio
    async def test_my_transactions(self, client: AsyncClient, create_media, fund_account):
        await fund_account("user_1", balance=3)
        resource = await create_media("user_1")
        await client.post(f"{PREFIX}/media/{resource.id}/rename", json={}, headers=USER)

        response = await client.get(f"{PREFIX}/credits/me/transactions", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["transactions"][0]["transaction_type"] == "deduct"
        assert data["transactions"][0]["resource_id"] == resource.id


class TestAIAPIIntegration:
    """Integration test suite for AI API endpoints"""

    @pytest.mark.asyncio
    async def test_availability(self, client: AsyncClient, fund_account):
        await fund_account("user_1", balance=1)

        response = await client.get(f"{PREFIX}/ai/availability", headers=USER)

        assert response.status_code == 200
        assert response.json()["available"] is True
        assert response.json()["balance"] == 1

    @pytest.mark.asyncio
    async def test_re_enable_after_disable(self, client: AsyncClient, gate):
        gate.disable("AI API key was rejected")

        unavailable = await client.get(f"{PREFIX}/ai/availability", headers=USER)
        forbidden = await client.post(f"{PREFIX}/ai/re-enable", headers=USER)
        response = await client.post(f"{PREFIX}/ai/re-enable", headers=ADMIN)

        assert unavailable.json()["reason"] == "AI features are temporarily disabled"
        assert forbidden.status_code == 403
        assert response.status_code == 200
        assert response.json()["re_enabled"] is True
        assert gate.is_available() is True

    @pytest.mark.asyncio
    async def test_connection_ok(self, client: AsyncClient):
        response = await client.post(f"{PREFIX}/ai/test-connection", headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["connected"] is True

    @pytest.mark.asyncio
    async def test_connection_rejected_key_disables_ai(self, client: AsyncClient, gate, name_generator):
        name_generator.error = ConfigurationError("AI API key was rejected (HTTP 401).")

        response = await client.post(f"{PREFIX}/ai/test-connection", headers=ADMIN)

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "CONFIGURATION_ERROR"
        assert gate.temporarily_disabled is True
