"""Integration tests for Media API endpoints"""

import pytest
from httpx import AsyncClient

from config import ApplicationConfig
from src.domain.errors import AIServiceError

PREFIX = ApplicationConfig.API_PREFIX
USER = {"X-User-Id": "user_1"}


class TestMediaAPIIntegration:
    """Integration test suite for Media API endpoints"""

    @pytest.mark.asyncio
    async def test_rename_success(self, client: AsyncClient, create_media, fund_account):
        """POST /media/{id}/rename returns 200 and charges one credit"""
        # Arrange
        await fund_account("user_1", balance=3)
        resource = await create_media("user_1")

        # Act
        response = await client.post(f"{PREFIX}/media/{resource.id}/rename", json={}, headers=USER)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["method"] == "ai"
        assert data["filename"] == "red-bicycle-city-street.jpg"
        assert data["credits_used"] == 1
        assert data["current_balance"] == 2

    @pytest.mark.asyncio
    async def test_rename_without_credits_returns_402(self, client: AsyncClient, create_media):
        resource = await create_media("user_1")

        response = await client.post(f"{PREFIX}/media/{resource.id}/rename", json={}, headers=USER)

        assert response.status_code == 402
        data = response.json()
        assert data["error_kind"] == "credit_error"
        assert data["shortfall"] == 1
        assert data["manual_path_available"] is True

    @pytest.mark.asyncio
    async def test_rename_missing_resource_returns_404(self, client: AsyncClient, fund_account):
        await fund_account("user_1", balance=3)

        response = await client.post(f"{PREFIX}/media/9999/rename", json={}, headers=USER)

        assert response.status_code == 404
        assert response.json()["details"]["code"] == "RESOURCE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_rename_foreign_resource_returns_403(self, client: AsyncClient, create_media, fund_account):
        await fund_account("user_1", balance=3)
        resource = await create_media("user_2")

        response = await client.post(f"{PREFIX}/media/{resource.id}/rename", json={}, headers=USER)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rename_invalid_name_returns_400(self, client: AsyncClient, create_media, fund_account):
        await fund_account("user_1", balance=3)
        resource = await create_media("user_1")

        response = await client.post(
            f"{PREFIX}/media/{resource.id}/rename",
            json={"selected_name": "bad name!"},
            headers=USER,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_kind"] == "validation_error"
        assert data["manual_path_available"] is False

    @pytest.mark.asyncio
    async def test_rename_requires_identity(self, client: AsyncClient, create_media):
        resource = await create_media("user_1")

        response = await client.post(f"{PREFIX}/media/{resource.id}/rename", json={})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_ai_outage_renames_with_fallback(
        self, client: AsyncClient, name_generator, create_media, fund_account
    ):
        """AI failures still rename the file, free of charge"""
        # Arrange
        await fund_account("user_1", balance=3)
        resource = await create_media("user_1")
        name_generator.error = AIServiceError("AI service request failed: HTTP 503")

        # Act
        response = await client.post(f"{PREFIX}/media/{resource.id}/rename", json={}, headers=USER)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["method"] == "fallback"
        assert data["filename"] == "red-bicycle-on-a-city-street.jpg"
        assert data["credits_used"] == 0

    @pytest.mark.asyncio
    async def test_suggestions(self, client: AsyncClient, create_media):
        resource = await create_media("user_1")

        response = await client.post(
            f"{PREFIX}/media/{resource.id}/suggestions", json={"count": 2}, headers=USER
        )

        assert response.status_code == 200
        assert response.json()["suggestions"] == ["red-bicycle-city-street", "urban-cycling-photo"]

    @pytest.mark.asyncio
    async def test_suggestions_rate_limited(self, client: AsyncClient, create_media, monkeypatch):
        """The second request inside the window is refused with Retry-After"""
        # Arrange
        monkeypatch.setattr(ApplicationConfig, "RATE_LIMITS", {"ai_suggestions": {"requests": 1, "window": 300}})
        resource = await create_media("user_1")
        url = f"{PREFIX}/media/{resource.id}/suggestions"

        # Act
        first = await client.post(url, json={"count": 1}, headers=USER)
        second = await client.post(url, json={"count": 1}, headers=USER)

        # Assert
        assert first.status_code == 200
        assert second.status_code == 429
        assert 0 < int(second.headers["Retry-After"]) <= 300
        assert second.json()["retry_after"] == int(second.headers["Retry-After"])

    @pytest.mark.asyncio
    async def test_bulk_rename(self, client: AsyncClient, create_media, fund_account):
        await fund_account("user_1", balance=1)
        first = await create_media("user_1", filename="IMG_1")
        second = await create_media("user_1", filename="IMG_2")

        response = await client.post(
            f"{PREFIX}/media/rename-bulk",
            json={"resource_ids": [first.id, second.id]},
            headers=USER,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["total"] == 2
        assert data["summary"]["successful_count"] == 1
        assert data["summary"]["errors_by_kind"] == {"credit_error": 1}
        assert [r["resource_id"] for r in data["results"]] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_manual_rename_and_history(self, client: AsyncClient, create_media):
        resource = await create_media("user_1")

        response = await client.post(
            f"{PREFIX}/media/{resource.id}/rename-manual",
            json={"new_name": "spring-sale-banner.png"},
            headers=USER,
        )
        history = await client.get(f"{PREFIX}/media/{resource.id}/history", headers=USER)

        assert response.status_code == 200
        assert response.json()["filename"] == "spring-sale-banner.jpg"
        assert history.status_code == 200
        records = history.json()
        assert len(records) == 1
        assert records[0]["method"] == "manual"
        assert records[0]["previous_name"] == "IMG_0042.jpg"
        assert records[0]["selected_name"] == "spring-sale-banner.jpg"

    @pytest.mark.asyncio
    async def test_history_of_foreign_resource_is_forbidden(self, client: AsyncClient, create_media):
        resource = await create_media("user_2")

        response = await client.get(f"{PREFIX}/media/{resource.id}/history", headers=USER)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    @pytest.mark.asyncio
    async def test_history_of_missing_resource(self, client: AsyncClient):
        response = await client.get(f"{PREFIX}/media/9999/history", headers=USER)

        assert response.status_code == 404
