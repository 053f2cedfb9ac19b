"""Unit tests for HttpNameGenerationService using httpx.MockTransport"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock

from src.adapter.services.name_generation_service import (
    HttpNameGenerationService,
    summarize_content,
    summarize_context,
)
from src.app.services.content_analyzer import ContentAnalysis
from src.app.services.context_extractor import PageContext
from src.domain.errors import AIServiceError, ConfigurationError

ENDPOINT = "https://ai.example.com/v1/names"


@pytest.fixture
def analysis():
    return ContentAnalysis(
        descriptor="Red bicycle leaning on a wall",
        extracted_text="A red bicycle",
        detected_objects=["bicycle", "wall"],
        file_type="image",
    )


@pytest.fixture
def context():
    return PageContext(keywords=["cycling", "urban"], page_titles=["City rides"])


def service_with(responses, sleep=None, **kwargs):
    """Serve ``responses`` in order; each is an httpx.Response or an exception to raise"""
    calls = []
    queue = list(responses)

    def handler(request):
        calls.append(json.loads(request.content))
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    service = HttpNameGenerationService(
        ENDPOINT,
        kwargs.pop("api_key", "key"),
        sleep=sleep or AsyncMock(),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )
    return service, calls


class TestPromptBuilding:

    def test_summaries(self, analysis, context):
        content = summarize_content(analysis)

        assert "File type: image" in content
        assert "Description: Red bicycle leaning on a wall" in content
        assert "Detected objects: bicycle, wall" in content
        assert summarize_context(context) == "Page titles: City rides. SEO keywords: cycling, urban"

    def test_empty_summaries(self):
        assert summarize_content(ContentAnalysis(descriptor="")) == "No content analysis available"
        assert summarize_context(PageContext()) == "No context available"

    def test_custom_template(self, analysis, context):
        service = HttpNameGenerationService(ENDPOINT, "key", prompt_template="C={content} P={context}")

        prompt = service.build_prompt(analysis, context)

        assert prompt.startswith("C=File type: image")
        assert "P=Page titles: City rides" in prompt


@pytest.mark.asyncio
class TestGenerate:

    async def test_suggestions_are_sanitized(self, analysis, context):
        """
        Given: The service returns mixed formats with an extension and a duplicate
        When: Generating 3 names
        Then: Clean unique slugs are returned in order
        """
        # Arrange
        service, calls = service_with([
            httpx.Response(200, json={"suggestions": [
                "Red Bicycle.JPG",
                {"name": "urban-cycling-wall"},
                "red bicycle",
                "x",
                42,
            ]}),
        ])

        # Act
        names = await service.generate(analysis, context, count=3)

        # Assert
        assert names == ["red-bicycle", "urban-cycling-wall"]
        assert calls[0]["count"] == 3
        assert calls[0]["max_length"] == 50
        assert calls[0]["format"] == "seo_filename"
        assert "Red bicycle leaning on a wall" in calls[0]["prompt"]

    async def test_count_caps_result(self, analysis, context):
        service, _ = service_with([httpx.Response(200, json={"suggestions": ["alpha-one", "beta-two"]})])

        assert await service.generate(analysis, context, count=1) == ["alpha-one"]

    async def test_retries_transient_failures(self, analysis, context):
        sleep = AsyncMock()
        service, calls = service_with(
            [httpx.Response(503), httpx.Response(200, json={"suggestions": ["red-bicycle"]})],
            sleep=sleep,
            max_retries=2,
        )

        names = await service.generate(analysis, context, count=1)

        assert names == ["red-bicycle"]
        assert len(calls) == 2
        sleep.assert_awaited_once_with(1.0)

    async def test_gives_up_after_max_retries(self, analysis, context):
        service, calls = service_with(
            [httpx.ReadTimeout("slow"), httpx.Response(429), httpx.Response(200, text="not json")],
            max_retries=3,
        )

        with pytest.raises(AIServiceError, match="failed after 3 attempts"):
            await service.generate(analysis, context, count=1)
        assert len(calls) == 3

    async def test_rejected_key_is_configuration_error(self, analysis, context):
        service, calls = service_with([httpx.Response(401)], max_retries=3)

        with pytest.raises(ConfigurationError):
            await service.generate(analysis, context, count=1)
        assert len(calls) == 1

    async def test_client_error_is_not_retried(self, analysis, context):
        service, calls = service_with([httpx.Response(422)], max_retries=3)

        with pytest.raises(AIServiceError, match="HTTP 422"):
            await service.generate(analysis, context, count=1)
        assert len(calls) == 1

    @pytest.mark.parametrize("body", [{"suggestions": []}, {"suggestions": ["!!", "a"]}, {"names": ["x-y-z"]}])
    async def test_no_usable_suggestions(self, analysis, context, body):
        service, _ = service_with([httpx.Response(200, json=body)])

        with pytest.raises(AIServiceError, match="no valid suggestions"):
            await service.generate(analysis, context, count=3)

    async def test_missing_api_key(self, analysis, context):
        service, calls = service_with([], api_key="")

        with pytest.raises(ConfigurationError, match="API key not configured"):
            await service.generate(analysis, context, count=1)
        assert calls == []

    async def test_connection_check_makes_single_attempt(self):
        service, calls = service_with([httpx.Response(200, json={"suggestions": ["test-connection"]})], max_retries=3)

        assert await service.test_connection() is True
        assert calls[0]["prompt"] == "Test connection"
        assert calls[0]["count"] == 1
