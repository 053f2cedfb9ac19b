"""HTTP Name Generation Service

Asks the remote AI service for SEO filename suggestions.
"""

import logging
from typing import List, Optional
import httpx
from libs.backoff import Sleeper, backoff_delay, default_sleep
from src.app.services.content_analyzer import ContentAnalysis
from src.app.services.context_extractor import PageContext
from src.app.services.name_generation_service import NameGenerationService
from src.domain.errors import AIServiceError, ConfigurationError
from src.domain.naming import sanitize_suggestions

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "seo-media-renamer/1.0"
SUGGESTION_MAX_LENGTH = 50
SUGGESTION_MIN_LENGTH = 3

DEFAULT_PROMPT_TEMPLATE = (
    "Generate SEO-optimized filename suggestions for a media file based on the following information:\n\n"
    "Content Analysis: {content}\n\n"
    "Page Context: {context}\n\n"
    "Requirements:\n"
    "- Generate 1-3 short, descriptive filenames\n"
    "- Use hyphens to separate words\n"
    "- Focus on SEO keywords and relevance\n"
    "- Keep names under 50 characters\n"
    "- Use only lowercase letters, numbers, and hyphens\n"
    "- Make names descriptive and meaningful\n\n"
    "Return only the filename suggestions without extensions."
)


def summarize_content(analysis: ContentAnalysis) -> str:
    parts = []
    if analysis.file_type and analysis.file_type != "unknown":
        parts.append(f"File type: {analysis.file_type}")
    if analysis.descriptor:
        parts.append(f"Description: {analysis.descriptor}")
    if analysis.extracted_text:
        parts.append(f"Extracted text: {analysis.extracted_text[:200]}")
    if analysis.detected_objects:
        parts.append(f"Detected objects: {', '.join(analysis.detected_objects)}")
    return ". ".join(parts) if parts else "No content analysis available"


def summarize_context(context: PageContext) -> str:
    parts = []
    if context.page_titles:
        parts.append(f"Page titles: {', '.join(context.page_titles[:3])}")
    if context.keywords:
        parts.append(f"SEO keywords: {', '.join(context.keywords[:5])}")
    if context.headings:
        parts.append(f"Headings: {', '.join(context.headings[:3])}")
    if context.categories:
        parts.append(f"Categories: {', '.join(context.categories[:3])}")
    return ". ".join(parts) if parts else "No context available"


class _RetryableError(Exception):
    pass


class HttpNameGenerationService(NameGenerationService):
    """
    POST {"prompt", "count", "max_length", "format"} to the configured endpoint

    Timeouts, connection errors, 429, 5xx and malformed bodies are retried
    with exponential backoff up to ``max_retries`` attempts in total. A
    rejected key (401/403) is a configuration error and is not retried.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = 30.0,
        max_retries: int = 2,
        prompt_template: Optional[str] = None,
        sleep: Sleeper = default_sleep,
        backoff_base: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.prompt_template = prompt_template or DEFAULT_PROMPT_TEMPLATE
        self.sleep = sleep
        self.backoff_base = backoff_base
        self.user_agent = user_agent
        self.transport = transport

    def build_prompt(self, analysis: ContentAnalysis, context: PageContext) -> str:
        return self.prompt_template.replace("{content}", summarize_content(analysis)).replace(
            "{context}", summarize_context(context)
        )

    async def generate(
        self,
        analysis: ContentAnalysis,
        context: PageContext,
        count: int,
        timeout: Optional[float] = None,
    ) -> List[str]:
        body = await self._request(self.build_prompt(analysis, context), count, timeout)

        raw = body.get("suggestions") if isinstance(body, dict) else None
        if not isinstance(raw, list):
            raise AIServiceError("AI service returned no valid suggestions.")

        names = []
        for item in raw:
            if isinstance(item, dict):
                item = item.get("name")
            if isinstance(item, str):
                names.append(item)

        suggestions = sanitize_suggestions(
            names, max_length=SUGGESTION_MAX_LENGTH, min_length=SUGGESTION_MIN_LENGTH
        )[:count]
        if not suggestions:
            raise AIServiceError("AI service returned no valid suggestions.")
        return suggestions

    async def test_connection(self) -> bool:
        await self._request("Test connection", 1, None, attempts=1)
        return True

    async def _request(self, prompt: str, count: int, timeout: Optional[float], attempts: Optional[int] = None) -> dict:
        if not self.api_key:
            raise ConfigurationError("AI API key not configured.")
        if not self.endpoint:
            raise ConfigurationError("AI API endpoint not configured.")

        attempts = attempts or max(1, self.max_retries)
        last_error = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._post(prompt, count, timeout or self.timeout)
            except _RetryableError as e:
                last_error = e
                logger.warning(f"AI service attempt {attempt}/{attempts} failed: {e}")
                if attempt < attempts:
                    await self.sleep(backoff_delay(attempt, base_delay=self.backoff_base))

        raise AIServiceError(f"AI service request failed after {attempts} attempts: {last_error}")

    async def _post(self, prompt: str, count: int, timeout: float) -> dict:
        payload = {
            "prompt": prompt,
            "count": count,
            "max_length": SUGGESTION_MAX_LENGTH,
            "format": "seo_filename",
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise _RetryableError(f"AI service request timed out: {e}")
        except httpx.HTTPError as e:
            raise _RetryableError(f"AI service connection failed: {e}")

        status = response.status_code
        if status in (401, 403):
            raise ConfigurationError(f"AI API key was rejected (HTTP {status}).")
        if status == 429 or status >= 500:
            raise _RetryableError(f"AI service returned HTTP {status}")
        if status != 200:
            raise AIServiceError(f"AI service rejected the request (HTTP {status}).")

        try:
            return response.json()
        except ValueError:
            raise _RetryableError("Invalid JSON response from AI service.")
