"""Catalog Context Extractor

Builds page context from the resource itself and related catalog entries that
share its tags.
"""

from typing import Iterable, List
from src.app.repositories.media_resource_repository import MediaResourceRepository
from src.app.services.context_extractor import ContextExtractor, PageContext
from src.domain.media_resource import MediaResource
from src.domain.naming import PLACEHOLDER_TITLES

MAX_KEYWORDS = 10
MAX_TITLES = 5


def _unique(values: Iterable[str], limit: int) -> List[str]:
    seen: List[str] = []
    for value in values:
        value = (value or "").strip()
        if value and value.lower() not in PLACEHOLDER_TITLES and value not in seen:
            seen.append(value)
        if len(seen) >= limit:
            break
    return seen


class CatalogContextExtractor(ContextExtractor):

    def __init__(self, media_repo: MediaResourceRepository, related_limit: int = 5):
        self.media_repo = media_repo
        self.related_limit = related_limit

    async def extract(self, resource: MediaResource) -> PageContext:
        related = await self.media_repo.list_related(resource, limit=self.related_limit)

        keywords = list(resource.tags or [])
        for other in related:
            keywords.extend(other.tags or [])

        return PageContext(
            keywords=_unique(keywords, MAX_KEYWORDS),
            headings=_unique([resource.title, resource.caption], MAX_TITLES),
            page_titles=_unique([other.title for other in related], MAX_TITLES),
            categories=_unique([resource.mime_type.split("/")[0]], 1),
        )
