"""Context Extractor Interface"""

from abc import ABC, abstractmethod
from typing import List
from pydantic import BaseModel, Field
from src.domain.media_resource import MediaResource


class PageContext(BaseModel):
    keywords: List[str] = Field(default_factory=list)
    headings: List[str] = Field(default_factory=list)
    page_titles: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.keywords or self.headings or self.page_titles or self.categories)


class ContextExtractor(ABC):

    @abstractmethod
    async def extract(self, resource: MediaResource) -> PageContext:
        pass
