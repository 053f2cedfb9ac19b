"""Media Resource Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.media_resource import MediaResource


class MediaResourceRepository(ABC):

    @abstractmethod
    async def get_by_id(self, resource_id: int) -> Optional[MediaResource]:
        pass

    @abstractmethod
    async def create(self, resource: MediaResource) -> MediaResource:
        pass

    @abstractmethod
    async def save(self, resource: MediaResource) -> MediaResource:
        pass

    @abstractmethod
    async def filename_exists(self, owner_id: str, filename: str, extension: str, exclude_id: Optional[int] = None) -> bool:
        """True when another resource of the owner already uses the name"""
        pass

    @abstractmethod
    async def list_related(self, resource: MediaResource, limit: int = 5) -> List[MediaResource]:
        """Other resources of the same owner sharing at least one tag, newest first"""
        pass
