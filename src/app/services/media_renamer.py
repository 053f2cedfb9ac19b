"""Media Renamer Interface"""

from abc import ABC, abstractmethod
from src.domain.media_resource import MediaResource


class MediaRenamer(ABC):

    @abstractmethod
    async def commit_rename(self, resource: MediaResource, new_name: str) -> str:
        """
        Apply a new filename to the resource

        Returns:
            The filename actually applied (may carry a uniqueness suffix)
        """
        pass
