"""Catalog Media Renamer

Applies a new logical filename to the catalog row. Name collisions within an
owner's library are resolved with ``-1``, ``-2`` ... suffixes.
"""

import logging
from datetime import datetime
from typing import Callable
from src.app.repositories.media_resource_repository import MediaResourceRepository
from src.app.services.media_renamer import MediaRenamer
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.errors import SystemFailure
from src.domain.media_resource import MediaResource

logger = logging.getLogger(__name__)

MAX_SUFFIX = 1000


class CatalogMediaRenamer(MediaRenamer):

    def __init__(
        self,
        uow: UnitOfWork,
        media_repo: MediaResourceRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.media_repo = media_repo
        self.clock = clock

    async def _unique_name(self, resource: MediaResource, name: str) -> str:
        candidate = name
        for suffix in range(1, MAX_SUFFIX + 1):
            taken = await self.media_repo.filename_exists(
                resource.owner_id, candidate, resource.extension, exclude_id=resource.id
            )
            if not taken:
                return candidate
            candidate = f"{name}-{suffix}"
        raise SystemFailure(f"Could not find a free filename for {name}")

    async def commit_rename(self, resource: MediaResource, new_name: str) -> str:
        name = await self._unique_name(resource, new_name)
        previous = resource.full_filename

        resource.filename = name
        resource.modified_at = self.clock()
        await self.media_repo.save(resource)
        await self.uow.commit()

        applied = resource.full_filename
        logger.info(f"Renamed media resource {resource.id}: {previous} -> {applied}")
        return applied
