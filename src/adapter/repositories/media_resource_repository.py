"""SQLAlchemy implementation of MediaResourceRepository"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.media_resource_repository import MediaResourceRepository
from src.domain.media_resource import MediaResource


class SqlAlchemyMediaResourceRepository(MediaResourceRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, resource_id: int) -> Optional[MediaResource]:
        stmt = select(MediaResource).where(MediaResource.id == resource_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, resource: MediaResource) -> MediaResource:
        self.session.add(resource)
        await self.session.flush()
        await self.session.refresh(resource)
        return resource

    async def save(self, resource: MediaResource) -> MediaResource:
        self.session.add(resource)
        await self.session.flush()
        return resource

    async def filename_exists(self, owner_id: str, filename: str, extension: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(MediaResource.id).where(
            MediaResource.owner_id == owner_id,
            MediaResource.filename == filename,
            MediaResource.extension == extension,
        )
        if exclude_id is not None:
            stmt = stmt.where(MediaResource.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.first() is not None

    async def list_related(self, resource: MediaResource, limit: int = 5) -> List[MediaResource]:
        if not resource.tags:
            return []

        # Tags are a JSON column; overlap is checked in Python
        stmt = (
            select(MediaResource)
            .where(MediaResource.owner_id == resource.owner_id, MediaResource.id != resource.id)
            .order_by(MediaResource.created_at.desc())
            .limit(200)
        )
        result = await self.session.execute(stmt)
        wanted = set(resource.tags)
        related = [other for other in result.scalars().all() if wanted.intersection(other.tags or [])]
        return related[:limit]
