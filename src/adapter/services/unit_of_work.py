import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        if self.session.in_transaction():
            logger.debug("Rolling back open transaction")
        await self.session.rollback()

    async def recover(self, failure: Exception) -> bool:
        # A failed flush deactivates the transaction; a failed statement may leave it aborted server-side
        transaction = self.session.sync_session.get_transaction()
        deactivated = transaction is not None and not transaction.is_active
        if not deactivated and not isinstance(failure, SQLAlchemyError):
            return False

        logger.warning(f"Rolling back session after {type(failure).__name__}: {failure}")
        await self.session.rollback()
        return True
