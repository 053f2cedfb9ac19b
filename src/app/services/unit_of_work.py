from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    Transaction boundary shared by the repositories of one request

    A rollback expires every instance loaded in the session; read the ids and
    names you still need before rolling back.
    """

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass

    @abstractmethod
    async def recover(self, failure: Exception) -> bool:
        """Roll back a transaction left unusable by the failure. Returns True if it did."""
        pass
