from abc import ABC, abstractmethod
from typing import AsyncContextManager, Callable

from src.app.repositories.api_key_repository import IApiKeyRepository
from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    api_keys: IApiKeyRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


# Opens a fresh database session for work done outside a request,
# e.g. `async with uow_scope() as uow: async with uow: ...`
UnitOfWorkScope = Callable[[], AsyncContextManager[UnitOfWork]]
