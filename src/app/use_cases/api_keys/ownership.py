from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import ApiKey


async def find_owned_api_key(uow: UnitOfWork, user_id: UUID, api_key_id: UUID) -> Result[ApiKey]:
    """Load a key and check that user_id owns it. Must run inside the uow context."""
    api_key = await uow.api_keys.get_by_id(api_key_id)
    if api_key is None:
        return Return.err(Error("API_KEY_NOT_FOUND", "API key not found"))
    if api_key.user_id != user_id:
        return Return.err(Error("FORBIDDEN", "You do not own this API key"))
    return Return.ok(api_key)
