"""
App Password Use Case

Stores the user's Gmail app password encrypted at rest.
"""

from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.app_password_cipher import AppPasswordCipher, AppPasswordDecryptionError
from src.app.services.audit_buffer import AuditBuffer, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, AuditOutcome, User


class AppPasswordUseCase:
    """
    Use case for managing the Gmail app password.

    Business Rules:
    - The password is encrypted before it is handed to the repository
    - Decryption happens only through get_decrypted_app_password
    - Setting or clearing the password is audit-logged without the value
    """

    def __init__(self, uow: UnitOfWork, cipher: AppPasswordCipher, audit: AuditBuffer):
        self.uow = uow
        self.cipher = cipher
        self.audit = audit

    async def set_app_password(
        self,
        user_id: UUID,
        app_password: str,
        context: Optional[RequestContext] = None,
    ) -> Result[dict]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            user.encrypted_app_password = self.cipher.encrypt(app_password)
            user.has_app_password = True
            await self.uow.users.update(user)
            await self.uow.commit()

        self._audit(user_id, "set", context)
        return Return.ok({"has_app_password": True})

    async def clear_app_password(
        self, user_id: UUID, context: Optional[RequestContext] = None
    ) -> Result[dict]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            user.encrypted_app_password = None
            user.has_app_password = False
            await self.uow.users.update(user)
            await self.uow.commit()

        self._audit(user_id, "clear", context)
        return Return.ok({"has_app_password": False})

    def get_decrypted_app_password(self, user: User) -> Optional[str]:
        """Plaintext app password for the mail transport, or None"""
        if not user.encrypted_app_password:
            return None
        try:
            return self.cipher.decrypt(user.encrypted_app_password)
        except AppPasswordDecryptionError:
            return None

    def _audit(self, user_id: UUID, operation: str, context: Optional[RequestContext]) -> None:
        self.audit.log_from_context(
            context,
            AuditAction.user_updated,
            actor_id=user_id,
            resource="User",
            resource_id=user_id,
            outcome=AuditOutcome.success,
            metadata={"field": "app_password", "operation": operation},
        )
