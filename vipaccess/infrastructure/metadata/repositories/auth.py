"""
Repository for the authentication config singleton (auth/config).

The whole user list lives in one document, so every change is a
read-modify-write of that document. Two writers working from the same
read would silently lose one update; to catch that, each write compares
the version it read with the version currently stored and raises
ConflictError on mismatch. The check and the write are still two calls,
so a narrow race remains (object storage offers no compare-and-swap).

Credentials are compared as exact, case-sensitive plaintext matches.
"""

import logging
from dataclasses import fields
from typing import Any, Optional

from ....core.documents.errors import ConflictError, DocumentNotFoundError, DocumentValidationError
from ....core.documents.keys import DocumentType, document_key
from ....core.documents.models import AuthConfig, User, UserRole, utc_now_iso
from ....core.documents.serialization import from_document, to_camel, to_document
from ..store import MetadataStore

logger = logging.getLogger(__name__)

AUTH_CONFIG_ID = "config"

# set by the repository, never by callers
_IMMUTABLE_USER_FIELDS = {"id", "created_at"}


class AuthRepository:
    """User management and credential checks over AuthConfig."""

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def load_config(self) -> Optional[AuthConfig]:
        document = await self._store.load(DocumentType.AUTH, AUTH_CONFIG_ID)
        if document is None:
            return None
        return from_document(AuthConfig, document)

    async def _require_config(self) -> AuthConfig:
        config = await self.load_config()
        if config is None:
            raise DocumentNotFoundError(DocumentType.AUTH.value, AUTH_CONFIG_ID)
        return config

    async def save_config(self, config: AuthConfig) -> None:
        """
        Version-checked whole-document write.

        config.version must equal the stored version (0 when nothing is
        stored yet). On success the version is bumped in place.
        """
        stored = await self.load_config()
        stored_version = stored.version if stored is not None else 0
        if config.version != stored_version:
            raise ConflictError(
                document_key(DocumentType.AUTH, AUTH_CONFIG_ID),
                expected_version=config.version,
                stored_version=stored_version,
            )

        config.version += 1
        await self._store.save(DocumentType.AUTH, to_document(config), AUTH_CONFIG_ID)

    async def initialize_if_absent(self) -> AuthConfig:
        """
        Return the stored config, creating one with the default admin if absent.

        Losing a creation race to another writer is not an error: the
        config that writer stored is returned instead.
        """
        existing = await self.load_config()
        if existing is not None:
            return existing

        config = AuthConfig.with_default_admin()
        try:
            await self.save_config(config)
        except ConflictError:
            stored = await self.load_config()
            if stored is None:
                raise
            logger.info("Auth config was created concurrently; keeping it")
            return stored

        logger.info("Created default auth config", extra={"users": len(config.users)})
        return config

    async def verify_credentials(self, email: str, password: str) -> Optional[User]:
        """
        Find the user with this exact email and password.

        A successful match records lastLogin and persists the config.
        """
        config = await self.load_config()
        if config is None:
            return None

        user = next(
            (u for u in config.users if u.email == email and u.password == password),
            None,
        )
        if user is None:
            logger.warning("Failed login attempt", extra={"email": email})
            return None

        user.last_login = utc_now_iso()
        await self.save_config(config)
        logger.info("User logged in", extra={"user_id": user.id})
        return user

    async def list_users(self) -> list[User]:
        config = await self.load_config()
        return config.users if config is not None else []

    async def add_user(
        self,
        email: str,
        name: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        config = await self._require_config()

        if any(u.email == email for u in config.users):
            raise DocumentValidationError(f"A user with email {email} already exists")

        user = User(email=email, name=name, password=password, role=role)
        config.users.append(user)
        await self.save_config(config)
        logger.info("Added user", extra={"user_id": user.id, "role": role.value})
        return user

    async def update_user(self, user_id: str, updates: dict[str, Any]) -> Optional[User]:
        """
        Apply updates to one user. Returns None if the config or user is missing.

        updates may use snake_case or camelCase keys; id and createdAt are
        ignored. Demoting the last administrator is rejected.
        """
        config = await self.load_config()
        if config is None:
            return None

        index = next((i for i, u in enumerate(config.users) if u.id == user_id), None)
        if index is None:
            return None

        current = to_document(config.users[index])
        editable = {to_camel(f.name) for f in fields(User)} - {to_camel(n) for n in _IMMUTABLE_USER_FIELDS}
        for key, value in updates.items():
            camel = to_camel(key)
            if camel in editable:
                current[camel] = value

        updated = from_document(User, current)
        if config.users[index].is_admin and not updated.is_admin and config.admin_count == 1:
            raise DocumentValidationError("Cannot demote the last administrator")

        config.users[index] = updated
        await self.save_config(config)
        return updated

    async def delete_user(self, user_id: str) -> bool:
        """
        Remove a user. Returns False only when there is no auth config.

        Deleting an unknown id is a no-op that still reports success.
        """
        config = await self.load_config()
        if config is None:
            return False

        target = config.find_user(user_id)
        if target is None:
            return True
        if target.is_admin and config.admin_count == 1:
            raise DocumentValidationError("Cannot delete the last administrator")

        config.users = [u for u in config.users if u.id != user_id]
        await self.save_config(config)
        logger.info("Deleted user", extra={"user_id": user_id})
        return True
