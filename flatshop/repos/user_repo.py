# flatshop/repos/user_repo.py
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from flatshop.data.models.user import User
from flatshop.data.store import SESSION_FILE, USERS_FILE, JsonDocument, data_dir
from flatshop.domain.errors import DocumentParseError
from flatshop.repos.base import CollectionStore
from flatshop.services.lock_service import LockService


class UserRepo(CollectionStore[User]):
    key_field = "user_id"

    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        super().__init__(data_dir(directory) / USERS_FILE, User, lock_service)

    def find_by_username(self, username: str) -> User | None:
        for user in self.all():
            if user.username == username:
                return user
        return None


class SessionRepo:
    """Current session user as a single JSON object, ``{}`` when logged out."""

    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        self.document = JsonDocument(data_dir(directory) / SESSION_FILE, {}, lock_service)

    def get(self) -> User | None:
        raw = self.document.read()
        if not raw:
            return None
        try:
            return User.model_validate(raw)
        except PydanticValidationError as e:
            raise DocumentParseError(self.document.path, str(e)) from e

    def set(self, user: User) -> None:
        with self.document.locked():
            self.document.write(user.to_document())

    def clear(self) -> None:
        with self.document.locked():
            self.document.write({})
