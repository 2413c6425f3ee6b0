# flatshop/services/user_service.py
import hashlib
import hmac
import os
from pathlib import Path
from typing import List

from flatshop.data.models.counters import SequenceKind
from flatshop.data.models.user import User
from flatshop.domain.errors import NotFound, PermissionDenied, ValidationError
from flatshop.domain.schemas import UserCreate, parse_payload
from flatshop.repos.user_repo import SessionRepo, UserRepo
from flatshop.services.lock_service import LockService
from flatshop.services.sequence_service import SequenceService
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)

PERMISSIONS = (
    "product:view",
    "product:create",
    "product:update",
    "product:delete",
    "cart:view",
    "cart:add",
    "cart:remove",
    "cart:update",
    "order:view",
    "order:create",
    "order:update",
    "order:delete",
)

_HASH_ITERATIONS = 100_000


def hash_password(password: str, salt: bytes | None = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _HASH_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str | None) -> bool:
    if not stored or "$" not in stored:
        return False
    salt_hex, _ = stored.split("$", 1)
    candidate = hash_password(password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(candidate, stored)


class UserService:
    def __init__(
        self,
        directory: str | Path | None = None,
        sequence: SequenceService | None = None,
        lock_service: LockService | None = None,
    ):
        self.repo = UserRepo(directory, lock_service)
        self.session = SessionRepo(directory, lock_service)
        self.sequence = sequence or SequenceService(directory, lock_service)

    def register(
        self,
        username: str,
        password: str,
        permissions: List[str] | str | None = None,
        is_admin: bool = False,
    ) -> User:
        if isinstance(permissions, str):
            permissions = [p.strip() for p in permissions.split(",") if p.strip()]
        payload = parse_payload(
            UserCreate,
            {"username": username, "password": password, "permissions": permissions or []},
            "user",
        )

        with self.repo.locked():
            if self.repo.find_by_username(payload.username):
                raise ValidationError("Username already exists")

            user = User(
                user_id=self.sequence.next_id(SequenceKind.USER),
                username=payload.username,
                is_admin=is_admin,
                roles=list(payload.permissions),
                permissions=list(payload.permissions),
                password=hash_password(payload.password),
            )
            self.repo.upsert(user.user_id, user)

        logger.info(f"Registered user {user.user_id} ({user.username})")
        return user

    def login(self, username: str, password: str) -> User:
        user = self.repo.find_by_username(username)
        if not user or not verify_password(password, user.password):
            raise PermissionDenied("Invalid username or password")

        self.session.set(user.model_copy(update={"password": None}))
        logger.info(f"User {user.user_id} logged in")
        return user

    def logout(self) -> None:
        self.session.clear()
        logger.info("Session cleared")

    def session_user(self) -> User | None:
        return self.session.get()

    def has_permission(self, permission: str) -> bool:
        user = self.session_user()
        if not user:
            return False
        return permission in {p.strip() for p in user.permissions}

    def get_user(self, user_id: str) -> User:
        user = self.repo.get(str(user_id))
        if not user:
            raise NotFound(f"Could not find the user with the given ID {user_id}")
        return user

    def resolve_user_id(self, user_id: str) -> str:
        return self.get_user(user_id).user_id
