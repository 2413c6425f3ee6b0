from datetime import datetime, timezone

from pydantic import Field

from flatshop.data.models.base import Record


class User(Record):
    user_id: str
    username: str
    email: str = ""
    is_admin: bool = False
    first_name: str = ""
    last_name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    roles: list[str] = Field(default_factory=list)
    password: str | None = None
    permissions: list[str] = Field(default_factory=list)
