from datetime import datetime, timezone

from pydantic import Field

from flatshop.data.models.base import Record


def slugify(name: str) -> str:
    return name.lower().replace(" ", "_")


class Product(Record):
    id: str
    user_id: str
    name: str
    price: float = Field(..., ge=0, allow_inf_nan=False)
    description: str | None = None
    category: str | None = None  # Category.id
    inventory: int = Field(..., ge=0)


class Category(Record):
    id: str
    name: str
    description: str = ""
    slug: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
