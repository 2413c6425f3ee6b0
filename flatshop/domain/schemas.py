# flatshop/domain/schemas.py
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, computed_field, ValidationError as PydanticValidationError

from flatshop.data.models.order import OrderLine, OrderStatus
from flatshop.domain.errors import ValidationError


def validation_errors(e: PydanticValidationError) -> list[str]:
    messages = []
    for err in e.errors():
        location = ".".join(str(part) for part in err["loc"]) or "payload"
        messages.append(f"{location}: {err['msg']}")
    return messages


def parse_payload(schema: type[BaseModel], data: Any, label: str) -> BaseModel:
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {label} data", validation_errors(e)) from e


class ProductIn(BaseModel):
    """Schema for creating a product."""

    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Unit price (>= 0)")
    description: str | None = None
    category: str | None = Field(None, description="Category name, created on first use")
    inventory: int = Field(..., ge=0, description="Units in stock (>= 0)")


class CartItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")
    user_id: str = Field(..., min_length=1)


class CartQuantityIn(BaseModel):
    quantity: int = Field(..., gt=0, description="New quantity (> 0)")


class OrderCreate(BaseModel):
    """Schema for an order payload handed to the order ledger."""

    user_id: str = Field(..., min_length=1)
    items: List[OrderLine] = Field(..., min_length=1)
    timestamp: int = Field(..., gt=0, description="Epoch milliseconds")


class PlaceOrderIn(BaseModel):
    """Schema for turning cart lines into an order."""

    items: List[str] = Field(..., min_length=1, description="Product ids taken from the cart")
    status: OrderStatus = OrderStatus.PENDING


class OrderUpdateIn(BaseModel):
    items: List[str] = Field(..., min_length=1, description="Product ids to update")
    status: str


class DeleteOutcome(BaseModel):
    """Result of an order line deletion; finalized lines are skipped, not removed."""

    user_id: str
    removed: List[str] = Field(default_factory=list)
    skipped_final: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    order_deleted: bool = False

    @computed_field
    @property
    def message(self) -> str:
        if self.removed and self.skipped_final:
            return (
                f"Removed {', '.join(self.removed)}; "
                f"{', '.join(self.skipped_final)} have Done status and cannot be removed."
            )
        if self.removed:
            return f"Removed items with Product IDs: {', '.join(self.removed)}"
        if self.skipped_final:
            return "No items were removed as the provided product IDs have 'Done' status."
        return "No matching product IDs found for removal."


class UserCreate(BaseModel):
    """Schema for registering a user."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)
    permissions: List[str] = Field(default_factory=list)


class LoginIn(BaseModel):
    username: str
    password: str


class UserRead(BaseModel):
    """Schema for a user (response)."""

    user_id: str
    username: str
    is_admin: bool
    permissions: List[str]

    model_config = ConfigDict(from_attributes=True)


class CartAddIn(BaseModel):
    """Schema for the add-to-cart request body."""

    product_id: str = Field(..., min_length=1, description="Product id")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")
