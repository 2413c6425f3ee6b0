from enum import Enum

from pydantic import Field

from flatshop.data.models.base import Record


class OrderStatus(str, Enum):
    PENDING = "Pending"
    DONE = "Done"


class OrderLine(Record):
    product_id: str
    quantity: int = Field(..., gt=0)
    price: float
    total: float
    status: OrderStatus = OrderStatus.PENDING


class Order(Record):
    user_id: str
    order_id: str | None = None
    items: list[OrderLine] = Field(default_factory=list)
    total: float = 0
    # epoch milliseconds
    timestamp: int

    def recompute_total(self) -> float:
        self.total = round(sum(item.total for item in self.items), 2)
        return self.total
