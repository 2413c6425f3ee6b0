from pydantic import Field

from flatshop.data.models.base import Record


class CartLine(Record):
    cart_id: str
    product_id: str
    quantity: int = Field(..., gt=0)
    # line subtotal (quantity x unit price), not the unit price
    price: float
    total: float
    status: str | None = None
