from enum import Enum

from flatshop.data.models.base import Record


class SequenceKind(str, Enum):
    PRODUCT = "product"
    CART = "cart"
    ORDER = "order"
    USER = "user"
    CATEGORY = "category"


class SequenceCounters(Record):
    product_id: int = 0
    order_id: int = 0
    cart_id: int = 0
    user_id: int = 0
    category: int = 0

    def field_for(self, kind: SequenceKind) -> str:
        return {
            SequenceKind.PRODUCT: "product_id",
            SequenceKind.CART: "cart_id",
            SequenceKind.ORDER: "order_id",
            SequenceKind.USER: "user_id",
            SequenceKind.CATEGORY: "category",
        }[kind]
