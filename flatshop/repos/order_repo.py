# flatshop/repos/order_repo.py
from pathlib import Path

from flatshop.data.models.order import Order
from flatshop.data.store import ORDERS_FILE, data_dir
from flatshop.repos.base import MappingStore
from flatshop.services.lock_service import LockService


class OrderRepo(MappingStore[Order]):
    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        super().__init__(data_dir(directory) / ORDERS_FILE, Order, lock_service)

    def save_order(self, order: Order) -> Order | None:
        if not order.items:
            self.remove(order.user_id)
            return None
        return self.upsert(order.user_id, order)
