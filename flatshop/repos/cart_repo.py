# flatshop/repos/cart_repo.py
from pathlib import Path

from flatshop.data.models.cart_item import CartLine
from flatshop.data.store import CART_FILE, data_dir
from flatshop.repos.base import MappingStore
from flatshop.services.lock_service import LockService


class CartRepo(MappingStore[list[CartLine]]):
    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        super().__init__(data_dir(directory) / CART_FILE, list[CartLine], lock_service)

    def get_lines(self, user_id: str) -> list[CartLine]:
        return self.get(user_id) or []

    def save_lines(self, user_id: str, lines: list[CartLine]) -> list[CartLine]:
        #pusta lista usuwa klucz uzytkownika
        return self.upsert(user_id, lines) or []
