# flatshop/repos/product_repo.py
from pathlib import Path

from flatshop.data.models.product import Category, Product
from flatshop.data.store import CATEGORY_FILE, PRODUCTS_FILE, data_dir
from flatshop.repos.base import CollectionStore
from flatshop.services.lock_service import LockService


class ProductRepo(CollectionStore[Product]):
    key_field = "id"

    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        super().__init__(data_dir(directory) / PRODUCTS_FILE, Product, lock_service)

    def owned_by(self, user_id: str) -> list[Product]:
        return [p for p in self.all() if p.user_id == str(user_id)]


class CategoryRepo(CollectionStore[Category]):
    key_field = "id"

    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        super().__init__(data_dir(directory) / CATEGORY_FILE, Category, lock_service)

    def find_by_name(self, name: str) -> Category | None:
        wanted = name.strip().lower()
        for category in self.all():
            if category.name.strip().lower() == wanted:
                return category
        return None
