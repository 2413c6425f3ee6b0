# flatshop/services/product_service.py
import math
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from flatshop.data.models.counters import SequenceKind
from flatshop.data.models.product import Category, Product, slugify
from flatshop.domain.errors import InventoryExhausted, NotFound, PermissionDenied, ValidationError
from flatshop.domain.schemas import ProductIn, parse_payload
from flatshop.repos.product_repo import CategoryRepo, ProductRepo
from flatshop.services.lock_service import LockService
from flatshop.services.sequence_service import SequenceService
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "price", "description", "category", "inventory")
STRING_FIELDS = ("name", "description", "category")
NUMERIC_FIELDS = ("price", "inventory")


class InventoryDirection(str, Enum):
    RESERVE = "reserve"
    RELEASE = "release"


def _parse_number(key: str, value: Any) -> float:
    number = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            pass
    # nan i inf nie przejda walidacji rekordu przy kolejnym odczycie
    if number is None or (isinstance(number, float) and not math.isfinite(number)):
        raise ValidationError(f"{key} must be a number. Received {value!r}")
    return number


class ProductService:
    """
    Katalog produktow: wlasnosc produktu, kategorie i stan magazynu.
    Rezerwacja/zwolnienie stanu wywolywane przez CartService.
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        sequence: SequenceService | None = None,
        lock_service: LockService | None = None,
    ):
        self.repo = ProductRepo(directory, lock_service)
        self.categories = CategoryRepo(directory, lock_service)
        self.sequence = sequence or SequenceService(directory, lock_service)

    def _get_or_raise(self, product_id: str) -> Product:
        product = self.repo.get(str(product_id))
        if not product:
            raise NotFound(f"Product with ID {product_id} not found")
        return product

    def _check_owner(self, product: Product, caller_id: str, is_admin: bool, action: str) -> None:
        if not is_admin and product.user_id != str(caller_id):
            raise PermissionDenied(f"You do not have permission to {action} this product.")

    #query
    def list_products(self, caller_id: str, is_admin: bool) -> List[Product]:
        if is_admin:
            return self.repo.all()

        products = self.repo.owned_by(str(caller_id))
        if not products:
            raise NotFound("User has not added any product yet!")
        return products

    def get_product(self, product_id: str, caller_id: str, is_admin: bool) -> Product:
        product = self._get_or_raise(product_id)
        self._check_owner(product, caller_id, is_admin, "view")
        return product

    def list_categories(self) -> List[Category]:
        return self.categories.all()

    #commands
    def resolve_category(self, name: str) -> Category:
        """Returns the category with this name (case-insensitive), creating it on first use."""
        with self.categories.locked():
            existing = self.categories.find_by_name(name)
            if existing:
                return existing

            category = Category(
                id=self.sequence.next_id(SequenceKind.CATEGORY),
                name=name,
                slug=slugify(name),
            )
            self.categories.upsert(category.id, category)

        logger.info(f"Created category {category.id} ({category.slug})")
        return category

    def create_product(
        self,
        owner_id: str,
        name: str,
        price: Any,
        inventory: Any,
        description: str | None = None,
        category: str | None = None,
    ) -> Product:
        if not owner_id:
            raise ValidationError("Invalid product data", ["owner is required"])

        payload = parse_payload(
            ProductIn,
            {
                "name": name,
                "price": price,
                "inventory": inventory,
                "description": description,
                "category": category,
            },
            "product",
        )

        with self.repo.locked():
            category_id = None
            if payload.category and payload.category.strip():
                category_id = self.resolve_category(payload.category.strip()).id

            product = Product(
                id=self.sequence.next_id(SequenceKind.PRODUCT),
                user_id=str(owner_id),
                name=payload.name,
                price=payload.price,
                description=payload.description,
                category=category_id,
                inventory=payload.inventory,
            )
            self.repo.upsert(product.id, product)

        logger.info(f"Product {product.id} created by user {owner_id}")
        return product

    def update_product(
        self,
        product_id: str,
        fields: Dict[str, Any],
        is_admin: bool,
        caller_id: str,
    ) -> Product:
        unknown = [key for key in fields if key not in UPDATABLE_FIELDS]
        if unknown:
            raise ValidationError("Invalid field name", unknown)

        changes: Dict[str, Any] = {}
        for key, value in fields.items():
            if key in STRING_FIELDS:
                if not isinstance(value, str):
                    raise ValidationError(
                        f"Name, description, and category must be a string. "
                        f"Received type {type(value).__name__}"
                    )
                changes[key] = value
            elif key in NUMERIC_FIELDS:
                number = _parse_number(key, value)
                if number < 0:
                    raise ValidationError(f"{key} must not be negative. Received {value!r}")
                if key == "inventory":
                    if number != int(number):
                        raise ValidationError(f"inventory must be a whole number. Received {value!r}")
                    number = int(number)
                changes[key] = number

        with self.repo.locked():
            product = self._get_or_raise(product_id)
            self._check_owner(product, caller_id, is_admin, "update")

            if "category" in changes:
                name = changes["category"].strip()
                changes["category"] = self.resolve_category(name).id if name else None

            updated = parse_payload(Product, {**product.model_dump(), **changes}, "product")
            self.repo.upsert(updated.id, updated)

        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return updated

    def delete_product(self, product_id: str, caller_id: str, is_admin: bool) -> Product:
        with self.repo.locked():
            product = self._get_or_raise(product_id)
            self._check_owner(product, caller_id, is_admin, "delete")
            self.repo.remove(product.id)

        # indeksy pozycji przesuwaja sie po usunieciu
        self.repo.initialize_index()
        logger.info(f"Product {product_id} deleted")
        return product

    #inventory
    def reserve_for_cart(self, product_id: str, quantity: int) -> Product:
        """Checks stock for a cart line without touching it; see adjust_inventory."""
        product = self._get_or_raise(product_id)
        if product.inventory < quantity:
            raise InventoryExhausted(product.id, quantity, product.inventory)
        return product

    def adjust_inventory(
        self,
        product_id: str,
        quantity: int,
        direction: InventoryDirection | str,
    ) -> Product:
        direction = InventoryDirection(direction)
        if quantity < 0:
            raise ValidationError(f"Inventory adjustment must not be negative. Received {quantity}")

        with self.repo.locked():
            product = self._get_or_raise(product_id)
            if direction is InventoryDirection.RESERVE:
                if product.inventory - quantity < 0:
                    raise InventoryExhausted(product.id, quantity, product.inventory)
                product.inventory -= quantity
            else:
                # brak dolnej granicy przy zwalnianiu
                product.inventory += quantity
            self.repo.upsert(product.id, product)

        logger.info(
            f"Inventory {direction.value} {quantity} for product {product_id}, "
            f"stock now {product.inventory}"
        )
        return product
