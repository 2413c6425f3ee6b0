# flatshop/services/cart_service.py
from pathlib import Path
from typing import Dict, List

from flatshop.data.models.cart_item import CartLine
from flatshop.data.models.counters import SequenceKind
from flatshop.domain.errors import NotFound, PermissionDenied, ValidationError
from flatshop.domain.schemas import CartItemIn, parse_payload
from flatshop.repos.cart_repo import CartRepo
from flatshop.services.lock_service import LockService
from flatshop.services.product_service import InventoryDirection, ProductService
from flatshop.services.sequence_service import SequenceService
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_target(user_id: str, is_admin: bool, target_user: str | None = None) -> str:
    """Admins may act on another user's data, everybody else only on their own."""
    user_id = str(user_id)
    if target_user is None or str(target_user) == user_id:
        return user_id
    if not is_admin:
        raise PermissionDenied("Only an admin can act on behalf of another user")
    return str(target_user)


class CartService:
    """
    Koszyk per uzytkownik: lista linii (jedna linia na produkt).
    commands (add, remove, update, consume) zmieniaja koszyk i stan magazynu
    query (get, total) tylko odczyt
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        product_service: ProductService | None = None,
        sequence: SequenceService | None = None,
        lock_service: LockService | None = None,
    ):
        self.repo = CartRepo(directory, lock_service)
        self.sequence = sequence or SequenceService(directory, lock_service)
        self.product_service = product_service or ProductService(
            directory, self.sequence, lock_service
        )

    def _require_own_cart(self, user_id: str, is_admin: bool) -> None:
        if is_admin:
            return
        if not self.repo.get_lines(str(user_id)):
            raise NotFound("User has not added anything to cart yet!")

    def _existing_lines(self, target: str) -> List[CartLine]:
        lines = self.repo.get_lines(target)
        if not lines:
            raise NotFound(f"User with id {target} does not have a cart.")
        return lines

    #query
    def get_cart(
        self,
        user_id: str,
        is_admin: bool,
        target_user: str | None = None,
    ) -> Dict[str, List[CartLine]] | List[CartLine]:
        if is_admin and target_user is None:
            return self.repo.all()

        target = resolve_target(user_id, is_admin, target_user)
        lines = self.repo.get_lines(target)
        if not lines and not is_admin:
            raise NotFound("User has not added anything to cart yet!")
        return lines

    def total(self, user_id: str, is_admin: bool, target_user: str | None = None) -> float:
        target = resolve_target(user_id, is_admin, target_user)
        self._require_own_cart(user_id, is_admin)
        lines = self._existing_lines(target)
        total = round(sum(line.total for line in lines), 2)
        logger.info(f"The current total cart for user {target} is {total:.3f}")
        return total

    #commands
    def add_item(self, product_id: str, quantity: int, user_id: str) -> List[CartLine]:
        payload = parse_payload(
            CartItemIn,
            {"product_id": product_id, "quantity": quantity, "user_id": user_id},
            "cart",
        )
        product_id, quantity, user_id = payload.product_id, payload.quantity, payload.user_id

        with self.repo.locked(), self.product_service.repo.locked():
            # sprawdz stan przed jakimkolwiek zapisem
            product = self.product_service.reserve_for_cart(product_id, quantity)
            subtotal = round(quantity * product.price, 2)

            lines = self.repo.get_lines(user_id)
            existing = next((line for line in lines if line.product_id == product_id), None)

            if existing:
                logger.info(
                    f"Product {product_id} already in cart of user {user_id}, "
                    f"quantity {existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                existing.price = round(existing.price + subtotal, 2)
                existing.total = round(existing.total + subtotal, 2)
            else:
                line = CartLine(
                    cart_id=self.sequence.next_id(SequenceKind.CART),
                    product_id=product_id,
                    quantity=quantity,
                    price=subtotal,
                    total=subtotal,
                )
                logger.info(f"Adding product {product_id} to cart of user {user_id} as line {line.cart_id}")
                lines.append(line)

            saved = self.repo.save_lines(user_id, lines)
            self.product_service.adjust_inventory(product_id, quantity, InventoryDirection.RESERVE)

        return saved

    def remove_item(
        self,
        product_id: str,
        user_id: str,
        is_admin: bool,
        target_user: str | None = None,
    ) -> List[CartLine]:
        target = resolve_target(user_id, is_admin, target_user)
        product_id = str(product_id)

        with self.repo.locked(), self.product_service.repo.locked():
            self._require_own_cart(user_id, is_admin)
            lines = self._existing_lines(target)

            removed = next((line for line in lines if line.product_id == product_id), None)
            if removed is None:
                raise NotFound(f"Product with id {product_id} could not be found in the cart.")

            # produkt mogl zostac usuniety z katalogu, wtedy nie ma czego zwalniac
            in_catalog = self.product_service.repo.get(product_id) is not None
            if not in_catalog:
                logger.warning(
                    f"Product {product_id} no longer exists, "
                    f"dropping cart line without releasing {removed.quantity} unit(s)"
                )

            remaining = [line for line in lines if line.product_id != product_id]
            saved = self.repo.save_lines(target, remaining)
            if in_catalog:
                self.product_service.adjust_inventory(
                    product_id, removed.quantity, InventoryDirection.RELEASE
                )

        logger.info(f"Product removed successfully with id {product_id} from cart of user {target}")
        return saved

    def update_quantity(
        self,
        product_id: str,
        quantity: int,
        user_id: str,
        is_admin: bool,
        target_user: str | None = None,
    ) -> List[CartLine]:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be a whole number greater than zero.")

        target = resolve_target(user_id, is_admin, target_user)
        product_id = str(product_id)

        with self.repo.locked(), self.product_service.repo.locked():
            self._require_own_cart(user_id, is_admin)
            lines = self._existing_lines(target)

            line = next((item for item in lines if item.product_id == product_id), None)
            if line is None:
                raise NotFound(f"Product with id {product_id} could not be found in the cart.")

            delta = quantity - line.quantity
            if delta > 0:
                product = self.product_service.reserve_for_cart(product_id, delta)
            else:
                product = self.product_service.repo.get(product_id)
                if product is None:
                    raise NotFound(f"Product with ID {product_id} not found")

            line.quantity = quantity
            line.price = round(quantity * product.price, 2)
            line.total = line.price

            saved = self.repo.save_lines(target, lines)
            if delta > 0:
                self.product_service.adjust_inventory(product_id, delta, InventoryDirection.RESERVE)
            elif delta < 0:
                self.product_service.adjust_inventory(product_id, -delta, InventoryDirection.RELEASE)

        logger.info(f"Product with id {product_id} updated with quantity {quantity} for user {target}")
        return saved

    def consume_lines(
        self,
        consumed: List[CartLine],
        user_id: str,
        is_admin: bool,
        target_user: str | None = None,
    ) -> List[CartLine]:
        """
        Removes exactly the lines that became an order, matched by
        (cart_id, product_id, quantity). Stock is not released: the units left
        with the order.
        """
        target = resolve_target(user_id, is_admin, target_user)
        wanted = {(c.cart_id, c.product_id, c.quantity) for c in consumed}

        with self.repo.locked():
            self._require_own_cart(user_id, is_admin)
            lines = self._existing_lines(target)
            remaining = [
                line for line in lines
                if (line.cart_id, line.product_id, line.quantity) not in wanted
            ]
            saved = self.repo.save_lines(target, remaining)

        logger.info(
            f"Consumed {len(lines) - len(remaining)} cart line(s) of user {target}, "
            f"{len(remaining)} left"
        )
        return saved
