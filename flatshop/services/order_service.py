# flatshop/services/order_service.py
import time
from pathlib import Path
from typing import Any, Dict, List

from flatshop.data.models.counters import SequenceKind
from flatshop.data.models.order import Order, OrderLine, OrderStatus
from flatshop.domain.errors import NotFound, ValidationError
from flatshop.domain.schemas import DeleteOutcome, OrderCreate, parse_payload
from flatshop.repos.order_repo import OrderRepo
from flatshop.services.cart_service import CartService, resolve_target
from flatshop.services.lock_service import LockService
from flatshop.services.sequence_service import SequenceService
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)


def parse_status(status: Any) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        raise ValidationError("Please enter a valid status - Pending or Done")


def merge_unique_by_product_id(first: List[OrderLine], second: List[OrderLine]) -> List[OrderLine]:
    """Keeps the first line seen for each product id; later duplicates are dropped."""
    merged: Dict[str, OrderLine] = {}
    for line in [*first, *second]:
        merged.setdefault(line.product_id, line)
    return list(merged.values())


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Jedno zamówienie na użytkownika; nowe pozycje są scalane po product id,
    pozycje ze statusem Done nie mogą być usunięte.
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        cart_service: CartService | None = None,
        sequence: SequenceService | None = None,
        lock_service: LockService | None = None,
    ):
        self.repo = OrderRepo(directory, lock_service)
        self.sequence = sequence or SequenceService(directory, lock_service)
        self.cart_service = cart_service or CartService(
            directory, sequence=self.sequence, lock_service=lock_service
        )

    def _order_or_raise(self, target: str) -> Order:
        order = self.repo.get(target)
        if not order:
            raise NotFound(f"Order not found for user ID: {target}")
        return order

    #query
    def get_orders(
        self,
        user_id: str,
        is_admin: bool,
        target_user: str | None = None,
    ) -> Dict[str, Order] | Order:
        if is_admin and target_user is None:
            return self.repo.all()

        target = resolve_target(user_id, is_admin, target_user)
        order = self.repo.get(target)
        if not order:
            raise NotFound("User has not placed any orders yet!")
        return order

    #commands
    def create_order(self, order_data: Dict[str, Any] | OrderCreate) -> Order:
        """
        Stores the order for ``user_id``; an existing order for the same user
        keeps its lines and gains only the lines for new product ids.
        """
        if not isinstance(order_data, OrderCreate):
            order_data = parse_payload(OrderCreate, order_data, "order")

        user_id = order_data.user_id

        with self.repo.locked():
            existing = self.repo.get(user_id)
            if existing is None:
                order = Order(
                    user_id=user_id,
                    order_id=self.sequence.next_id(SequenceKind.ORDER),
                    items=merge_unique_by_product_id(order_data.items, []),
                    timestamp=order_data.timestamp,
                )
                logger.info(f"Order {order.order_id} created for user {user_id}")
            else:
                order = existing
                before = len(order.items)
                order.items = merge_unique_by_product_id(order.items, order_data.items)
                logger.info(
                    f"Order {order.order_id} of user {user_id} merged, "
                    f"{len(order.items) - before} new line(s)"
                )

            order.recompute_total()
            saved = self.repo.save_order(order)

        return saved

    def place_order(
        self,
        user_id: str,
        product_ids: List[str],
        status: Any,
        is_admin: bool,
        target_user: str | None = None,
    ) -> Order:
        """
        Use Case: zamowienie z koszyka.

        1. Pobiera koszyk docelowego uzytkownika i filtruje po product id
        2. Ustawia status pozycji (Pending/Done)
        3. Tworzy/scala zamowienie
        4. Dopiero po udanym zapisie usuwa zuzyte linie z koszyka
        """
        status = parse_status(status)
        target = resolve_target(user_id, is_admin, target_user)
        wanted = {str(pid) for pid in product_ids}
        if not wanted:
            raise ValidationError("At least one product id is required")

        with self.repo.locked(), self.cart_service.repo.locked():
            lines = self.cart_service.repo.get_lines(target)
            if not lines:
                raise NotFound("Cart is empty!")

            selected = [line for line in lines if line.product_id in wanted]
            if not selected:
                raise ValidationError(
                    "Products have not been added to the cart yet or the provided product IDs are incorrect."
                )

            order = self.create_order(
                OrderCreate(
                    user_id=target,
                    items=[
                        OrderLine(
                            product_id=line.product_id,
                            quantity=line.quantity,
                            price=line.price,
                            total=line.total,
                            status=status,
                        )
                        for line in selected
                    ],
                    timestamp=int(time.time() * 1000),
                )
            )
            self.cart_service.consume_lines(selected, user_id, is_admin, target_user)

        return order

    def update_order(self, order_data: Dict[str, Any], target_user: str | None = None) -> Order:
        user_id = order_data.get("user_id")
        is_admin = bool(order_data.get("is_admin", False))
        items = [str(pid) for pid in order_data.get("items") or []]
        if not user_id:
            raise ValidationError("user_id is required")
        if not items:
            raise ValidationError("Please select the product first!")
        status = parse_status(order_data.get("status"))

        target = resolve_target(user_id, is_admin, target_user)

        with self.repo.locked():
            order = self._order_or_raise(target)
            changed = []
            for line in order.items:
                if line.product_id in items:
                    line.status = status
                    changed.append(line.product_id)
            saved = self.repo.save_order(order)

        logger.info(f"Order of user {target}: status {status.value} set for {changed}")
        return saved

    def delete_order(self, option_data: Dict[str, Any], target_user: str | None = None) -> DeleteOutcome:
        user_id = option_data.get("user_id")
        is_admin = bool(option_data.get("is_admin", False))
        requested = [str(pid) for pid in option_data.get("producttotal_id") or []]
        if not user_id:
            raise ValidationError("user_id is required")

        target = resolve_target(user_id, is_admin, target_user)
        outcome = DeleteOutcome(user_id=target)

        with self.repo.locked():
            order = self._order_or_raise(target)
            kept: List[OrderLine] = []
            for line in order.items:
                if line.product_id not in requested:
                    kept.append(line)
                elif line.status is OrderStatus.DONE:
                    logger.info(f"Product with {line.product_id} has Done status and cannot be removed.")
                    outcome.skipped_final.append(line.product_id)
                    kept.append(line)
                else:
                    outcome.removed.append(line.product_id)

            present = {line.product_id for line in order.items}
            outcome.missing = [pid for pid in requested if pid not in present]

            order.items = kept
            order.recompute_total()
            outcome.order_deleted = self.repo.save_order(order) is None

        logger.info(f"Order of user {target} after deletion attempt: {outcome.message}")
        return outcome
