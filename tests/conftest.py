from pathlib import Path

import pytest

from flatshop.services.cart_service import CartService
from flatshop.services.order_service import OrderService
from flatshop.services.product_service import ProductService
from flatshop.services.sequence_service import SequenceService
from flatshop.services.user_service import UserService
from flatshop.utils import settings


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    """Every test gets its own data directory."""
    directory = tmp_path / "data"
    monkeypatch.setattr(settings, "DATA_DIR", str(directory))
    monkeypatch.setattr(settings, "LOCK_RETRY_ATTEMPTS", 3)
    monkeypatch.setattr(settings, "LOCK_RETRY_MAX_WAIT", 0.02)
    return directory


@pytest.fixture
def sequence(data_dir: Path) -> SequenceService:
    return SequenceService(data_dir)


@pytest.fixture
def products(data_dir: Path, sequence: SequenceService) -> ProductService:
    return ProductService(data_dir, sequence)


@pytest.fixture
def carts(data_dir: Path, products: ProductService, sequence: SequenceService) -> CartService:
    return CartService(data_dir, products, sequence)


@pytest.fixture
def orders(data_dir: Path, carts: CartService, sequence: SequenceService) -> OrderService:
    return OrderService(data_dir, carts, sequence)


@pytest.fixture
def users(data_dir: Path, sequence: SequenceService) -> UserService:
    return UserService(data_dir, sequence)


@pytest.fixture
def product(products: ProductService):
    """Product P from the reference scenario: price 5, inventory 10, owned by user 1."""
    return products.create_product(owner_id="1", name="Widget", price=5, inventory=10)
