import json
from pathlib import Path

import pytest

from flatshop.domain.errors import InventoryExhausted, NotFound, PermissionDenied, ValidationError
from flatshop.services.product_service import InventoryDirection, ProductService


class TestCreateProduct:
    def test_assigns_sequential_ids(self, products: ProductService):
        first = products.create_product(owner_id="1", name="A", price=1, inventory=1)
        second = products.create_product(owner_id="1", name="B", price=2, inventory=2)

        assert (first.id, second.id) == ("1", "2")
        assert products.get_product("2", "1", False).name == "B"

    def test_creates_category_once_and_reuses_it_by_name(self, products: ProductService, data_dir: Path):
        first = products.create_product(
            owner_id="1", name="Desk", price=100, inventory=1, category="Home Office"
        )
        second = products.create_product(
            owner_id="2", name="Chair", price=50, inventory=1, category="home office"
        )

        categories = products.list_categories()
        assert len(categories) == 1
        assert categories[0].slug == "home_office"
        assert first.category == second.category == categories[0].id

        stored = json.loads((data_dir / "category.json").read_text())
        assert stored[0]["name"] == "Home Office"

    def test_product_without_category(self, products: ProductService):
        created = products.create_product(owner_id="1", name="Plain", price=3, inventory=0)

        assert created.category is None
        assert products.list_categories() == []

    @pytest.mark.parametrize(
        "price, inventory",
        [(None, 1), ("abc", 1), (-1, 1), ("nan", 1), (float("inf"), 1), (1, None), (1, -5)],
    )
    def test_rejects_invalid_price_or_inventory(self, products: ProductService, price, inventory):
        with pytest.raises(ValidationError):
            products.create_product(owner_id="1", name="X", price=price, inventory=inventory)

        assert products.repo.all() == []


class TestOwnership:
    def test_owner_and_admin_can_read(self, products: ProductService, product):
        assert products.get_product(product.id, "1", False).id == product.id
        assert products.get_product(product.id, "2", True).id == product.id

    def test_other_user_is_denied(self, products: ProductService, product):
        with pytest.raises(PermissionDenied):
            products.get_product(product.id, "2", False)

    def test_unknown_product(self, products: ProductService):
        with pytest.raises(NotFound):
            products.get_product("404", "1", True)

    def test_listing(self, products: ProductService, product):
        products.create_product(owner_id="2", name="Other", price=1, inventory=1)

        assert [p.id for p in products.list_products("1", False)] == [product.id]
        assert len(products.list_products("1", True)) == 2
        with pytest.raises(NotFound):
            products.list_products("3", False)


class TestUpdateProduct:
    def test_applies_recognised_fields(self, products: ProductService, product):
        updated = products.update_product(
            product.id, {"price": "7.5", "inventory": "4", "name": "Gadget"}, False, "1"
        )

        assert updated.price == 7.5
        assert updated.inventory == 4
        assert updated.name == "Gadget"
        assert products.get_product(product.id, "1", False).inventory == 4

    def test_rejects_unknown_field(self, products: ProductService, product):
        with pytest.raises(ValidationError, match="colour"):
            products.update_product(product.id, {"colour": "red"}, True, "1")

    def test_rejects_non_numeric_price(self, products: ProductService, product):
        with pytest.raises(ValidationError):
            products.update_product(product.id, {"price": "cheap"}, True, "1")

    @pytest.mark.parametrize(
        "fields",
        [
            {"price": "nan"},
            {"price": float("inf")},
            {"inventory": "1e400"},
            {"inventory": float("nan")},
            {"inventory": "-inf"},
        ],
    )
    def test_rejects_non_finite_numbers(self, products: ProductService, product, data_dir: Path, fields):
        with pytest.raises(ValidationError):
            products.update_product(product.id, fields, True, "1")

        stored = ProductService(data_dir).get_product(product.id, "1", False)
        assert (stored.price, stored.inventory) == (5, 10)

    def test_rejects_non_string_name(self, products: ProductService, product):
        with pytest.raises(ValidationError):
            products.update_product(product.id, {"name": 12}, True, "1")

    def test_category_update_resolves_category(self, products: ProductService, product):
        updated = products.update_product(product.id, {"category": "Tools"}, False, "1")

        assert updated.category == products.list_categories()[0].id

    def test_other_user_cannot_update(self, products: ProductService, product):
        with pytest.raises(PermissionDenied):
            products.update_product(product.id, {"name": "Mine"}, False, "2")

        assert products.get_product(product.id, "1", False).name == "Widget"


class TestDeleteProduct:
    def test_delete_rebuilds_index(self, products: ProductService):
        for name in ("A", "B", "C"):
            products.create_product(owner_id="1", name=name, price=1, inventory=1)

        products.delete_product("1", "1", False)

        assert products.repo.index == {"2": 0, "3": 1}
        assert products.get_product("3", "1", False).name == "C"

    def test_other_user_cannot_delete(self, products: ProductService, product):
        with pytest.raises(PermissionDenied):
            products.delete_product(product.id, "2", False)

        assert products.get_product(product.id, "1", False)


class TestInventory:
    def test_reserve_then_release_conserves_stock(self, products: ProductService, product):
        products.reserve_for_cart(product.id, 4)
        products.adjust_inventory(product.id, 4, InventoryDirection.RESERVE)
        assert products.get_product(product.id, "1", False).inventory == 6

        products.adjust_inventory(product.id, 4, "release")
        assert products.get_product(product.id, "1", False).inventory == 10

    def test_reserve_for_cart_does_not_mutate(self, products: ProductService, product):
        snapshot = products.reserve_for_cart(product.id, 10)

        assert snapshot.inventory == 10
        assert products.get_product(product.id, "1", False).inventory == 10

    def test_reserving_more_than_stock_fails_before_write(self, products: ProductService, product):
        with pytest.raises(InventoryExhausted):
            products.reserve_for_cart(product.id, 11)
        with pytest.raises(InventoryExhausted):
            products.adjust_inventory(product.id, 11, InventoryDirection.RESERVE)

        assert products.get_product(product.id, "1", False).inventory == 10

    def test_release_has_no_upper_check(self, products: ProductService, product):
        products.adjust_inventory(product.id, 100, InventoryDirection.RELEASE)

        assert products.get_product(product.id, "1", False).inventory == 110
