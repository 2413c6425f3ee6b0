import json
from pathlib import Path

import pytest

from flatshop.data.models.cart_item import CartLine
from flatshop.data.models.order import Order, OrderLine, OrderStatus
from flatshop.data.models.product import Product
from flatshop.domain.errors import DocumentParseError
from flatshop.repos.cart_repo import CartRepo
from flatshop.repos.order_repo import OrderRepo
from flatshop.repos.product_repo import ProductRepo


def _product(pid: str, inventory: int = 3) -> Product:
    return Product(id=pid, user_id="1", name=f"p{pid}", price=2.5, inventory=inventory)


def _line(cart_id: str, product_id: str, quantity: int = 1) -> CartLine:
    return CartLine(cart_id=cart_id, product_id=product_id, quantity=quantity, price=quantity * 2.0, total=quantity * 2.0)


def test_default_documents_are_created(data_dir: Path):
    ProductRepo(data_dir).initialize_index()
    CartRepo(data_dir).initialize_index()
    OrderRepo(data_dir).initialize_index()

    assert json.loads((data_dir / "products.json").read_text()) == []
    assert json.loads((data_dir / "cart.json").read_text()) == [{}]
    assert json.loads((data_dir / "orders.json").read_text()) == [{}]


def test_index_maps_keys_to_positions(data_dir: Path):
    repo = ProductRepo(data_dir)
    for pid in ("10", "11", "12"):
        repo.upsert(pid, _product(pid))

    assert repo.index == {"10": 0, "11": 1, "12": 2}

    repo.remove("10")
    assert repo.index == {"11": 0, "12": 1}
    assert repo.get("12").name == "p12"


def test_upsert_rewrites_the_whole_document(data_dir: Path):
    repo = ProductRepo(data_dir)
    repo.upsert("1", _product("1"))
    repo.upsert("1", _product("1", inventory=9))

    stored = json.loads((data_dir / "products.json").read_text())
    assert len(stored) == 1
    assert stored[0]["inventory"] == 9
    assert stored[0]["userId"] == "1"


def test_writes_leave_no_temp_files(data_dir: Path):
    repo = ProductRepo(data_dir)
    repo.upsert("1", _product("1"))

    leftovers = [p.name for p in data_dir.iterdir() if p.name not in ("products.json",)]
    assert leftovers == []


def test_invalid_json_raises_parse_error_and_keeps_index(data_dir: Path):
    repo = ProductRepo(data_dir)
    repo.upsert("1", _product("1"))

    (data_dir / "products.json").write_text("[{\"id\": ", encoding="utf-8")

    with pytest.raises(DocumentParseError):
        repo.initialize_index()
    assert repo._index == {"1": 0}
    with pytest.raises(DocumentParseError):
        repo.get("1")


def test_wrong_document_shape_raises_parse_error(data_dir: Path):
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "cart.json").write_text(json.dumps({"1": []}), encoding="utf-8")

    with pytest.raises(DocumentParseError):
        CartRepo(data_dir).initialize_index()


def test_empty_line_sequence_drops_user_key(data_dir: Path):
    repo = CartRepo(data_dir)
    repo.save_lines("7", [_line("1", "3")])
    assert repo.keys() == ["7"]

    repo.save_lines("7", [])

    assert repo.keys() == []
    assert json.loads((data_dir / "cart.json").read_text()) == [{}]


def test_mapping_store_returns_copies(data_dir: Path):
    repo = CartRepo(data_dir)
    repo.save_lines("7", [_line("1", "3")])

    lines = repo.get_lines("7")
    lines[0].quantity = 99

    assert repo.get_lines("7")[0].quantity == 1


def test_records_round_trip_through_documents():
    order = Order(
        user_id="4",
        order_id="2",
        items=[OrderLine(product_id="9", quantity=2, price=10.0, total=10.0, status=OrderStatus.DONE)],
        total=10.0,
        timestamp=1700000000000,
    )
    line = _line("5", "9", quantity=3)

    for record in (order, line, _product("9")):
        document = record.to_document()
        assert type(record).model_validate(document) == record
        assert type(record).model_validate(document).to_document() == document

    assert order.to_document()["items"][0]["status"] == "Done"
    assert "productId" in line.to_document()
