import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from flatshop.data.models.counters import SequenceKind
from flatshop.domain.errors import ValidationError
from flatshop.services.sequence_service import SequenceService
from flatshop.utils import settings


def test_missing_counter_file_is_created_with_zeros(data_dir: Path):
    svc = SequenceService(data_dir)

    counters = svc.current()

    assert (data_dir / "utils.json").exists()
    assert counters.to_document() == {
        "productId": 0,
        "orderId": 0,
        "cartId": 0,
        "userId": 0,
        "category": 0,
    }


def test_ids_are_strictly_increasing_per_kind(sequence: SequenceService):
    ids = [int(sequence.next_id(SequenceKind.PRODUCT)) for _ in range(5)]

    assert ids == [1, 2, 3, 4, 5]
    assert len(set(ids)) == len(ids)


def test_kinds_are_independent(sequence: SequenceService):
    sequence.next_id("product")
    sequence.next_id("product")

    assert sequence.next_id(SequenceKind.ORDER) == "1"
    assert sequence.next_id(SequenceKind.CART) == "1"
    assert sequence.next_id(SequenceKind.PRODUCT) == "3"


def test_user_id_does_not_advance_category_counter(sequence: SequenceService):
    sequence.next_id(SequenceKind.USER)
    sequence.next_id(SequenceKind.USER)

    counters = sequence.current()
    assert counters.user_id == 2
    assert counters.category == 0


def test_counters_survive_a_new_instance(data_dir: Path, sequence: SequenceService):
    sequence.next_id(SequenceKind.ORDER)

    assert SequenceService(data_dir).next_id(SequenceKind.ORDER) == "2"


def test_malformed_counter_file_is_reset(data_dir: Path):
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "utils.json").write_text("{ this is not json", encoding="utf-8")

    svc = SequenceService(data_dir)

    assert svc.next_id(SequenceKind.USER) == "1"
    stored = json.loads((data_dir / "utils.json").read_text(encoding="utf-8"))
    assert stored["userId"] == 1


def test_unknown_kind_is_rejected(sequence: SequenceService):
    with pytest.raises(ValidationError):
        sequence.next_id("invoice")


def test_concurrent_callers_never_share_an_id(data_dir: Path, monkeypatch):
    monkeypatch.setattr(settings, "LOCK_RETRY_ATTEMPTS", 500)
    monkeypatch.setattr(settings, "LOCK_RETRY_MAX_WAIT", 0.05)

    def take(count: int) -> list[int]:
        svc = SequenceService(data_dir)
        return [int(svc.next_id(SequenceKind.CART)) for _ in range(count)]

    with ThreadPoolExecutor(max_workers=4) as pool:
        batches = [f.result() for f in [pool.submit(take, 20) for _ in range(4)]]

    ids = sorted(i for batch in batches for i in batch)
    assert ids == list(range(1, 81))
    for batch in batches:
        assert batch == sorted(batch)
    assert SequenceService(data_dir).current().cart_id == 80
