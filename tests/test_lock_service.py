import os
import time
from pathlib import Path

import pytest

from flatshop.domain.errors import LockTimeout
from flatshop.services.lock_service import LockService, lock_path_for


@pytest.fixture
def target(data_dir: Path) -> Path:
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "cart.json"


def test_hold_creates_and_removes_lock_file(target: Path):
    locks = LockService()

    with locks.hold(target) as outermost:
        assert outermost is True
        assert lock_path_for(target).read_text() == locks.owner_token()

    assert not lock_path_for(target).exists()


def test_hold_is_reentrant_within_a_thread(target: Path):
    locks = LockService()

    with locks.hold(target):
        with locks.hold(target) as outermost:
            assert outermost is False
        assert lock_path_for(target).exists()

    assert not lock_path_for(target).exists()


def test_lock_held_by_another_owner_times_out(target: Path):
    lock_path_for(target).write_text("999999:1")
    locks = LockService(ttl=60)

    with pytest.raises(LockTimeout):
        locks.acquire(target)

    assert lock_path_for(target).read_text() == "999999:1"


def test_stale_lock_is_broken(target: Path):
    lock_file = lock_path_for(target)
    lock_file.write_text("999999:1")
    old = time.time() - 120
    os.utime(lock_file, (old, old))
    locks = LockService(ttl=30)

    assert locks.acquire(target) is True
    assert lock_file.read_text() == locks.owner_token()
    locks.release(target)


def test_release_keeps_foreign_lock(target: Path):
    lock_path_for(target).write_text("999999:1")

    assert LockService().release(target) is False
    assert lock_path_for(target).exists()
