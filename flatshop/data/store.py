# flatshop/data/store.py
import copy
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from flatshop.domain.errors import DocumentParseError, StoreIOError
from flatshop.services.lock_service import LockService, lock_service as default_lock_service
from flatshop.utils import settings
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS_FILE = "products.json"
CATEGORY_FILE = "category.json"
CART_FILE = "cart.json"
ORDERS_FILE = "orders.json"
COUNTERS_FILE = "utils.json"
USERS_FILE = "users.json"
SESSION_FILE = "sessionuser.json"


def data_dir(override: str | Path | None = None) -> Path:
    return Path(override if override is not None else settings.DATA_DIR)


class JsonDocument:
    """
    A single JSON file read and written as a whole.

    Missing or empty files are created with ``default``; anything that does not
    parse raises DocumentParseError. Writes go to a temp file in the same
    directory and are moved into place with ``os.replace``.
    """

    def __init__(
        self,
        path: str | Path,
        default: Any | Callable[[], Any],
        lock_service: LockService | None = None,
    ):
        self.path = Path(path)
        self._default = default
        self.lock_service = lock_service or default_lock_service

    def default(self) -> Any:
        if callable(self._default):
            return self._default()
        return copy.deepcopy(self._default)

    def signature(self) -> tuple[int, int, int] | None:
        """Identity of the file on disk; every atomic write produces a new one."""
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def ensure(self) -> None:
        if self.path.exists():
            return
        #tworzenie pod lockiem zeby nie nadpisac pliku zapisanego w miedzyczasie
        with self.locked():
            if self.path.exists():
                return
            self.write(self.default())
        logger.info(f"File {self.path} created with default data.")

    def read(self) -> Any:
        self.ensure()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreIOError(f"Error reading file: {self.path} - {e}") from e

        if not raw.strip():
            return self.default()

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise DocumentParseError(self.path, str(e)) from e

    def write(self, data: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.stem}_", suffix=".json", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StoreIOError(f"Error writing JSON file: {self.path} - {e}") from e

    @contextmanager
    def locked(self) -> Iterator[bool]:
        with self.lock_service.hold(self.path) as outermost:
            yield outermost
