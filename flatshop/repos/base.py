# flatshop/repos/base.py
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generic, Iterator, TypeVar

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from flatshop.data.models.base import Record
from flatshop.data.store import JsonDocument
from flatshop.domain.errors import DocumentParseError
from flatshop.services.lock_service import LockService

R = TypeVar("R", bound=Record)
V = TypeVar("V")


class RecordStore:
    """
    File backed collection with an in-memory index (key -> position).

    The index is only replaced after a complete, successful read, so a failed
    read leaves the previous index untouched. Reads reload whenever the file
    on disk differs from the one last loaded, so writes made through another
    store or process are seen. Every mutation re-reads the document under its
    lock, applies the change and rewrites the whole file.
    """

    def __init__(self, path: str | Path, default: Any, lock_service: LockService | None = None):
        self.document = JsonDocument(path, default, lock_service)
        self._index: dict[str, int] | None = None
        self._loaded: tuple[int, int, int] | None = None

    @property
    def path(self) -> Path:
        return self.document.path

    @property
    def index(self) -> dict[str, int]:
        self._ensure_index()
        return dict(self._index)

    def _ensure_index(self) -> None:
        if self._index is None or self.document.signature() != self._loaded:
            self.initialize_index()

    def initialize_index(self) -> None:
        self.document.ensure()
        signature = self.document.signature()
        raw = self.document.read()
        try:
            state = self._load(raw)
        except (PydanticValidationError, TypeError, ValueError) as e:
            raise DocumentParseError(self.path, str(e)) from e
        self._apply(state)
        self._index = self._build_index()
        self._loaded = signature

    @contextmanager
    def locked(self) -> Iterator["RecordStore"]:
        """Holds the document lock; the outermost hold reloads from disk."""
        with self.document.locked() as outermost:
            if outermost:
                self.initialize_index()
            try:
                yield self
            except BaseException:
                # niezapisane zmiany w pamieci, wymus ponowny odczyt
                if outermost:
                    self._index = None
                raise

    def persist(self) -> None:
        self.document.write(self._dump())
        self._loaded = self.document.signature()
        self._index = self._build_index()

    # subclasses: parse raw document, swap in parsed state, index it, dump it
    def _load(self, raw: Any) -> Any:
        raise NotImplementedError

    def _apply(self, state: Any) -> None:
        raise NotImplementedError

    def _build_index(self) -> dict[str, int]:
        raise NotImplementedError

    def _dump(self) -> Any:
        raise NotImplementedError


class CollectionStore(RecordStore, Generic[R]):
    """Flat JSON list of records keyed by one of their fields (products, users)."""

    key_field: str = "id"

    def __init__(self, path: str | Path, model: type[R], lock_service: LockService | None = None):
        super().__init__(path, [], lock_service)
        self.model = model
        self._records: list[R] = []

    def _load(self, raw: Any) -> list[R]:
        if not isinstance(raw, list):
            raise TypeError(f"expected a list, got {type(raw).__name__}")
        return [self.model.model_validate(item) for item in raw]

    def _apply(self, state: list[R]) -> None:
        self._records = state

    def _build_index(self) -> dict[str, int]:
        return {self.key_of(r): i for i, r in enumerate(self._records)}

    def _dump(self) -> list[dict]:
        return [r.to_document() for r in self._records]

    def key_of(self, record: R) -> str:
        return str(getattr(record, self.key_field))

    def all(self) -> list[R]:
        self._ensure_index()
        return [r.model_copy(deep=True) for r in self._records]

    def get(self, key: str) -> R | None:
        self._ensure_index()
        position = self._index.get(str(key))
        if position is None:
            return None
        return self._records[position].model_copy(deep=True)

    def upsert(self, key: str, value: R) -> R:
        with self.locked():
            position = self._index.get(str(key))
            if position is None:
                self._records.append(value)
            else:
                self._records[position] = value
            self.persist()
        return value.model_copy(deep=True)

    def remove(self, key: str) -> R | None:
        with self.locked():
            position = self._index.get(str(key))
            if position is None:
                return None
            removed = self._records.pop(position)
            self.persist()
        return removed


class MappingStore(RecordStore, Generic[V]):
    """
    One-element JSON list wrapping a mapping ``{user_id: value}`` (carts, orders).

    A value that is an empty sequence is never stored: writing one removes the
    user's key.
    """

    def __init__(self, path: str | Path, value_type: Any, lock_service: LockService | None = None):
        super().__init__(path, [{}], lock_service)
        self.adapter: TypeAdapter[V] = TypeAdapter(value_type)
        self._entries: dict[str, V] = {}

    def _load(self, raw: Any) -> dict[str, V]:
        if not isinstance(raw, list):
            raise TypeError(f"expected a one-element list, got {type(raw).__name__}")
        mapping = raw[0] if raw else {}
        if not isinstance(mapping, dict):
            raise TypeError(f"expected a mapping, got {type(mapping).__name__}")
        return {str(k): self.adapter.validate_python(v) for k, v in mapping.items()}

    def _apply(self, state: dict[str, V]) -> None:
        self._entries = state

    def _build_index(self) -> dict[str, int]:
        return {user: i for i, user in enumerate(self._entries)}

    def _dump(self) -> list[dict]:
        return [
            {user: self.adapter.dump_python(value, mode="json", by_alias=True, exclude_none=True)
             for user, value in self._entries.items()}
        ]

    def _copy(self, value: V) -> V:
        return self.adapter.validate_python(
            self.adapter.dump_python(value, by_alias=True)
        )

    def keys(self) -> list[str]:
        self._ensure_index()
        return list(self._entries)

    def all(self) -> dict[str, V]:
        self._ensure_index()
        return {user: self._copy(value) for user, value in self._entries.items()}

    def get(self, key: str) -> V | None:
        self._ensure_index()
        if str(key) not in self._index:
            return None
        return self._copy(self._entries[str(key)])

    def upsert(self, key: str, value: V) -> V | None:
        with self.locked():
            if isinstance(value, (list, tuple)) and len(value) == 0:
                self._entries.pop(str(key), None)
            else:
                self._entries[str(key)] = value
            self.persist()
        return self.get(key)

    def remove(self, key: str) -> V | None:
        with self.locked():
            removed = self._entries.pop(str(key), None)
            if removed is None:
                return None
            self.persist()
        return removed
