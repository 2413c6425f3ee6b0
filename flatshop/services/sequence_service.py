# flatshop/services/sequence_service.py
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from flatshop.data.models.counters import SequenceCounters, SequenceKind
from flatshop.data.store import COUNTERS_FILE, JsonDocument, data_dir
from flatshop.domain.errors import DocumentParseError, ValidationError
from flatshop.services.lock_service import LockService
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)


class SequenceService:
    """
    Per-kind monotonically increasing identifiers kept in one counter file.

    Each call holds the counter file lock for the whole read-increment-write
    cycle, so two callers never observe the same pre-increment value.
    A missing, empty or malformed counter file is reset to zeros.
    """

    def __init__(self, directory: str | Path | None = None, lock_service: LockService | None = None):
        self.document = JsonDocument(
            data_dir(directory) / COUNTERS_FILE,
            lambda: SequenceCounters().to_document(),
            lock_service,
        )

    def _load(self) -> SequenceCounters:
        try:
            raw = self.document.read()
            if not isinstance(raw, dict) or not raw:
                raise ValueError("counter document is not an object")
            return SequenceCounters.model_validate(raw)
        except (DocumentParseError, PydanticValidationError, ValueError) as e:
            logger.warning(f"Counter file {self.document.path} is malformed ({e}), resetting")
            counters = SequenceCounters()
            self.document.write(counters.to_document())
            return counters

    def current(self) -> SequenceCounters:
        return self._load()

    def next_id(self, kind: SequenceKind | str) -> str:
        try:
            kind = SequenceKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown sequence kind {kind!r}")

        with self.document.locked():
            counters = self._load()
            field = counters.field_for(kind)
            value = getattr(counters, field) + 1
            setattr(counters, field, value)
            self.document.write(counters.to_document())

        logger.debug(f"Generated {kind.value} id {value}")
        return str(value)
