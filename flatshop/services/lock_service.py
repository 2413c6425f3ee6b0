# flatshop/services/lock_service.py
import os
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from flatshop.domain.errors import LockBusy, LockTimeout
from flatshop.utils import settings
from flatshop.utils.logging import get_logger
from flatshop.utils.retry import lock_retry

logger = get_logger(__name__)

#lock file = SET NX: O_EXCL tworzy plik tylko jesli nie istnieje
#w pliku token wlasciciela, zwolnienie porownuje token i dopiero wtedy usuwa
#plik starszy niz ttl traktujemy jak wygasly klucz


def lock_path_for(path: str | Path) -> Path:
    path = Path(path)
    return path.with_name(path.name + ".lock")


class LockService:
    """
    -blokada dokumentu JSON na czas read-modify-write
    -zwalnianie blokady tylko przez wlasciciela
    -reentrant w obrebie jednego watku
    """

    def __init__(self, ttl: int | None = None):
        self.ttl = ttl
        self._local = threading.local()

    def owner_token(self) -> str:
        return f"{os.getpid()}:{threading.get_ident()}"

    def _depths(self) -> dict[str, int]:
        if not hasattr(self._local, "depths"):
            self._local.depths = {}
        return self._local.depths

    def _ttl(self) -> int:
        return self.ttl if self.ttl is not None else settings.LOCK_TTL_SECONDS

    def _break_if_stale(self, lock_file: Path) -> None:
        try:
            age = time.time() - lock_file.stat().st_mtime
        except FileNotFoundError:
            return
        if age > self._ttl():
            logger.warning(f"Breaking stale lock {lock_file} (age {age:.1f}s)")
            try:
                lock_file.unlink()
            except FileNotFoundError:
                pass

    def _try_acquire(self, lock_file: Path, token: str) -> None:
        self._break_if_stale(lock_file)
        try:
            fd = os.open(str(lock_file), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise LockBusy(f"{lock_file} is held by another owner")
        with os.fdopen(fd, "w") as fh:
            fh.write(token)

    def acquire(self, path: str | Path) -> bool:
        lock_file = lock_path_for(path)
        lock_file.parent.mkdir(parents=True, exist_ok=True)
        token = self.owner_token()
        logger.debug(f"Acquire lock {lock_file} for {token}")
        try:
            lock_retry()(self._try_acquire)(lock_file, token)
        except LockBusy:
            raise LockTimeout(f"Could not acquire lock {lock_file}")
        return True

    def release(self, path: str | Path) -> bool:
        lock_file = lock_path_for(path)
        token = self.owner_token()
        logger.debug(f"Release lock {lock_file} for {token}")
        try:
            current = lock_file.read_text()
        except FileNotFoundError:
            return False
        if current != token:
            logger.warning(f"Lock {lock_file} is owned by {current}, not releasing")
            return False
        lock_file.unlink()
        return True

    @contextmanager
    def hold(self, path: str | Path) -> Iterator[bool]:
        """Holds the lock for ``path``; yields True only for the outermost hold."""
        key = str(Path(path).resolve())
        depths = self._depths()
        outermost = depths.get(key, 0) == 0
        if outermost:
            self.acquire(path)
        depths[key] = depths.get(key, 0) + 1
        try:
            yield outermost
        finally:
            depths[key] -= 1
            if depths[key] == 0:
                del depths[key]
                self.release(path)


lock_service = LockService()
