"""Line-oriented output streams that only ever hold whole lines."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, TextIO

from pathminer.errors import StorageIOFailure
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)


class CorpusWriter:
    """Append-only UTF-8 line writer guarded by its own lock.

    Lines are buffered in memory and handed to the file in whole-line batches,
    so an aborted run leaves only complete, newline-terminated lines behind.
    Every ``OSError`` surfaces as :class:`StorageIOFailure`.
    """

    def __init__(self, path: Path, flush_every: int = 256) -> None:
        self.path = path
        self.flush_every = max(1, flush_every)
        self.lines_written = 0
        self._pending: list[str] = []
        self._lock = threading.Lock()
        self._handle: Optional[TextIO] = None
        self._closed = False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = path.open("w", encoding="utf-8", newline="\n")
        except OSError as exc:
            raise StorageIOFailure(f"Cannot open {path}: {exc}") from exc

    @property
    def closed(self) -> bool:
        return self._closed

    def write_line(self, line: str) -> None:
        if "\n" in line or "\r" in line:
            raise ValueError("Corpus lines must not contain line breaks.")
        with self._lock:
            if self._closed:
                raise StorageIOFailure(f"Writer for {self.path} is already closed.")
            self._pending.append(line + "\n")
            self.lines_written += 1
            if len(self._pending) >= self.flush_every:
                self._flush_locked()

    def flush(self) -> None:
        with self._lock:
            self._flush_locked()

    def close(self) -> None:
        """Flush and close; later calls are no-ops."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._flush_locked()
            finally:
                self._close_handle()

    def discard(self) -> None:
        """Close without writing buffered lines (used when a run aborts)."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._pending.clear()
            self._close_handle()

    def _flush_locked(self) -> None:
        if self._handle is None or not self._pending:
            return
        chunk = "".join(self._pending)
        self._pending.clear()
        try:
            self._handle.write(chunk)
            self._handle.flush()
        except OSError as exc:
            raise StorageIOFailure(f"Cannot write {self.path}: {exc}") from exc

    def _close_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.close()
        except OSError as exc:
            raise StorageIOFailure(f"Cannot close {self.path}: {exc}") from exc
        logger.debug("Closed %s (%d lines)", self.path, self.lines_written)
