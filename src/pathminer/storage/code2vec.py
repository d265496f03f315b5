"""code2vec-style encoding of labeled path contexts."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from pathminer.errors import StorageIOFailure
from pathminer.paths.model import LabeledPathContextIds, LabeledPathContexts, PathContext, PathContextId
from pathminer.storage.ranked import RankedIncrementalIdStorage
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)

TOKENS_FILENAME = "tokens.txt"
PATHS_FILENAME = "paths.txt"


@dataclass(frozen=True)
class PathBasedStorageConfig:
    """Per-example cap and optional vocabulary caps (top-N by rank)."""

    max_path_contexts: int = 500
    max_tokens: Optional[int] = None
    max_paths: Optional[int] = None
    max_path_length: Optional[int] = None
    max_path_width: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_path_contexts < 0:
            raise ValueError("max_path_contexts must be non-negative.")
        for name in ("max_tokens", "max_paths", "max_path_length", "max_path_width"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative or null.")


class Code2VecEncoder:
    """Turns labeled path contexts into ``label s,p,e s,p,e ...`` corpus lines.

    Owns the token and path-shape tables. Each example is recorded and then
    filtered against the ranks as they stand at that moment, all under one lock,
    so no other caller can record between an example's ``record`` and ``rank``.
    """

    def __init__(self, config: PathBasedStorageConfig) -> None:
        self.config = config
        self._tokens: RankedIncrementalIdStorage[str] = RankedIncrementalIdStorage()
        self._paths: RankedIncrementalIdStorage[str] = RankedIncrementalIdStorage()
        self._lock = threading.Lock()
        self._dumped = False

    def encode(self, labeled: LabeledPathContexts) -> Optional[str]:
        """Record the example and return its corpus line, or ``None`` if nothing survives."""
        check_label(labeled.label)
        with self._lock:
            ids = LabeledPathContextIds(
                labeled.label,
                tuple(self._store_path_context(context) for context in labeled.path_contexts),
            )
            kept = [context_id for context_id in ids.path_contexts if self._is_within_vocabulary(context_id)]
        if not kept:
            return None
        return format_corpus_line(labeled.label, kept)

    def vocabulary_snapshot(self) -> dict[str, dict[str, tuple[int, int]]]:
        """``{"tokens": {key: (id, count)}, "paths": {...}}`` for inspection and tests."""
        with self._lock:
            return {
                "tokens": {entry.key: (entry.id, entry.count) for entry in self._tokens.ranked_items()},
                "paths": {entry.key: (entry.id, entry.count) for entry in self._paths.ranked_items()},
            }

    def dump_dictionaries(self, output_dir: Path) -> tuple[Path, Path]:
        """Write ``<id> <key> <count>`` lines in final rank order, once."""
        with self._lock:
            if self._dumped:
                raise RuntimeError("Dictionaries were already dumped.")
            self._dumped = True
            tokens_path = output_dir / TOKENS_FILENAME
            paths_path = output_dir / PATHS_FILENAME
            _dump_table(tokens_path, self._tokens)
            _dump_table(paths_path, self._paths)
        logger.info(
            "Dumped %d tokens to %s and %d paths to %s",
            len(self._tokens),
            tokens_path,
            len(self._paths),
            paths_path,
        )
        return tokens_path, paths_path

    def _store_path_context(self, context: PathContext) -> PathContextId:
        start_id = self._tokens.record(context.start_token)
        end_id = self._tokens.record(context.end_token)
        path_id = self._paths.record(context.path_shape())
        return PathContextId(start_id, path_id, end_id)

    def _is_within_vocabulary(self, context_id: PathContextId) -> bool:
        max_tokens = self.config.max_tokens
        max_paths = self.config.max_paths
        tokens_ok = max_tokens is None or (
            self._tokens.rank(context_id.start_token_id) <= max_tokens
            and self._tokens.rank(context_id.end_token_id) <= max_tokens
        )
        paths_ok = max_paths is None or self._paths.rank(context_id.path_id) <= max_paths
        return tokens_ok and paths_ok


def format_corpus_line(label: str, path_context_ids: Iterable[PathContextId]) -> str:
    joined = " ".join(str(context_id) for context_id in path_context_ids)
    return f"{label} {joined}"


def parse_corpus_line(line: str) -> LabeledPathContextIds:
    """Inverse of :func:`format_corpus_line`."""
    fields = line.rstrip("\n").split(" ")
    if len(fields) < 2 or not fields[0]:
        raise ValueError(f"Malformed corpus line: {line!r}")
    contexts = []
    for field in fields[1:]:
        parts = field.split(",")
        if len(parts) != 3:
            raise ValueError(f"Malformed path context {field!r} in line {line!r}")
        start_id, path_id, end_id = (int(part) for part in parts)
        contexts.append(PathContextId(start_id, path_id, end_id))
    return LabeledPathContextIds(fields[0], tuple(contexts))


def check_label(label: str) -> None:
    if not label or any(ch.isspace() for ch in label):
        raise ValueError(f"Labels must be non-empty and whitespace-free, got {label!r}")


def _dump_table(path: Path, table: RankedIncrementalIdStorage[str]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="\n") as handle:
            for entry in table.ranked_items():
                handle.write(f"{entry.id} {entry.key} {entry.count}\n")
    except OSError as exc:
        raise StorageIOFailure(f"Cannot write dictionary {path}: {exc}") from exc
