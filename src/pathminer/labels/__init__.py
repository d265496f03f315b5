"""Label extraction strategies and function filters."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pathminer.errors import UnsupportedConfiguration
from pathminer.labels.extractors import (
    FileNameExtractor,
    FilePathExtractor,
    FolderExtractor,
    FunctionLabelExtractor,
    FunctionNameExtractor,
    LabeledResult,
    LabelExtractor,
    sanitize_label,
)
from pathminer.labels.filters import FunctionFilter, build_filter, check_filters
from pathminer.parse.registry import get_splitter

_FILE_EXTRACTORS: dict[str, Callable[[], LabelExtractor]] = {
    "file path": FilePathExtractor,
    "file name": FileNameExtractor,
    "folder": FolderExtractor,
}
_FUNCTION_EXTRACTORS: dict[str, type[FunctionLabelExtractor]] = {
    "function name": FunctionNameExtractor,
}


def normalize_extractor_name(name: str) -> str:
    return " ".join(name.strip().lower().replace("_", " ").replace("-", " ").split())


def list_label_extractors() -> list[str]:
    return sorted([*_FILE_EXTRACTORS, *_FUNCTION_EXTRACTORS])


def build_label_extractor(
    name: str,
    language: str,
    backend: str,
    filters: Iterable[Mapping[str, Any]] = (),
) -> LabelExtractor:
    """Resolve a label extractor for one language; raises on unknown combinations."""
    key = normalize_extractor_name(name)
    filter_items = list(filters)
    if key in _FILE_EXTRACTORS:
        if filter_items:
            raise UnsupportedConfiguration(f"Label extractor '{name}' does not accept function filters")
        return _FILE_EXTRACTORS[key]()
    if key in _FUNCTION_EXTRACTORS:
        splitter = get_splitter(language, backend)
        built = [build_filter(item) for item in filter_items]
        check_filters(built, splitter, language)
        return _FUNCTION_EXTRACTORS[key](splitter, built)
    raise UnsupportedConfiguration(
        f"Unknown label extractor '{name}'. Available: {', '.join(list_label_extractors())}"
    )


__all__ = [
    "FileNameExtractor",
    "FilePathExtractor",
    "FolderExtractor",
    "FunctionFilter",
    "FunctionLabelExtractor",
    "FunctionNameExtractor",
    "LabelExtractor",
    "LabeledResult",
    "build_filter",
    "build_label_extractor",
    "list_label_extractors",
    "sanitize_label",
]
