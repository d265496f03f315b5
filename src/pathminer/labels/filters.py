"""Predicates deciding which functions become training examples."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar, Optional

from pathminer.common.function_info import FunctionInfo
from pathminer.common.node import tree_size
from pathminer.common.tokens import split_to_subtokens
from pathminer.errors import UnsupportedConfiguration
from pathminer.parse.base import FunctionSplitter


class FunctionFilter(ABC):
    required_properties: ClassVar[frozenset[str]] = frozenset()

    @abstractmethod
    def is_kept(self, info: FunctionInfo) -> bool:
        """Return True when `info` passes the filter."""


class ConstructorFilter(FunctionFilter):
    """Drops constructors."""

    required_properties = frozenset({"is_constructor"})

    def is_kept(self, info: FunctionInfo) -> bool:
        return not info.is_constructor.unwrap()


class ModifierFilter(FunctionFilter):
    """Drops functions carrying any of the excluded modifiers."""

    required_properties = frozenset({"modifiers"})

    def __init__(self, excluded: Iterable[str]) -> None:
        self.excluded = frozenset(excluded)

    def is_kept(self, info: FunctionInfo) -> bool:
        return self.excluded.isdisjoint(info.modifiers.unwrap())


class AnnotationFilter(FunctionFilter):
    """Drops functions carrying any of the excluded annotations/decorators."""

    required_properties = frozenset({"annotations"})

    def __init__(self, excluded: Iterable[str]) -> None:
        self.excluded = frozenset(excluded)

    def is_kept(self, info: FunctionInfo) -> bool:
        return self.excluded.isdisjoint(info.annotations.unwrap())


class NameWordsNumberFilter(FunctionFilter):
    """Keeps functions whose name splits into at most `max_words` subtokens."""

    required_properties = frozenset({"name"})

    def __init__(self, max_words: int) -> None:
        if max_words < 1:
            raise ValueError("max_words must be positive.")
        self.max_words = max_words

    def is_kept(self, info: FunctionInfo) -> bool:
        name = info.name.unwrap()
        return name is not None and len(split_to_subtokens(name)) <= self.max_words


class TreeSizeFilter(FunctionFilter):
    """Keeps functions whose subtree has between `min_size` and `max_size` nodes."""

    def __init__(self, min_size: int = 0, max_size: Optional[int] = None) -> None:
        self.min_size = min_size
        self.max_size = max_size

    def is_kept(self, info: FunctionInfo) -> bool:
        size = tree_size(info.root)
        return size >= self.min_size and (self.max_size is None or size <= self.max_size)


def build_filter(mapping: Mapping[str, Any]) -> FunctionFilter:
    """Build a filter from its config mapping, e.g. ``{"name": "modifier", "excluded": ["private"]}``."""
    options = dict(mapping)
    name = str(options.pop("name", "")).strip().lower().replace("-", "_")
    try:
        if name == "constructor":
            return ConstructorFilter(**options)
        if name == "modifier":
            return ModifierFilter(**options)
        if name == "annotation":
            return AnnotationFilter(**options)
        if name in ("name_words", "words_number"):
            return NameWordsNumberFilter(**options)
        if name == "tree_size":
            return TreeSizeFilter(**options)
    except TypeError as exc:
        raise UnsupportedConfiguration(f"Invalid options for filter '{name}': {exc}") from exc
    raise UnsupportedConfiguration(f"Unknown function filter '{name}'")


def check_filters(filters: Iterable[FunctionFilter], splitter: FunctionSplitter, language: str) -> None:
    """Fail at setup when a filter needs a property the splitter does not implement."""
    supported = splitter.supported_properties()
    for function_filter in filters:
        missing = function_filter.required_properties - supported
        if missing:
            raise UnsupportedConfiguration(
                f"{type(function_filter).__name__} needs {', '.join(sorted(missing))}, "
                f"which is not implemented for language '{language}' with this parser"
            )
