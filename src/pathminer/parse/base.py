"""Parser backend and function splitter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Generic, Optional, TypeVar

from pathminer.common.function_info import FunctionInfo
from pathminer.common.node import Node
from pathminer.errors import ParseFailure

N = TypeVar("N", bound=Node)

# language key -> file extensions
LANGUAGE_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "py": (".py",),
    "java": (".java",),
    "js": (".js",),
    "php": (".php",),
}


def language_for_path(path: Path | str, languages: tuple[str, ...] | list[str]) -> Optional[str]:
    suffix = Path(path).suffix.lower()
    for language in languages:
        if suffix in LANGUAGE_EXTENSIONS.get(language, ()):
            return language
    return None


@dataclass(frozen=True)
class ParseResult(Generic[N]):
    root: Optional[N]
    file_path: str


class ParserBackend(ABC, Generic[N]):
    """Turns one source file of one language into a tree of nodes."""

    backend: ClassVar[str]

    def __init__(self, language: str) -> None:
        self.language = language

    @abstractmethod
    def parse_source(self, source: bytes, file_path: str) -> N:
        """Parse `source`; raise :class:`ParseFailure` when it cannot be parsed."""

    def parse_file(self, path: Path, display_path: Optional[str] = None) -> ParseResult[N]:
        file_path = display_path if display_path is not None else str(path)
        try:
            source = path.read_bytes()
        except OSError as exc:
            raise ParseFailure(file_path, f"cannot read file: {exc}") from exc
        return ParseResult(self.parse_source(source, file_path), file_path)


class FunctionSplitter(ABC, Generic[N]):
    """Finds the functions of a parsed file."""

    info_class: ClassVar[type[FunctionInfo]]

    @abstractmethod
    def split(self, root: N, file_path: str) -> list[FunctionInfo[N]]:
        ...

    @classmethod
    def supported_properties(cls) -> frozenset[str]:
        return cls.info_class.supported_properties()
