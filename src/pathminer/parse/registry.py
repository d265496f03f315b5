"""(language, backend) registry for parsers and function splitters.

Resolved once while a pipeline is set up; unknown combinations fail there,
before any file is read.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import TypeVar

from pathminer.errors import UnsupportedConfiguration
from pathminer.parse.base import LANGUAGE_EXTENSIONS, FunctionSplitter, ParserBackend

ParserFactory = Callable[[], ParserBackend]
SplitterFactory = Callable[[], FunctionSplitter]
F = TypeVar("F", bound=Callable)

_PARSERS: dict[tuple[str, str], ParserFactory] = {}
_SPLITTERS: dict[tuple[str, str], SplitterFactory] = {}

_BUILTIN_MODULES = ("pathminer.parse.python_ast", "pathminer.parse.treesitter")
_builtins_loaded = False


def register_parser(language: str, backend: str) -> Callable[[F], F]:
    def decorator(factory: F) -> F:
        _PARSERS[(language, backend)] = factory
        return factory

    return decorator


def register_splitter(language: str, backend: str) -> Callable[[F], F]:
    def decorator(factory: F) -> F:
        _SPLITTERS[(language, backend)] = factory
        return factory

    return decorator


def _load_builtins() -> None:
    global _builtins_loaded
    if _builtins_loaded:
        return
    for module in _BUILTIN_MODULES:
        importlib.import_module(module)
    _builtins_loaded = True


def _check_language(language: str) -> None:
    if language not in LANGUAGE_EXTENSIONS:
        known = ", ".join(sorted(LANGUAGE_EXTENSIONS))
        raise UnsupportedConfiguration(f"Unknown language '{language}'. Known languages: {known}")


def get_parser(language: str, backend: str) -> ParserBackend:
    _load_builtins()
    _check_language(language)
    factory = _PARSERS.get((language, backend))
    if factory is None:
        raise UnsupportedConfiguration(
            f"No '{backend}' parser for language '{language}'. Available: {_describe(_PARSERS)}"
        )
    return factory()


def get_splitter(language: str, backend: str) -> FunctionSplitter:
    _load_builtins()
    _check_language(language)
    factory = _SPLITTERS.get((language, backend))
    if factory is None:
        raise UnsupportedConfiguration(
            f"No '{backend}' function splitter for language '{language}'. Available: {_describe(_SPLITTERS)}"
        )
    return factory()


def list_backends() -> list[tuple[str, str]]:
    _load_builtins()
    return sorted(_PARSERS)


def _describe(table: dict[tuple[str, str], object]) -> str:
    return ", ".join(f"{language}/{backend}" for language, backend in sorted(table)) or "none"
