"""Parser backends and the (language, backend) registry."""

from pathminer.parse.base import LANGUAGE_EXTENSIONS, FunctionSplitter, ParseResult, ParserBackend, language_for_path
from pathminer.parse.registry import get_parser, get_splitter, list_backends, register_parser, register_splitter

__all__ = [
    "LANGUAGE_EXTENSIONS",
    "FunctionSplitter",
    "ParseResult",
    "ParserBackend",
    "get_parser",
    "get_splitter",
    "language_for_path",
    "list_backends",
    "register_parser",
    "register_splitter",
]
