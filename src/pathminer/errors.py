"""Exception hierarchy shared by every pathminer component."""

from __future__ import annotations


class PathminerError(Exception):
    """Base class for pathminer errors."""


class ParseFailure(PathminerError):
    """A single input file could not be read or parsed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(f"Failed to parse {file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


class UnsupportedConfiguration(PathminerError, ValueError):
    """Unknown language, parser backend, label extractor or filter."""


class UnsupportedCapability(PathminerError):
    """A function property is not implemented for this language/parser pair."""

    def __init__(self, property_name: str) -> None:
        super().__init__(
            f"The property `{property_name}` is not implemented for this language and parser."
        )
        self.property_name = property_name


class StorageIOFailure(PathminerError):
    """An output stream or dictionary file could not be written."""


class InvalidKeyError(PathminerError, KeyError):
    """A rank was requested for an id that was never issued."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "invalid key"
