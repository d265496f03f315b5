"""Explicit results for properties a language/parser pairing may not implement.

An accessor answers either ``Supported(value)`` or ``Unsupported(name)``.
``Supported(None)`` means the property is implemented but absent in the source
(e.g. a Python function without a return annotation); ``Unsupported`` means the
backend cannot tell.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, Generic, TypeVar, Union

from pathminer.errors import UnsupportedCapability

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Supported(Generic[T]):
    value: T

    is_supported: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value

    def map(self, func: Callable[[T], U]) -> "Supported[U]":
        return Supported(func(self.value))


@dataclass(frozen=True)
class Unsupported:
    property_name: str

    is_supported: ClassVar[bool] = False

    def unwrap(self):
        raise UnsupportedCapability(self.property_name)

    def map(self, func: Callable) -> "Unsupported":
        return self


Capability = Union[Supported[T], Unsupported]
