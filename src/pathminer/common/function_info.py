"""Function/method level view of a parsed file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from pathminer.common.capability import Capability, Supported, Unsupported
from pathminer.common.node import Node

N = TypeVar("N", bound=Node)

FUNCTION_PROPERTIES = (
    "name_node",
    "name",
    "body",
    "parameters",
    "return_type",
    "annotations",
    "modifiers",
    "enclosing_element",
    "is_constructor",
)


class EnclosingElementType(str, Enum):
    CLASS = "Class"
    FUNCTION = "Function"
    METHOD = "Method"
    VARIABLE_DECLARATION = "VariableDeclaration"


@dataclass(frozen=True)
class FunctionInfoParameter:
    name: str
    type: Optional[str] = None


@dataclass(frozen=True)
class EnclosingElement(Generic[N]):
    type: EnclosingElementType
    name: Optional[str]
    root: N


class FunctionInfo(Generic[N]):
    """A function found by a splitter.

    `root` and `file_path` are always available. Every other property is a
    capability: backends override the accessors they implement and the rest
    answer :class:`Unsupported`.
    """

    def __init__(self, root: N, file_path: str) -> None:
        self.root = root
        self.file_path = file_path

    @property
    def name_node(self) -> Capability[Optional[N]]:
        return Unsupported("name_node")

    @property
    def name(self) -> Capability[Optional[str]]:
        node = self.name_node
        if not node.is_supported:
            return Unsupported("name")
        return node.map(lambda found: found.original_token if found is not None else None)

    @property
    def body(self) -> Capability[Optional[N]]:
        return Unsupported("body")

    @property
    def parameters(self) -> Capability[list[FunctionInfoParameter]]:
        return Unsupported("parameters")

    @property
    def return_type(self) -> Capability[Optional[str]]:
        return Unsupported("return_type")

    @property
    def annotations(self) -> Capability[list[str]]:
        return Unsupported("annotations")

    @property
    def modifiers(self) -> Capability[list[str]]:
        return Unsupported("modifiers")

    @property
    def enclosing_element(self) -> Capability[Optional[EnclosingElement[N]]]:
        return Unsupported("enclosing_element")

    @property
    def is_constructor(self) -> Capability[bool]:
        return Unsupported("is_constructor")

    def is_blank(self) -> Capability[bool]:
        return self.body.map(lambda body: body is None or not body.children)

    def qualified_path(self) -> Capability[str]:
        enclosing = self.enclosing_element
        if not enclosing.is_supported:
            return Unsupported("qualified_path")
        dotted = os.path.splitext(self.file_path)[0].replace(os.sep, ".")
        element = enclosing.unwrap()
        enclosing_name = element.name if element is not None and element.name else ""
        return Supported(f"{dotted}.{enclosing_name}")

    @classmethod
    def supported_properties(cls) -> frozenset[str]:
        """Names of the properties a subclass implements itself."""
        implemented = set()
        for prop in FUNCTION_PROPERTIES:
            owner = next(klass for klass in cls.__mro__ if prop in vars(klass))
            if owner is not FunctionInfo:
                implemented.add(prop)
        if "name_node" in implemented:
            implemented.add("name")
        return frozenset(implemented)

    def __repr__(self) -> str:
        name = self.name
        shown = name.unwrap() if name.is_supported else "?"
        return f"{type(self).__name__}(name={shown!r}, file_path={self.file_path!r})"
