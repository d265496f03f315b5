"""Uniform view over parsed syntax-tree nodes."""

from __future__ import annotations

from typing import Iterator, Optional, Protocol, Sequence

from pathminer.common.tokens import EMPTY_TOKEN, normalize_token


class Node(Protocol):
    """Read-only capability every parser backend exposes."""

    @property
    def token(self) -> str: ...

    @property
    def type_label(self) -> str: ...

    @property
    def children(self) -> Sequence["Node"]: ...

    @property
    def parent(self) -> Optional["Node"]: ...


class SimpleNode:
    """Concrete tree node produced by the bundled parser backends.

    `token` is the technical token when one was set (e.g. ``METHOD_NAME``),
    otherwise the normalized original token.
    """

    __slots__ = ("type_label", "original_token", "children", "parent", "_technical_token", "_token")

    def __init__(
        self,
        type_label: str,
        original_token: Optional[str] = None,
        children: Optional[list["SimpleNode"]] = None,
        parent: Optional["SimpleNode"] = None,
    ) -> None:
        self.type_label = type_label
        self.original_token = original_token
        self.children: list[SimpleNode] = []
        self.parent = parent
        self._technical_token: Optional[str] = None
        self._token = normalize_token(original_token) if original_token else EMPTY_TOKEN
        for child in children or []:
            self.add_child(child)

    @property
    def token(self) -> str:
        return self._technical_token if self._technical_token is not None else self._token

    @property
    def technical_token(self) -> Optional[str]:
        return self._technical_token

    def set_technical_token(self, token: Optional[str]) -> None:
        self._technical_token = token

    def add_child(self, child: "SimpleNode") -> None:
        child.parent = self
        self.children.append(child)

    def is_leaf(self) -> bool:
        return not self.children

    def children_of_type(self, type_label: str) -> list["SimpleNode"]:
        return [child for child in self.children if child.type_label == type_label]

    def child_of_type(self, type_label: str) -> Optional["SimpleNode"]:
        for child in self.children:
            if child.type_label == type_label:
                return child
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.type_label!r}, {self.original_token!r}, children={len(self.children)})"


def pre_order(root: Node) -> Iterator[Node]:
    """Yield `root` and its descendants parent-first, children left to right."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def post_order(root: Node) -> Iterator[Node]:
    """Yield descendants children-first, finishing with `root`."""
    stack: list[tuple[Node, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            yield node
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(node.children))


def leaves(root: Node) -> list[Node]:
    """Leaves of `root` in left-to-right document order."""
    return [node for node in pre_order(root) if not node.children]


def tree_size(root: Node) -> int:
    return sum(1 for _ in pre_order(root))
