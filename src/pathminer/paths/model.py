"""Path-context records before and after id assignment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


_ARROWS = {Direction.UP: "↑", Direction.DOWN: "↓"}


@dataclass(frozen=True)
class OrientedNodeType:
    """One node on a path; the apex (LCA) carries no direction."""

    type_label: str
    direction: Optional[Direction]


@dataclass(frozen=True)
class PathContext:
    start_token: str
    oriented_nodes: tuple[OrientedNodeType, ...]
    end_token: str

    @property
    def apex(self) -> OrientedNodeType:
        return next(node for node in self.oriented_nodes if node.direction is None)

    def path_shape(self) -> str:
        """Render the token-independent shape, e.g. ``Name↑BinOp↓Constant``."""
        parts: list[str] = []
        for node in self.oriented_nodes:
            if node.direction is Direction.UP:
                parts.append(node.type_label + _ARROWS[Direction.UP])
            elif node.direction is Direction.DOWN:
                parts.append(_ARROWS[Direction.DOWN] + node.type_label)
            else:
                parts.append(node.type_label)
        return "".join(parts)

    def __len__(self) -> int:
        """Number of edges on the path."""
        return len(self.oriented_nodes) - 1


@dataclass(frozen=True)
class PathContextId:
    start_token_id: int
    path_id: int
    end_token_id: int

    def __str__(self) -> str:
        return f"{self.start_token_id},{self.path_id},{self.end_token_id}"


@dataclass(frozen=True)
class LabeledPathContexts:
    label: str
    path_contexts: tuple[PathContext, ...]


@dataclass(frozen=True)
class LabeledPathContextIds:
    label: str
    path_contexts: tuple[PathContextId, ...]
