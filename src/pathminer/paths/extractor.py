"""Enumerate bounded leaf-to-leaf paths of a (sub)tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from pathminer.common.node import Node, leaves, pre_order
from pathminer.paths.model import Direction, OrientedNodeType, PathContext


@dataclass(frozen=True)
class PathRetrievalSettings:
    """Limits applied while enumerating leaf pairs.

    `max_path_contexts` caps the number of contexts emitted per subtree,
    `max_length` the number of edges on a path and `max_width` the distance
    between the two apex children the path goes through. ``None`` disables a
    limit.
    """

    max_path_contexts: Optional[int] = None
    max_length: Optional[int] = None
    max_width: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("max_path_contexts", "max_length", "max_width"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")


class PathMiner:
    """Path-context extraction in fixed left-to-right pair order.

    Leaves are taken in document order; pair ``(u, v)`` is visited with ``u``
    as the outer loop, so truncating at the cap is reproducible.
    """

    def __init__(self, settings: Optional[PathRetrievalSettings] = None) -> None:
        self.settings = settings or PathRetrievalSettings()

    def retrieve_paths(self, root: Node) -> list[PathContext]:
        cap = self.settings.max_path_contexts
        if cap == 0:
            return []
        contexts: list[PathContext] = []
        for context in self._iter_paths(root):
            contexts.append(context)
            if cap is not None and len(contexts) >= cap:
                break
        return contexts

    def _iter_paths(self, root: Node) -> Iterator[PathContext]:
        tree_leaves = leaves(root)
        if len(tree_leaves) < 2:
            return
        positions = _child_positions(root)
        # root-first ancestor chains
        chains = [_ancestor_chain(leaf, root)[::-1] for leaf in tree_leaves]
        max_length = self.settings.max_length
        max_width = self.settings.max_width

        for i, start_chain in enumerate(chains):
            for end_chain in chains[i + 1:]:
                if max_length is not None and abs(len(start_chain) - len(end_chain)) > max_length:
                    continue
                split = _common_prefix_length(start_chain, end_chain)
                up_nodes = start_chain[split:]
                down_nodes = end_chain[split:]
                if max_length is not None and len(up_nodes) + len(down_nodes) > max_length:
                    continue
                if max_width is not None and up_nodes and down_nodes:
                    width = abs(positions[id(down_nodes[0])] - positions[id(up_nodes[0])])
                    if width > max_width:
                        continue
                apex = start_chain[split - 1]
                yield PathContext(
                    start_token=start_chain[-1].token,
                    oriented_nodes=_orient(up_nodes, apex, down_nodes),
                    end_token=end_chain[-1].token,
                )


def _ancestor_chain(leaf: Node, root: Node) -> list[Node]:
    chain = []
    node: Optional[Node] = leaf
    while node is not None:
        chain.append(node)
        if node is root:
            return chain
        node = node.parent
    raise ValueError(f"{leaf!r} is not a descendant of {root!r}")


def _common_prefix_length(left: Sequence[Node], right: Sequence[Node]) -> int:
    limit = min(len(left), len(right))
    split = 0
    while split < limit and left[split] is right[split]:
        split += 1
    return split


def _child_positions(root: Node) -> dict[int, int]:
    positions: dict[int, int] = {}
    for node in pre_order(root):
        for index, child in enumerate(node.children):
            positions[id(child)] = index
    return positions


def _orient(up_nodes: Sequence[Node], apex: Node, down_nodes: Sequence[Node]) -> tuple[OrientedNodeType, ...]:
    ascent = [OrientedNodeType(node.type_label, Direction.UP) for node in reversed(up_nodes)]
    descent = [OrientedNodeType(node.type_label, Direction.DOWN) for node in down_nodes]
    return (*ascent, OrientedNodeType(apex.type_label, None), *descent)
