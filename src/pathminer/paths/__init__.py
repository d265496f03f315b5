"""Path-context model and extraction."""

from pathminer.paths.extractor import PathMiner, PathRetrievalSettings
from pathminer.paths.model import (
    Direction,
    LabeledPathContextIds,
    LabeledPathContexts,
    OrientedNodeType,
    PathContext,
    PathContextId,
)

__all__ = [
    "Direction",
    "LabeledPathContextIds",
    "LabeledPathContexts",
    "OrientedNodeType",
    "PathContext",
    "PathContextId",
    "PathMiner",
    "PathRetrievalSettings",
]
