"""Tree model shared by parser backends, label extractors and the path miner."""

from pathminer.common.capability import Capability, Supported, Unsupported
from pathminer.common.function_info import (
    EnclosingElement,
    EnclosingElementType,
    FunctionInfo,
    FunctionInfoParameter,
)
from pathminer.common.node import Node, SimpleNode, post_order, pre_order
from pathminer.common.tokens import EMPTY_TOKEN, normalize_token, split_to_subtokens

__all__ = [
    "Capability",
    "EMPTY_TOKEN",
    "EnclosingElement",
    "EnclosingElementType",
    "FunctionInfo",
    "FunctionInfoParameter",
    "Node",
    "SimpleNode",
    "Supported",
    "Unsupported",
    "normalize_token",
    "post_order",
    "pre_order",
    "split_to_subtokens",
]
