"""Label extractors: turn a parse result into labeled subtrees."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from pathminer.common.function_info import FunctionInfo
from pathminer.common.node import Node, SimpleNode, pre_order
from pathminer.labels.filters import FunctionFilter
from pathminer.parse.base import FunctionSplitter, ParseResult

SELF_TOKEN = "SELF"
METHOD_NAME_TOKEN = "METHOD_NAME"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class LabeledResult:
    """An AST subtree with a label and the path of the file it comes from."""

    root: Node
    label: str
    file_path: str


def sanitize_label(label: str) -> str:
    """Corpus lines are space separated, so labels cannot contain whitespace."""
    return _WHITESPACE_RE.sub("_", label.strip())


class LabelExtractor(ABC):
    @abstractmethod
    def to_labeled_data(self, parse_result: ParseResult) -> Iterator[LabeledResult]:
        """Yield the labeled subtrees of one parsed file.

        Results may share one tree; consume each before asking for the next.
        """


class FileLabelExtractor(LabelExtractor):
    """One example per file, rooted at the file's tree."""

    def to_labeled_data(self, parse_result: ParseResult) -> Iterator[LabeledResult]:
        if parse_result.root is None:
            return
        label = sanitize_label(self.extract_label(parse_result.root, parse_result.file_path) or "")
        if label:
            yield LabeledResult(parse_result.root, label, parse_result.file_path)

    @abstractmethod
    def extract_label(self, root: Node, file_path: str) -> Optional[str]:
        ...


class FilePathExtractor(FileLabelExtractor):
    def extract_label(self, root: Node, file_path: str) -> Optional[str]:
        return PurePath(file_path).as_posix()


class FileNameExtractor(FileLabelExtractor):
    def extract_label(self, root: Node, file_path: str) -> Optional[str]:
        return PurePath(file_path).name


class FolderExtractor(FileLabelExtractor):
    def extract_label(self, root: Node, file_path: str) -> Optional[str]:
        return PurePath(file_path).parent.name or None


class FunctionLabelExtractor(LabelExtractor):
    """One example per function found by the language's splitter."""

    def __init__(self, splitter: FunctionSplitter, filters: Sequence[FunctionFilter] = ()) -> None:
        self.splitter = splitter
        self.filters = tuple(filters)

    def to_labeled_data(self, parse_result: ParseResult) -> Iterator[LabeledResult]:
        if parse_result.root is None:
            return
        for info in self.splitter.split(parse_result.root, parse_result.file_path):
            if not all(function_filter.is_kept(info) for function_filter in self.filters):
                continue
            label = sanitize_label(self.extract_label(info) or "")
            if label:
                yield LabeledResult(info.root, label, parse_result.file_path)

    @abstractmethod
    def extract_label(self, info: FunctionInfo) -> Optional[str]:
        ...


class FunctionNameExtractor(FunctionLabelExtractor):
    """Labels a function by its name and hides the name inside the subtree.

    The name node becomes ``METHOD_NAME`` and recursive references become
    ``SELF`` so the label cannot be read back from the path contexts.
    """

    def extract_label(self, info: FunctionInfo) -> Optional[str]:
        name = info.name.unwrap()
        if not name:
            return None
        name_node = info.name_node.unwrap()
        for node in pre_order(info.root):
            if not isinstance(node, SimpleNode):
                continue
            if node is name_node:
                node.set_technical_token(METHOD_NAME_TOKEN)
            elif node.original_token == name and node.is_leaf():
                node.set_technical_token(SELF_TOKEN)
            else:
                node.set_technical_token(None)
        return name
