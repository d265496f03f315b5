"""Python backend on top of the interpreter's own ``ast`` module.

Conversion rules:

- every ``ast.AST`` becomes a node labeled with its class name;
- ``ctx``/``type_comment``/``kind`` fields are dropped;
- statement blocks (``body``, ``orelse``, ``finalbody``) are grouped under a
  node labeled with the field name;
- scalar fields become leaves labeled with the field name
  (``FunctionDef.name`` → ``name`` leaf);
- a node whose only content is one scalar collapses into a token-bearing leaf
  (``Name(id='x')`` → ``Name`` leaf with token ``x``); operators and constants
  are leaves too.
"""

from __future__ import annotations

import ast
from typing import Optional

from pathminer.common.capability import Capability, Supported
from pathminer.common.function_info import (
    EnclosingElement,
    EnclosingElementType,
    FunctionInfo,
    FunctionInfoParameter,
)
from pathminer.common.node import SimpleNode, pre_order
from pathminer.errors import ParseFailure
from pathminer.parse.base import FunctionSplitter, ParserBackend
from pathminer.parse.registry import register_parser, register_splitter

BACKEND = "python_ast"

_SKIPPED_FIELDS = frozenset({"ctx", "type_comment", "kind", "type_ignores"})
_BLOCK_FIELDS = frozenset({"body", "orelse", "finalbody"})
_SCALARS = (str, bytes, int, float, complex, bool)
_OPERATORS = (ast.operator, ast.boolop, ast.cmpop, ast.unaryop)
_FUNCTIONS = (ast.FunctionDef, ast.AsyncFunctionDef)


class AstNode(SimpleNode):
    __slots__ = ("ast_node",)

    def __init__(self, type_label: str, original_token: Optional[str] = None, ast_node: Optional[ast.AST] = None) -> None:
        super().__init__(type_label, original_token)
        self.ast_node = ast_node


def convert(node: ast.AST) -> AstNode:
    type_label = type(node).__name__
    if isinstance(node, ast.Constant):
        return AstNode(type_label, str(node.value), node)
    if isinstance(node, _OPERATORS):
        return AstNode(type_label, type_label, node)

    entries: list[AstNode] = []
    scalars: list[str] = []
    for field, value in ast.iter_fields(node):
        if field in _SKIPPED_FIELDS or value is None:
            continue
        if isinstance(value, ast.AST):
            entries.append(convert(value))
        elif isinstance(value, list):
            items = [_convert_item(field, item) for item in value]
            items = [item for item in items if item is not None]
            if field in _BLOCK_FIELDS and items:
                block = AstNode(field)
                for item in items:
                    block.add_child(item)
                entries.append(block)
            else:
                entries.extend(items)
        elif isinstance(value, _SCALARS):
            scalars.append(str(value))
            entries.append(AstNode(field, str(value)))

    if len(entries) == 1 and len(scalars) == 1 and entries[0].is_leaf():
        return AstNode(type_label, scalars[0], node)
    result = AstNode(type_label, None, node)
    for entry in entries:
        result.add_child(entry)
    return result


def _convert_item(field: str, item: object) -> Optional[AstNode]:
    if isinstance(item, ast.AST):
        return convert(item)
    if isinstance(item, _SCALARS):
        return AstNode(field, str(item))
    return None


class PythonAstParser(ParserBackend[AstNode]):
    backend = BACKEND

    def parse_source(self, source: bytes, file_path: str) -> AstNode:
        try:
            tree = ast.parse(source, filename=file_path)
            return convert(tree)
        except (SyntaxError, ValueError) as exc:
            raise ParseFailure(file_path, str(exc)) from exc
        except RecursionError as exc:
            raise ParseFailure(file_path, "syntax tree is nested too deeply") from exc


class PythonAstFunctionInfo(FunctionInfo[AstNode]):
    def __init__(self, root: AstNode, file_path: str) -> None:
        super().__init__(root, file_path)
        self._definition = root.ast_node

    @property
    def name_node(self) -> Capability[Optional[AstNode]]:
        return Supported(self.root.child_of_type("name"))

    @property
    def body(self) -> Capability[Optional[AstNode]]:
        return Supported(self.root.child_of_type("body"))

    @property
    def parameters(self) -> Capability[list[FunctionInfoParameter]]:
        arguments = self._definition.args
        positional = [*arguments.posonlyargs, *arguments.args]
        extra = [arguments.vararg, *arguments.kwonlyargs, arguments.kwarg]
        return Supported([_parameter(arg) for arg in [*positional, *extra] if arg is not None])

    @property
    def return_type(self) -> Capability[Optional[str]]:
        returns = self._definition.returns
        return Supported(ast.unparse(returns) if returns is not None else None)

    @property
    def annotations(self) -> Capability[list[str]]:
        return Supported([ast.unparse(decorator) for decorator in self._definition.decorator_list])

    @property
    def enclosing_element(self) -> Capability[Optional[EnclosingElement[AstNode]]]:
        node = self.root.parent
        while node is not None:
            if isinstance(node.ast_node, ast.ClassDef):
                return Supported(EnclosingElement(EnclosingElementType.CLASS, node.ast_node.name, node))
            if isinstance(node.ast_node, _FUNCTIONS):
                return Supported(EnclosingElement(EnclosingElementType.FUNCTION, node.ast_node.name, node))
            node = node.parent
        return Supported(None)

    @property
    def is_constructor(self) -> Capability[bool]:
        enclosing = self.enclosing_element.unwrap()
        in_class = enclosing is not None and enclosing.type is EnclosingElementType.CLASS
        return Supported(in_class and self._definition.name == "__init__")


def _parameter(arg: ast.arg) -> FunctionInfoParameter:
    annotation = ast.unparse(arg.annotation) if arg.annotation is not None else None
    return FunctionInfoParameter(arg.arg, annotation)


class PythonAstFunctionSplitter(FunctionSplitter[AstNode]):
    info_class = PythonAstFunctionInfo

    def split(self, root: AstNode, file_path: str) -> list[FunctionInfo[AstNode]]:
        return [
            PythonAstFunctionInfo(node, file_path)
            for node in pre_order(root)
            if isinstance(node.ast_node, _FUNCTIONS)
        ]


@register_parser("py", BACKEND)
def _python_parser() -> PythonAstParser:
    return PythonAstParser("py")


@register_splitter("py", BACKEND)
def _python_splitter() -> PythonAstFunctionSplitter:
    return PythonAstFunctionSplitter()
