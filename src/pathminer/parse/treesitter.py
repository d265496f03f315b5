"""tree-sitter backend for Python, Java, JavaScript and PHP.

Only named nodes are kept, except for the keywords under a ``modifiers`` node
which become ``modifier`` leaves. Comments are dropped and literal nodes
(strings, templates, regexes) are kept whole as leaves. Each converted node
remembers which field of its parent it fills and the byte span it covers.
"""

from __future__ import annotations

import importlib
from typing import Iterator, Optional

from tree_sitter import Language, Parser, TreeCursor

from pathminer.common.capability import Capability, Supported
from pathminer.common.function_info import (
    EnclosingElement,
    EnclosingElementType,
    FunctionInfo,
    FunctionInfoParameter,
)
from pathminer.common.node import SimpleNode, pre_order
from pathminer.errors import ParseFailure, UnsupportedConfiguration
from pathminer.parse.base import FunctionSplitter, ParserBackend
from pathminer.parse.registry import register_parser, register_splitter
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)

BACKEND = "treesitter"

# language key -> (grammar module, language attribute)
GRAMMAR_MODULES = {
    "py": ("tree_sitter_python", "language"),
    "java": ("tree_sitter_java", "language"),
    "js": ("tree_sitter_javascript", "language"),
    "php": ("tree_sitter_php", "language_php"),
}

_COMMENT_TYPES = frozenset({"comment", "line_comment", "block_comment"})
_LITERAL_LEAVES = {
    "py": frozenset({"string", "concatenated_string"}),
    "java": frozenset({"string_literal", "character_literal", "text_block"}),
    "js": frozenset({"string", "template_string", "regex"}),
    "php": frozenset({"string", "encapsed_string", "heredoc", "nowdoc"}),
}


class TreeSitterNode(SimpleNode):
    __slots__ = ("field_name", "start_byte", "end_byte", "_source")

    def __init__(
        self,
        type_label: str,
        original_token: Optional[str],
        field_name: Optional[str],
        start_byte: int,
        end_byte: int,
        source: bytes,
    ) -> None:
        super().__init__(type_label, original_token)
        self.field_name = field_name
        self.start_byte = start_byte
        self.end_byte = end_byte
        self._source = source

    def source_text(self) -> str:
        return self._source[self.start_byte:self.end_byte].decode("utf-8", errors="replace")

    def child_by_field(self, field_name: str) -> Optional["TreeSitterNode"]:
        for child in self.children:
            if child.field_name == field_name:
                return child
        return None


def load_language(language: str) -> Language:
    if language not in GRAMMAR_MODULES:
        raise UnsupportedConfiguration(f"No tree-sitter grammar mapping for language '{language}'")
    module_name, attribute = GRAMMAR_MODULES[language]
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        package = module_name.replace("_", "-")
        raise UnsupportedConfiguration(
            f"tree-sitter grammar for '{language}' is not installed (pip install {package})"
        ) from exc
    return Language(getattr(module, attribute)())


class TreeSitterParser(ParserBackend[TreeSitterNode]):
    backend = BACKEND

    def __init__(self, language: str) -> None:
        super().__init__(language)
        self._language = load_language(language)
        self._literal_leaves = _LITERAL_LEAVES.get(language, frozenset())

    def parse_source(self, source: bytes, file_path: str) -> TreeSitterNode:
        # Parser objects are not shared between worker threads.
        parser = Parser(self._language)
        tree = parser.parse(source)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s, keeping the recovered tree", file_path)
        try:
            return self._convert(tree.walk(), source)
        except RecursionError as exc:
            raise ParseFailure(file_path, "syntax tree is nested too deeply") from exc

    def _convert(self, cursor: TreeCursor, source: bytes) -> TreeSitterNode:
        ts_node = cursor.node
        is_leaf = ts_node.type in self._literal_leaves or not any(
            child.is_named and child.type not in _COMMENT_TYPES for child in ts_node.children
        )
        keeps_keywords = ts_node.type == "modifiers"
        token = None
        if is_leaf and not keeps_keywords:
            token = source[ts_node.start_byte:ts_node.end_byte].decode("utf-8", errors="replace")
        node = TreeSitterNode(ts_node.type, token, cursor.field_name, ts_node.start_byte, ts_node.end_byte, source)
        if (is_leaf and not keeps_keywords) or not cursor.goto_first_child():
            return node
        while True:
            child = cursor.node
            if child.is_named and child.type not in _COMMENT_TYPES:
                node.add_child(self._convert(cursor, source))
            elif keeps_keywords and not child.is_named:
                keyword = source[child.start_byte:child.end_byte].decode("utf-8", errors="replace")
                node.add_child(TreeSitterNode("modifier", keyword, None, child.start_byte, child.end_byte, source))
            if not cursor.goto_next_sibling():
                break
        cursor.goto_parent()
        return node


class TreeSitterFunctionInfo(FunctionInfo[TreeSitterNode]):
    """Accessors common to all tree-sitter grammars."""

    @property
    def name_node(self) -> Capability[Optional[TreeSitterNode]]:
        return Supported(self.root.child_by_field("name"))

    @property
    def body(self) -> Capability[Optional[TreeSitterNode]]:
        return Supported(self.root.child_by_field("body"))

    def _ancestors(self) -> Iterator[TreeSitterNode]:
        node = self.root.parent
        while node is not None:
            yield node
            node = node.parent


def _name_of(node: TreeSitterNode) -> Optional[str]:
    name = node.child_by_field("name")
    return name.source_text() if name is not None else None


def _children_of_types(node: Optional[TreeSitterNode], types: frozenset[str]) -> list[TreeSitterNode]:
    if node is None:
        return []
    return [child for child in node.children if child.type_label in types]


# Python


class PythonFunctionInfo(TreeSitterFunctionInfo):
    @property
    def parameters(self) -> Capability[list[FunctionInfoParameter]]:
        parameters = self.root.child_by_field("parameters")
        found = []
        for child in parameters.children if parameters is not None else []:
            parameter = _python_parameter(child)
            if parameter is not None:
                found.append(parameter)
        return Supported(found)

    @property
    def return_type(self) -> Capability[Optional[str]]:
        return_type = self.root.child_by_field("return_type")
        return Supported(return_type.source_text() if return_type is not None else None)

    @property
    def annotations(self) -> Capability[list[str]]:
        parent = self.root.parent
        if parent is None or parent.type_label != "decorated_definition":
            return Supported([])
        return Supported([child.source_text().lstrip("@").strip() for child in parent.children_of_type("decorator")])

    @property
    def enclosing_element(self) -> Capability[Optional[EnclosingElement[TreeSitterNode]]]:
        for node in self._ancestors():
            if node.type_label == "class_definition":
                return Supported(EnclosingElement(EnclosingElementType.CLASS, _name_of(node), node))
            if node.type_label == "function_definition":
                return Supported(EnclosingElement(EnclosingElementType.FUNCTION, _name_of(node), node))
        return Supported(None)

    @property
    def is_constructor(self) -> Capability[bool]:
        enclosing = self.enclosing_element.unwrap()
        in_class = enclosing is not None and enclosing.type is EnclosingElementType.CLASS
        return Supported(in_class and self.name.unwrap() == "__init__")


def _python_parameter(node: TreeSitterNode) -> Optional[FunctionInfoParameter]:
    if node.type_label == "identifier":
        return FunctionInfoParameter(node.source_text())
    if node.type_label in ("list_splat_pattern", "dictionary_splat_pattern"):
        return FunctionInfoParameter(node.source_text().lstrip("*"))
    if node.type_label == "default_parameter":
        return FunctionInfoParameter(_name_of(node) or node.source_text())
    if node.type_label in ("typed_parameter", "typed_default_parameter"):
        type_node = node.child_by_field("type")
        type_text = type_node.source_text() if type_node is not None else None
        name = _name_of(node)
        if name is None:
            untyped = [child for child in node.children if child.field_name != "type"]
            name = untyped[0].source_text().lstrip("*") if untyped else node.source_text()
        return FunctionInfoParameter(name, type_text)
    return None


class PythonFunctionSplitter(FunctionSplitter[TreeSitterNode]):
    info_class = PythonFunctionInfo

    def split(self, root: TreeSitterNode, file_path: str) -> list[FunctionInfo[TreeSitterNode]]:
        return [PythonFunctionInfo(node, file_path) for node in pre_order(root) if node.type_label == "function_definition"]


# Java

_JAVA_FUNCTIONS = frozenset({"method_declaration", "constructor_declaration"})
_JAVA_CLASSES = frozenset(
    {"class_declaration", "interface_declaration", "enum_declaration", "record_declaration"}
)
_JAVA_ANNOTATIONS = frozenset({"marker_annotation", "annotation"})


class JavaFunctionInfo(TreeSitterFunctionInfo):
    def _modifiers_node(self) -> Optional[TreeSitterNode]:
        return self.root.child_of_type("modifiers")

    @property
    def parameters(self) -> Capability[list[FunctionInfoParameter]]:
        parameters = self.root.child_by_field("parameters")
        found = []
        for child in _children_of_types(parameters, frozenset({"formal_parameter", "spread_parameter"})):
            if child.type_label == "formal_parameter":
                type_node = child.child_by_field("type")
                found.append(
                    FunctionInfoParameter(
                        _name_of(child) or child.source_text(),
                        type_node.source_text() if type_node is not None else None,
                    )
                )
            else:
                declarator = child.child_of_type("variable_declarator")
                type_nodes = [c for c in child.children if c.type_label not in ("variable_declarator", "modifiers")]
                name = _name_of(declarator) if declarator is not None else None
                type_text = type_nodes[0].source_text() + "..." if type_nodes else None
                found.append(FunctionInfoParameter(name or child.source_text(), type_text))
        return Supported(found)

    @property
    def return_type(self) -> Capability[Optional[str]]:
        if self.root.type_label == "constructor_declaration":
            return Supported(None)
        type_node = self.root.child_by_field("type")
        return Supported(type_node.source_text() if type_node is not None else None)

    @property
    def annotations(self) -> Capability[list[str]]:
        names = []
        for annotation in _children_of_types(self._modifiers_node(), _JAVA_ANNOTATIONS):
            names.append(_name_of(annotation) or annotation.source_text().lstrip("@"))
        return Supported(names)

    @property
    def modifiers(self) -> Capability[list[str]]:
        keywords = _children_of_types(self._modifiers_node(), frozenset({"modifier"}))
        return Supported([keyword.original_token for keyword in keywords])

    @property
    def enclosing_element(self) -> Capability[Optional[EnclosingElement[TreeSitterNode]]]:
        for node in self._ancestors():
            if node.type_label in _JAVA_CLASSES:
                return Supported(EnclosingElement(EnclosingElementType.CLASS, _name_of(node), node))
            if node.type_label in _JAVA_FUNCTIONS:
                return Supported(EnclosingElement(EnclosingElementType.METHOD, _name_of(node), node))
        return Supported(None)

    @property
    def is_constructor(self) -> Capability[bool]:
        return Supported(self.root.type_label == "constructor_declaration")


class JavaFunctionSplitter(FunctionSplitter[TreeSitterNode]):
    info_class = JavaFunctionInfo

    def split(self, root: TreeSitterNode, file_path: str) -> list[FunctionInfo[TreeSitterNode]]:
        return [JavaFunctionInfo(node, file_path) for node in pre_order(root) if node.type_label in _JAVA_FUNCTIONS]


# JavaScript

_JS_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration", "method_definition"})
_JS_EXPRESSIONS = frozenset({"function_expression", "function", "generator_function", "arrow_function"})
_JS_FUNCTIONS = _JS_DECLARATIONS | _JS_EXPRESSIONS


class JavaScriptFunctionInfo(TreeSitterFunctionInfo):
    """Return types, annotations and modifiers are not implemented for JavaScript."""

    def _naming_declarator(self) -> Optional[TreeSitterNode]:
        parent = self.root.parent
        if self.root.type_label in _JS_EXPRESSIONS and parent is not None and parent.type_label == "variable_declarator":
            return parent
        return None

    @property
    def name_node(self) -> Capability[Optional[TreeSitterNode]]:
        own = self.root.child_by_field("name")
        if own is not None:
            return Supported(own)
        declarator = self._naming_declarator()
        return Supported(declarator.child_by_field("name") if declarator is not None else None)

    @property
    def parameters(self) -> Capability[list[FunctionInfoParameter]]:
        single = self.root.child_by_field("parameter")
        if single is not None:
            return Supported([FunctionInfoParameter(single.source_text())])
        parameters = self.root.child_by_field("parameters")
        found = []
        for child in parameters.children if parameters is not None else []:
            if child.type_label == "assignment_pattern":
                left = child.child_by_field("left")
                found.append(FunctionInfoParameter((left or child).source_text()))
            elif child.type_label == "rest_pattern":
                found.append(FunctionInfoParameter(child.source_text().lstrip(".")))
            else:
                found.append(FunctionInfoParameter(child.source_text()))
        return Supported(found)

    @property
    def enclosing_element(self) -> Capability[Optional[EnclosingElement[TreeSitterNode]]]:
        skipped = self._naming_declarator()
        for node in self._ancestors():
            if node is skipped:
                continue
            if node.type_label in ("class_declaration", "class"):
                return Supported(EnclosingElement(EnclosingElementType.CLASS, _name_of(node), node))
            if node.type_label == "method_definition":
                return Supported(EnclosingElement(EnclosingElementType.METHOD, _name_of(node), node))
            if node.type_label in _JS_FUNCTIONS:
                return Supported(EnclosingElement(EnclosingElementType.FUNCTION, _name_of(node), node))
            if node.type_label == "variable_declarator":
                return Supported(EnclosingElement(EnclosingElementType.VARIABLE_DECLARATION, _name_of(node), node))
        return Supported(None)

    @property
    def is_constructor(self) -> Capability[bool]:
        return Supported(self.root.type_label == "method_definition" and self.name.unwrap() == "constructor")


class JavaScriptFunctionSplitter(FunctionSplitter[TreeSitterNode]):
    info_class = JavaScriptFunctionInfo

    def split(self, root: TreeSitterNode, file_path: str) -> list[FunctionInfo[TreeSitterNode]]:
        return [JavaScriptFunctionInfo(node, file_path) for node in pre_order(root) if node.type_label in _JS_FUNCTIONS]


# PHP

_PHP_FUNCTIONS = frozenset({"function_definition", "method_declaration"})
_PHP_CLASSES = frozenset({"class_declaration", "interface_declaration", "trait_declaration", "enum_declaration"})
_PHP_PARAMETERS = frozenset({"simple_parameter", "variadic_parameter", "property_promotion_parameter"})
_PHP_MODIFIERS = frozenset(
    {
        "visibility_modifier",
        "static_modifier",
        "abstract_modifier",
        "final_modifier",
        "readonly_modifier",
        "var_modifier",
    }
)


class PhpFunctionInfo(TreeSitterFunctionInfo):
    @property
    def parameters(self) -> Capability[list[FunctionInfoParameter]]:
        found = []
        for child in _children_of_types(self.root.child_by_field("parameters"), _PHP_PARAMETERS):
            name = child.child_by_field("name")
            type_node = child.child_by_field("type")
            found.append(
                FunctionInfoParameter(
                    (name or child).source_text().lstrip("&.$"),
                    type_node.source_text() if type_node is not None else None,
                )
            )
        return Supported(found)

    @property
    def return_type(self) -> Capability[Optional[str]]:
        return_type = self.root.child_by_field("return_type")
        return Supported(return_type.source_text() if return_type is not None else None)

    @property
    def annotations(self) -> Capability[list[str]]:
        attributes = self.root.child_by_field("attributes")
        if attributes is None:
            return Supported([])
        names = [node.children[0].source_text() for node in pre_order(attributes) if node.type_label == "attribute" and node.children]
        return Supported(names)

    @property
    def modifiers(self) -> Capability[list[str]]:
        keywords = _children_of_types(self.root, _PHP_MODIFIERS)
        return Supported([keyword.source_text().lower() for keyword in keywords])

    @property
    def enclosing_element(self) -> Capability[Optional[EnclosingElement[TreeSitterNode]]]:
        for node in self._ancestors():
            if node.type_label in _PHP_CLASSES:
                return Supported(EnclosingElement(EnclosingElementType.CLASS, _name_of(node), node))
            if node.type_label == "method_declaration":
                return Supported(EnclosingElement(EnclosingElementType.METHOD, _name_of(node), node))
            if node.type_label == "function_definition":
                return Supported(EnclosingElement(EnclosingElementType.FUNCTION, _name_of(node), node))
        return Supported(None)

    @property
    def is_constructor(self) -> Capability[bool]:
        name = self.name.unwrap()
        return Supported(self.root.type_label == "method_declaration" and name is not None and name.lower() == "__construct")


class PhpFunctionSplitter(FunctionSplitter[TreeSitterNode]):
    info_class = PhpFunctionInfo

    def split(self, root: TreeSitterNode, file_path: str) -> list[FunctionInfo[TreeSitterNode]]:
        return [PhpFunctionInfo(node, file_path) for node in pre_order(root) if node.type_label in _PHP_FUNCTIONS]


@register_parser("py", BACKEND)
def _python_parser() -> TreeSitterParser:
    return TreeSitterParser("py")


@register_parser("java", BACKEND)
def _java_parser() -> TreeSitterParser:
    return TreeSitterParser("java")


@register_parser("js", BACKEND)
def _javascript_parser() -> TreeSitterParser:
    return TreeSitterParser("js")


@register_parser("php", BACKEND)
def _php_parser() -> TreeSitterParser:
    return TreeSitterParser("php")


register_splitter("py", BACKEND)(PythonFunctionSplitter)
register_splitter("java", BACKEND)(JavaFunctionSplitter)
register_splitter("js", BACKEND)(JavaScriptFunctionSplitter)
register_splitter("php", BACKEND)(PhpFunctionSplitter)
