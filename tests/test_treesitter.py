from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("tree_sitter")

from pathminer.common.function_info import EnclosingElementType, FunctionInfoParameter  # noqa: E402
from pathminer.config import LabelConfig, ParserConfig, PipelineConfig  # noqa: E402
from pathminer.errors import UnsupportedConfiguration  # noqa: E402
from pathminer.labels import build_label_extractor  # noqa: E402
from pathminer.parse.base import ParseResult  # noqa: E402
from pathminer.parse.registry import get_parser, get_splitter  # noqa: E402
from pathminer.pipeline import Pipeline, corpus_path  # noqa: E402

PYTHON = b"""\
class Box:
    def __init__(self, value):
        self.value = value


@cached
def add(a, b: int = 1) -> int:
    # sum of both
    return a + b
"""

JAVA = b"""\
public class Counter {
    public Counter() {}

    public static int sum(int a, int b) {
        return a + b;
    }

    @Override
    public String toString() {
        return "counter";
    }
}
"""

JAVASCRIPT = b"""\
function hello(name) {
    return name;
}
const greet = (x) => x;
class Widget {
    constructor() {}
}
"""

PHP = b"""\
<?php
#[Pure]
function add(int $a, $b = 1): int {
    return $a + $b;
}

class Counter {
    public function __construct() {}

    public static function total(array $items): int {
        return count($items);
    }
}
"""


def _functions(language: str, source: bytes, file_path: str):
    root = get_parser(language, "treesitter").parse_source(source, file_path)
    return get_splitter(language, "treesitter").split(root, file_path)


def test_python_functions():
    pytest.importorskip("tree_sitter_python")
    init, add = _functions("py", PYTHON, "box.py")

    assert init.name.unwrap() == "__init__"
    assert init.is_constructor.unwrap() is True
    assert init.enclosing_element.unwrap().name == "Box"

    assert add.name.unwrap() == "add"
    assert add.parameters.unwrap() == [FunctionInfoParameter("a"), FunctionInfoParameter("b", "int")]
    assert add.return_type.unwrap() == "int"
    assert add.annotations.unwrap() == ["cached"]
    assert add.enclosing_element.unwrap() is None
    assert not add.modifiers.is_supported


def test_python_comments_are_dropped():
    pytest.importorskip("tree_sitter_python")
    root = get_parser("py", "treesitter").parse_source(PYTHON, "box.py")
    assert all(node.type_label != "comment" for node in _walk(root))


def test_java_functions():
    pytest.importorskip("tree_sitter_java")
    constructor, total, to_string = _functions("java", JAVA, "Counter.java")

    assert constructor.name.unwrap() == "Counter"
    assert constructor.is_constructor.unwrap() is True
    assert constructor.return_type.unwrap() is None

    assert total.name.unwrap() == "sum"
    assert total.modifiers.unwrap() == ["public", "static"]
    assert total.parameters.unwrap() == [FunctionInfoParameter("a", "int"), FunctionInfoParameter("b", "int")]
    assert total.return_type.unwrap() == "int"
    enclosing = total.enclosing_element.unwrap()
    assert (enclosing.type, enclosing.name) == (EnclosingElementType.CLASS, "Counter")

    assert to_string.annotations.unwrap() == ["Override"]
    assert to_string.modifiers.unwrap() == ["public"]


def test_java_filters():
    pytest.importorskip("tree_sitter_java")
    root = get_parser("java", "treesitter").parse_source(JAVA, "Counter.java")
    extractor = build_label_extractor(
        "function name",
        "java",
        "treesitter",
        filters=[{"name": "constructor"}, {"name": "annotation", "excluded": ["Override"]}],
    )
    labels = [r.label for r in extractor.to_labeled_data(ParseResult(root, "Counter.java"))]
    assert labels == ["sum"]


def test_javascript_functions():
    pytest.importorskip("tree_sitter_javascript")
    hello, greet, constructor = _functions("js", JAVASCRIPT, "app.js")

    assert hello.name.unwrap() == "hello"
    assert hello.parameters.unwrap() == [FunctionInfoParameter("name")]
    assert greet.name.unwrap() == "greet"
    assert greet.enclosing_element.unwrap() is None
    assert constructor.is_constructor.unwrap() is True
    assert constructor.enclosing_element.unwrap().type is EnclosingElementType.CLASS
    assert not hello.return_type.is_supported


def test_javascript_rejects_modifier_filter():
    pytest.importorskip("tree_sitter_javascript")
    with pytest.raises(UnsupportedConfiguration):
        build_label_extractor("function name", "js", "treesitter", filters=[{"name": "modifier", "excluded": ["static"]}])


def test_php_functions():
    pytest.importorskip("tree_sitter_php")
    add, construct, total = _functions("php", PHP, "counter.php")

    assert add.name.unwrap() == "add"
    assert add.parameters.unwrap() == [FunctionInfoParameter("a", "int"), FunctionInfoParameter("b")]
    assert add.return_type.unwrap() == "int"
    assert add.annotations.unwrap() == ["Pure"]
    assert add.modifiers.unwrap() == []
    assert add.enclosing_element.unwrap() is None

    assert construct.is_constructor.unwrap() is True
    enclosing = construct.enclosing_element.unwrap()
    assert (enclosing.type, enclosing.name) == (EnclosingElementType.CLASS, "Counter")

    assert total.is_constructor.unwrap() is False
    assert total.modifiers.unwrap() == ["public", "static"]
    assert total.parameters.unwrap() == [FunctionInfoParameter("items", "array")]


def test_php_files_are_mined(tmp_path: Path):
    pytest.importorskip("tree_sitter_php")
    src = tmp_path / "src"
    src.mkdir()
    (src / "counter.php").write_bytes(PHP)
    out = tmp_path / "out"

    config = PipelineConfig(
        input_dir=str(src),
        output_dir=str(out),
        parser=ParserConfig(name="treesitter", languages=("php",)),
        label=LabelConfig(name="function name", filters=({"name": "constructor"},)),
    )
    summary = Pipeline(config).run()

    assert summary.files_processed == 1
    labels = [line.split(" ", 1)[0] for line in corpus_path(out, "php").read_text(encoding="utf-8").splitlines()]
    assert labels == ["add", "total"]


def test_pipeline_over_mixed_languages(tmp_path: Path):
    pytest.importorskip("tree_sitter_python")
    pytest.importorskip("tree_sitter_java")
    src = tmp_path / "src"
    src.mkdir()
    (src / "box.py").write_bytes(PYTHON)
    (src / "Counter.java").write_bytes(JAVA)
    out = tmp_path / "out"

    config = PipelineConfig(
        input_dir=str(src),
        output_dir=str(out),
        parser=ParserConfig(name="treesitter", languages=("py", "java")),
        label=LabelConfig(name="function name"),
    )
    summary = Pipeline(config).run()

    assert summary.files_processed == 2
    py_labels = [line.split(" ", 1)[0] for line in corpus_path(out, "py").read_text(encoding="utf-8").splitlines()]
    java_labels = [line.split(" ", 1)[0] for line in corpus_path(out, "java").read_text(encoding="utf-8").splitlines()]
    assert py_labels == ["__init__", "add"]
    assert java_labels == ["Counter", "sum", "toString"]


def _walk(node):
    yield node
    for child in node.children:
        yield from _walk(child)
