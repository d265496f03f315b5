from __future__ import annotations

import json
from pathlib import Path

import pytest

import pathminer.labels.extractors
import pathminer.pipeline
from pathminer.config import LabelConfig, ParserConfig, PipelineConfig
from pathminer.errors import StorageIOFailure, UnsupportedConfiguration
from pathminer.pipeline import Pipeline, PipelineState, corpus_path
from pathminer.storage.code2vec import PathBasedStorageConfig, parse_corpus_line
from pathminer.storage.writers import CorpusWriter

MODULES = {
    "a.py": "def f(): pass\n",
    "b.py": "def m(x): return x\n",
    "pkg/c.py": (
        "class Stack:\n"
        "    def push(self, item):\n        self.items.append(item)\n"
        "    def pop(self):\n        return self.items.pop()\n"
    ),
    "pkg/d.py": "def add(a, b):\n    return a + b\n\ndef twice(a):\n    return add(a, a)\n",
    "pkg/sub/e.py": "def countDown(n):\n    if n:\n        countDown(n - 1)\n",
    "notes.txt": "def ignored(): pass\n",
}


def _write_sources(root: Path, modules: dict[str, str]) -> Path:
    for name, text in modules.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def _config(input_dir: Path, output_dir: Path, **kwargs) -> PipelineConfig:
    kwargs.setdefault("parser", ParserConfig(name="python_ast", languages=("py",)))
    kwargs.setdefault("storage", PathBasedStorageConfig(max_tokens=100, max_paths=100))
    return PipelineConfig(input_dir=str(input_dir), output_dir=str(output_dir), **kwargs)


def _corpus_lines(output_dir: Path) -> list[str]:
    return corpus_path(output_dir, "py").read_text(encoding="utf-8").splitlines()


def test_function_names_end_to_end(tmp_path: Path):
    src = _write_sources(tmp_path / "src", {"a.py": MODULES["a.py"], "b.py": MODULES["b.py"]})
    out = tmp_path / "out"

    pipeline = Pipeline(_config(src, out))
    summary = pipeline.run()

    lines = _corpus_lines(out)
    assert len(lines) == 2
    assert lines[0] == "f 1,1,2 1,2,2 2,3,2"
    assert lines[1] == "m 1,4,3 1,5,3 3,6,3"
    assert pipeline.state is PipelineState.COMPLETED

    assert summary.files_total == 2
    assert summary.files_processed == 2
    assert summary.examples == 2
    assert summary.lines_written == {"py": 2}

    assert (out / "tokens.txt").read_text(encoding="utf-8") == "1 METHOD_NAME 4\n2 EMPTY 4\n3 x 4\n"
    assert (out / "paths.txt").read_text(encoding="utf-8") == (
        "1 name↑FunctionDef↓arguments 1\n"
        "2 name↑FunctionDef↓body↓Pass 1\n"
        "3 arguments↑FunctionDef↓body↓Pass 1\n"
        "4 name↑FunctionDef↓arguments↓arg 1\n"
        "5 name↑FunctionDef↓body↓Return↓Name 1\n"
        "6 arg↑arguments↑FunctionDef↓body↓Return↓Name 1\n"
    )

    written = json.loads((out / "summary.json").read_text(encoding="utf-8"))
    assert written["summary"]["files_processed"] == 2
    assert written["config"]["parser"]["name"] == "python_ast"


@pytest.mark.parametrize("threads", [2, 4])
def test_output_does_not_depend_on_thread_count(tmp_path: Path, threads: int):
    src = _write_sources(tmp_path / "src", MODULES)
    serial, parallel = tmp_path / "serial", tmp_path / "parallel"

    Pipeline(_config(src, serial, storage=PathBasedStorageConfig(max_tokens=6, max_paths=8))).run()
    Pipeline(
        _config(src, parallel, storage=PathBasedStorageConfig(max_tokens=6, max_paths=8), num_threads=threads)
    ).run()

    for relative in ("py/data/path_contexts.c2s", "tokens.txt", "paths.txt"):
        assert (serial / relative).read_text(encoding="utf-8") == (parallel / relative).read_text(encoding="utf-8")


def test_labels_follow_file_order(tmp_path: Path):
    src = _write_sources(tmp_path / "src", MODULES)
    out = tmp_path / "out"
    Pipeline(_config(src, out, num_threads=3)).run()
    labels = [line.split(" ", 1)[0] for line in _corpus_lines(out)]
    assert labels == ["f", "m", "push", "pop", "add", "twice", "countDown"]


def test_file_path_labels_are_relative(tmp_path: Path):
    src = _write_sources(tmp_path / "src", {"pkg/mod.py": "x = 1\ny = x\n"})
    out = tmp_path / "out"
    Pipeline(_config(src, out, label=LabelConfig(name="file path"))).run()
    assert _corpus_lines(out)[0].startswith("pkg/mod.py ")


def test_unparsable_files_are_skipped(tmp_path: Path):
    src = _write_sources(tmp_path / "src", {"bad.py": "def (:\n", "good.py": MODULES["a.py"]})
    out = tmp_path / "out"
    summary = Pipeline(_config(src, out)).run()
    assert summary.files_skipped == 1
    assert summary.files_processed == 1
    assert _corpus_lines(out) == ["f 1,1,2 1,2,2 2,3,2"]


def test_tight_vocabulary_drops_examples(tmp_path: Path):
    src = _write_sources(tmp_path / "src", MODULES)
    out = tmp_path / "out"
    summary = Pipeline(_config(src, out, storage=PathBasedStorageConfig(max_tokens=1, max_paths=1))).run()
    assert summary.examples == 7
    assert summary.lines_written["py"] < 7


def test_invalid_setup_fails_before_reading_files(tmp_path: Path):
    with pytest.raises(UnsupportedConfiguration):
        Pipeline(_config(tmp_path, tmp_path / "out", parser=ParserConfig(name="nope", languages=("py",))))
    with pytest.raises(UnsupportedConfiguration):
        Pipeline(_config(tmp_path, tmp_path / "out", label=LabelConfig(name="docstring")))
    with pytest.raises(UnsupportedConfiguration):
        Pipeline(_config(tmp_path / "missing", tmp_path / "out")).run()
    assert not (tmp_path / "out").exists()


def test_write_failure_aborts_run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    src = _write_sources(tmp_path / "src", MODULES)
    out = tmp_path / "out"

    def failing_write(self: CorpusWriter, line: str) -> None:
        raise StorageIOFailure("disk full")

    monkeypatch.setattr(CorpusWriter, "write_line", failing_write)
    pipeline = Pipeline(_config(src, out, num_threads=2))
    with pytest.raises(StorageIOFailure):
        pipeline.run()
    assert pipeline.state is PipelineState.ABORTED
    assert not (out / "summary.json").exists()
    assert not (out / "tokens.txt").exists()

    with pytest.raises(RuntimeError):
        pipeline.run()


def test_blank_folder_label_is_dropped(tmp_path: Path):
    src = _write_sources(tmp_path / "src", {" /a.py": MODULES["a.py"], "pkg/b.py": MODULES["b.py"]})
    out = tmp_path / "out"
    pipeline = Pipeline(_config(src, out, label=LabelConfig(name="folder")))
    summary = pipeline.run()
    assert pipeline.state is PipelineState.COMPLETED
    assert summary.files_processed == 2
    assert [line.split(" ", 1)[0] for line in _corpus_lines(out)] == ["pkg"]


def test_rejected_label_fails_only_its_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    src = _write_sources(tmp_path / "src", {" /a.py": MODULES["a.py"], "pkg/b.py": MODULES["b.py"]})
    out = tmp_path / "out"
    monkeypatch.setattr(pathminer.labels.extractors, "sanitize_label", lambda label: label)
    pipeline = Pipeline(_config(src, out, label=LabelConfig(name="folder")))
    summary = pipeline.run()
    assert pipeline.state is PipelineState.COMPLETED
    assert summary.files_failed == 1
    assert summary.files_processed == 1
    assert [line.split(" ", 1)[0] for line in _corpus_lines(out)] == ["pkg"]
    assert (out / "tokens.txt").exists()


class _FailingHandle:
    """Text handle that runs out of space after a number of writes."""

    def __init__(self, inner, good_writes: int) -> None:
        self.inner = inner
        self.good_writes = good_writes

    def write(self, text: str) -> int:
        if self.good_writes <= 0:
            raise OSError("No space left on device")
        self.good_writes -= 1
        return self.inner.write(text)

    def flush(self) -> None:
        self.inner.flush()

    def close(self) -> None:
        self.inner.close()


class _ShortWriter(CorpusWriter):
    def __init__(self, path: Path, flush_every: int = 256) -> None:
        super().__init__(path, flush_every=1)
        self._handle = _FailingHandle(self._handle, good_writes=3)


def test_disk_full_leaves_whole_lines(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    src = _write_sources(tmp_path / "src", MODULES)
    out = tmp_path / "out"
    monkeypatch.setattr(pathminer.pipeline, "CorpusWriter", _ShortWriter)
    pipeline = Pipeline(_config(src, out, num_threads=2))
    with pytest.raises(StorageIOFailure):
        pipeline.run()
    assert pipeline.state is PipelineState.ABORTED

    content = corpus_path(out, "py").read_text(encoding="utf-8")
    assert content.endswith("\n")
    lines = content.splitlines()
    assert [parse_corpus_line(line).label for line in lines] == ["f", "m", "push"]
    assert not (out / "tokens.txt").exists()
    assert not (out / "summary.json").exists()
