from __future__ import annotations

from pathlib import Path

from pathminer.cli.main import main
from pathminer.pipeline import corpus_path


def _sources(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.py").write_text("def f(): pass\n", encoding="utf-8")
    (src / "b.py").write_text("def m(x): return x\n", encoding="utf-8")
    return src


def test_run_from_flags(tmp_path: Path, capsys):
    src = _sources(tmp_path)
    out = tmp_path / "out"
    code = main(
        [
            "run",
            "--input", str(src),
            "--output", str(out),
            "--parser", "python_ast",
            "--lang", "py",
            "--label", "function name",
            "--max-path-length", "8",
            "--threads", "2",
        ]
    )
    assert code == 0
    assert "processed=2" in capsys.readouterr().out
    lines = corpus_path(out, "py").read_text(encoding="utf-8").splitlines()
    assert [line.split(" ", 1)[0] for line in lines] == ["f", "m"]


def test_run_from_config_with_overrides(tmp_path: Path):
    src = _sources(tmp_path)
    out = tmp_path / "out"
    config = tmp_path / "pipeline.yaml"
    config.write_text(
        "input_dir: does-not-matter\n"
        "output_dir: also-ignored\n"
        "parser: {name: python_ast, languages: [py]}\n"
        "label: {name: file name}\n",
        encoding="utf-8",
    )
    code = main(["run", "--config", str(config), "--input", str(src), "--output", str(out)])
    assert code == 0
    lines = corpus_path(out, "py").read_text(encoding="utf-8").splitlines()
    assert [line.split(" ", 1)[0] for line in lines] == ["a.py", "b.py"]
    assert (out / "summary.json").exists()


def test_run_reports_configuration_errors(tmp_path: Path):
    src = _sources(tmp_path)
    assert main(["run", "--input", str(src), "--output", str(tmp_path / "out"), "--parser", "nope"]) == 1
    assert main(["run", "--input", str(src)]) == 1
    assert main(["run", "--input", str(src), "--output", str(tmp_path / "o"), "--max-tokens", "-3"]) == 1
