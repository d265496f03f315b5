from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from pathminer.errors import UnsupportedConfiguration
from pathminer.storage.code2vec import PathBasedStorageConfig


@dataclass(frozen=True)
class ParserConfig:
    """Parser backend and the languages (file extensions) it handles."""

    name: str = "treesitter"
    languages: tuple[str, ...] = ("py",)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ParserConfig":
        _reject_unknown(ParserConfig, d, "parser")
        languages = d.get("languages", ("py",))
        if isinstance(languages, str):
            languages = (languages,)
        return ParserConfig(name=str(d.get("name", "treesitter")), languages=tuple(str(x) for x in languages))


@dataclass(frozen=True)
class LabelConfig:
    """Label extractor name plus optional function filters."""

    name: str = "function name"
    filters: tuple[Dict[str, Any], ...] = ()

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "LabelConfig":
        _reject_unknown(LabelConfig, d, "label")
        filters = d.get("filters") or ()
        if not all(isinstance(item, dict) for item in filters):
            raise UnsupportedConfiguration("label.filters must be a list of mappings")
        return LabelConfig(name=str(d.get("name", "function name")), filters=tuple(dict(item) for item in filters))


@dataclass(frozen=True)
class PipelineConfig:
    """Everything one pipeline run needs.

    Persisted next to the corpus (inside ``summary.json``) so a run can be
    reproduced from its output directory.
    """

    input_dir: str
    output_dir: str
    parser: ParserConfig = field(default_factory=ParserConfig)
    label: LabelConfig = field(default_factory=LabelConfig)
    storage: PathBasedStorageConfig = field(default_factory=PathBasedStorageConfig)
    num_threads: int = 1
    progress: bool = False

    def __post_init__(self) -> None:
        if self.num_threads < 1:
            raise UnsupportedConfiguration("num_threads must be at least 1")
        if not self.parser.languages:
            raise UnsupportedConfiguration("parser.languages must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["parser"]["languages"] = list(self.parser.languages)
        d["label"]["filters"] = [dict(item) for item in self.label.filters]
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PipelineConfig":
        _reject_unknown(PipelineConfig, d, "pipeline")
        for key in ("input_dir", "output_dir"):
            if not d.get(key):
                raise UnsupportedConfiguration(f"'{key}' is required")
        storage = d.get("storage") or {}
        _reject_unknown(PathBasedStorageConfig, storage, "storage")
        try:
            storage_config = PathBasedStorageConfig(**storage)
        except ValueError as exc:
            raise UnsupportedConfiguration(str(exc)) from exc
        return PipelineConfig(
            input_dir=str(d["input_dir"]),
            output_dir=str(d["output_dir"]),
            parser=ParserConfig.from_dict(d.get("parser") or {}),
            label=LabelConfig.from_dict(d.get("label") or {}),
            storage=storage_config,
            num_threads=int(d.get("num_threads", 1)),
            progress=bool(d.get("progress", False)),
        )


def load_pipeline_config(path: str | Path, **overrides: Any) -> PipelineConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")
    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise UnsupportedConfiguration("Pipeline config must be a mapping.")
    payload = {**payload, **{key: value for key, value in overrides.items() if value is not None}}
    return PipelineConfig.from_dict(payload)


def _reject_unknown(cls: type, d: Dict[str, Any], section: str) -> None:
    if not isinstance(d, dict):
        raise UnsupportedConfiguration(f"'{section}' section must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise UnsupportedConfiguration(f"Unknown {section} option(s): {', '.join(unknown)}")

