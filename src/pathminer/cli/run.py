"""Corpus mining command."""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any

from pathminer.cli.common import add_logging_args, setup_logging_from_args
from pathminer.config import PipelineConfig, load_pipeline_config
from pathminer.errors import PathminerError, UnsupportedConfiguration
from pathminer.pipeline import Pipeline
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)

_STORAGE_FLAGS = ("max_path_contexts", "max_tokens", "max_paths", "max_path_length", "max_path_width")


def add_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    parser = subparsers.add_parser("run", help="Mine path contexts from a source directory.")
    parser.add_argument("--config", help="Pipeline config YAML.")
    parser.add_argument("--input", help="Input directory (overrides input_dir).")
    parser.add_argument("--output", help="Output directory (overrides output_dir).")
    parser.add_argument("--threads", type=int, default=None, help="Worker threads (overrides num_threads).")
    parser.add_argument("--parser", default=None, help="Parser backend: treesitter or python_ast.")
    parser.add_argument(
        "--lang",
        action="append",
        default=[],
        help="Language to mine: py, java, js or php (repeatable).",
    )
    parser.add_argument("--label", default=None, help="Label extractor, e.g. 'function name' or 'file path'.")
    parser.add_argument("--max-path-contexts", type=int, default=None, help="Path contexts kept per example.")
    parser.add_argument("--max-tokens", type=int, default=None, help="Keep only the top-N ranked tokens.")
    parser.add_argument("--max-paths", type=int, default=None, help="Keep only the top-N ranked paths.")
    parser.add_argument("--max-path-length", type=int, default=None, help="Maximum path length in edges.")
    parser.add_argument("--max-path-width", type=int, default=None, help="Maximum path width at the apex.")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar.")
    add_logging_args(parser)
    parser.set_defaults(func=run)
    return parser


def build_config(args: argparse.Namespace) -> PipelineConfig:
    overrides: dict[str, Any] = {
        "input_dir": args.input,
        "output_dir": args.output,
        "num_threads": args.threads,
        "progress": True if args.progress else None,
    }
    if args.config:
        config = load_pipeline_config(args.config, **overrides)
    else:
        if not args.input or not args.output:
            raise UnsupportedConfiguration("--input and --output are required when --config is not given.")
        config = PipelineConfig.from_dict({key: value for key, value in overrides.items() if value is not None})

    if args.parser or args.lang:
        config = replace(
            config,
            parser=replace(
                config.parser,
                name=args.parser or config.parser.name,
                languages=tuple(args.lang) or config.parser.languages,
            ),
        )
    if args.label:
        config = replace(config, label=replace(config.label, name=args.label))

    storage_overrides = {
        name: getattr(args, name) for name in _STORAGE_FLAGS if getattr(args, name) is not None
    }
    if storage_overrides:
        try:
            config = replace(config, storage=replace(config.storage, **storage_overrides))
        except ValueError as exc:
            raise UnsupportedConfiguration(str(exc)) from exc
    return config


def run(args: argparse.Namespace) -> int:
    setup_logging_from_args(args)
    try:
        config = build_config(args)
        summary = Pipeline(config).run()
    except PathminerError as exc:
        logger.error("%s", exc)
        return 1
    print(
        f"processed={summary.files_processed} skipped={summary.files_skipped} "
        f"failed={summary.files_failed} examples={summary.examples} output={config.output_dir}"
    )
    return 0
