"""Pipeline orchestrator: files → parse → label → path contexts → corpus."""

from __future__ import annotations

import json
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from tqdm import tqdm

from pathminer.config import PipelineConfig
from pathminer.errors import ParseFailure, StorageIOFailure, UnsupportedConfiguration
from pathminer.labels import LabelExtractor, build_label_extractor
from pathminer.parse.base import ParserBackend, language_for_path
from pathminer.parse.registry import get_parser
from pathminer.paths.extractor import PathMiner, PathRetrievalSettings
from pathminer.paths.model import LabeledPathContexts
from pathminer.storage.code2vec import Code2VecEncoder, check_label
from pathminer.storage.writers import CorpusWriter
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)

CORPUS_FILENAME = "path_contexts.c2s"
SUMMARY_FILENAME = "summary.json"


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class FileStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RunSummary:
    files_total: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    examples: int = 0
    lines_written: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class FileOutcome:
    index: int
    file_path: str
    language: str
    status: FileStatus
    examples: tuple[LabeledPathContexts, ...] = ()
    error: Optional[str] = None


def corpus_path(output_dir: Path, language: str) -> Path:
    return output_dir / language / "data" / CORPUS_FILENAME


class Pipeline:
    """One run over an input directory.

    Parsing, labeling and path extraction run on a thread pool, one task per
    file. The calling thread alone owns the encoder (and with it both
    vocabulary tables) and the writers: it takes task results back in
    file-enumeration order, so ids, counts and line order do not depend on
    ``num_threads``.

    Setup resolves every parser and label extractor, so an unsupported
    language/backend/label combination raises before any file is read.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config
        self.state = PipelineState.IDLE
        self.summary = RunSummary()
        self.encoder: Optional[Code2VecEncoder] = None
        self.input_dir = Path(config.input_dir)
        self.output_dir = Path(config.output_dir)
        self.languages = tuple(dict.fromkeys(config.parser.languages))

        self._parsers: dict[str, ParserBackend] = {
            language: get_parser(language, config.parser.name) for language in self.languages
        }
        self._label_extractors: dict[str, LabelExtractor] = {
            language: build_label_extractor(config.label.name, language, config.parser.name, config.label.filters)
            for language in self.languages
        }
        storage = config.storage
        self._miner = PathMiner(
            PathRetrievalSettings(
                max_path_contexts=storage.max_path_contexts,
                max_length=storage.max_path_length,
                max_width=storage.max_path_width,
            )
        )

    def collect_files(self) -> list[Path]:
        if not self.input_dir.is_dir():
            raise UnsupportedConfiguration(f"Input directory does not exist: {self.input_dir}")
        return sorted(
            path
            for path in self.input_dir.rglob("*")
            if path.is_file() and language_for_path(path, self.languages) is not None
        )

    def run(self) -> RunSummary:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"Pipeline already {self.state.value}; create a new one per run.")
        files = self.collect_files()
        self.summary.files_total = len(files)
        logger.info(
            "Mining %d file(s) from %s with %s/%s using %d thread(s)",
            len(files),
            self.input_dir,
            self.config.parser.name,
            self.config.label.name,
            self.config.num_threads,
        )

        self.encoder = Code2VecEncoder(self.config.storage)
        writers: dict[str, CorpusWriter] = {}
        self.state = PipelineState.RUNNING
        try:
            for language in self.languages:
                writers[language] = CorpusWriter(corpus_path(self.output_dir, language))
            self._process_all(files, self.encoder, writers)
            self._finish(self.encoder, writers)
        except BaseException:
            self.state = PipelineState.ABORTED
            self._close_after_abort(writers)
            raise
        self.state = PipelineState.COMPLETED
        logger.info(
            "Done: %d processed, %d skipped, %d failed, %d example(s), lines per language %s",
            self.summary.files_processed,
            self.summary.files_skipped,
            self.summary.files_failed,
            self.summary.examples,
            self.summary.lines_written,
        )
        return self.summary

    def process_file(self, index: int, path: Path) -> FileOutcome:
        """Parse, label and extract one file. Never raises for file-local problems."""
        language = language_for_path(path, self.languages)
        display_path = _display_path(path, self.input_dir)
        try:
            parse_result = self._parsers[language].parse_file(path, display_path)
            examples = []
            for labeled in self._label_extractors[language].to_labeled_data(parse_result):
                contexts = self._miner.retrieve_paths(labeled.root)
                examples.append(LabeledPathContexts(labeled.label, tuple(contexts)))
        except ParseFailure as exc:
            logger.warning("Skipping %s: %s", display_path, exc.reason)
            return FileOutcome(index, display_path, language, FileStatus.SKIPPED, error=exc.reason)
        except Exception as exc:
            logger.exception("Failed to process %s", display_path)
            return FileOutcome(index, display_path, language, FileStatus.FAILED, error=str(exc))
        return FileOutcome(index, display_path, language, FileStatus.PROCESSED, tuple(examples))

    def _process_all(self, files: list[Path], encoder: Code2VecEncoder, writers: dict[str, CorpusWriter]) -> None:
        executor = ThreadPoolExecutor(max_workers=self.config.num_threads, thread_name_prefix="pathminer")
        progress = tqdm(total=len(files), desc="mining", unit="files", disable=not self.config.progress)
        try:
            for outcome in self._iter_outcomes(executor, files):
                self._consume(outcome, encoder, writers[outcome.language])
                progress.update(1)
        finally:
            progress.close()
            executor.shutdown(wait=True, cancel_futures=True)

    def _iter_outcomes(self, executor: ThreadPoolExecutor, files: list[Path]) -> Iterator[FileOutcome]:
        window = 2 * self.config.num_threads
        pending: deque[Future[FileOutcome]] = deque()
        for index, path in enumerate(files):
            pending.append(executor.submit(self.process_file, index, path))
            if len(pending) >= window:
                yield pending.popleft().result()
        while pending:
            yield pending.popleft().result()

    def _consume(self, outcome: FileOutcome, encoder: Code2VecEncoder, writer: CorpusWriter) -> None:
        if outcome.status is FileStatus.SKIPPED:
            self.summary.files_skipped += 1
            return
        if outcome.status is FileStatus.FAILED:
            self.summary.files_failed += 1
            return
        try:
            for example in outcome.examples:
                check_label(example.label)
        except ValueError as exc:
            logger.warning("Failed to encode %s: %s", outcome.file_path, exc)
            self.summary.files_failed += 1
            return
        self.summary.files_processed += 1
        for example in outcome.examples:
            self.summary.examples += 1
            line = encoder.encode(example)
            if line is not None:
                writer.write_line(line)

    def _finish(self, encoder: Code2VecEncoder, writers: dict[str, CorpusWriter]) -> None:
        for language, writer in writers.items():
            writer.close()
            self.summary.lines_written[language] = writer.lines_written
        encoder.dump_dictionaries(self.output_dir)
        summary_path = self.output_dir / SUMMARY_FILENAME
        payload = {"summary": self.summary.to_dict(), "config": self.config.to_dict()}
        try:
            summary_path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as exc:
            raise StorageIOFailure(f"Cannot write {summary_path}: {exc}") from exc

    def _close_after_abort(self, writers: dict[str, CorpusWriter]) -> None:
        for writer in writers.values():
            if writer.closed:
                continue
            try:
                writer.close()
            except StorageIOFailure as exc:
                logger.error("Dropping buffered lines of %s: %s", writer.path, exc)
        logger.error("Run aborted; %s holds only complete lines", self.output_dir)


def _display_path(path: Path, input_dir: Path) -> str:
    try:
        return path.relative_to(input_dir).as_posix()
    except ValueError:
        return path.as_posix()


def run_pipeline(config: PipelineConfig) -> RunSummary:
    return Pipeline(config).run()
