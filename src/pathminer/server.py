"""Small HTTP front end: ``POST /run`` mines a handful of snippets and returns the corpus."""

from __future__ import annotations

import tempfile
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Sequence
from urllib.parse import parse_qs, urlparse

from pathminer.config import LabelConfig, ParserConfig, PipelineConfig
from pathminer.errors import UnsupportedConfiguration
from pathminer.parse.base import LANGUAGE_EXTENSIONS
from pathminer.pipeline import Pipeline, corpus_path
from pathminer.storage.code2vec import PathBasedStorageConfig
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7070
SNIPPET_LABELS = ("file name", "function name")
SNIPPET_STORAGE = PathBasedStorageConfig(max_path_length=8, max_path_width=2)


def run_snippets(contents: Sequence[str], lang: str, label: str, parser: str = "treesitter") -> str:
    """Mine `contents` as files ``input<i>.<ext>`` and return the corpus text for `lang`."""
    if lang not in LANGUAGE_EXTENSIONS:
        raise UnsupportedConfiguration(f"Invalid language '{lang}'")
    if label not in SNIPPET_LABELS:
        raise UnsupportedConfiguration(f"Illegal label '{label}'")
    extension = LANGUAGE_EXTENSIONS[lang][0]
    with tempfile.TemporaryDirectory(prefix="pathminer-in-") as input_dir, tempfile.TemporaryDirectory(
        prefix="pathminer-out-"
    ) as output_dir:
        for index, content in enumerate(contents):
            Path(input_dir, f"input{index}{extension}").write_text(content, encoding="utf-8")
        config = PipelineConfig(
            input_dir=input_dir,
            output_dir=output_dir,
            parser=ParserConfig(name=parser, languages=(lang,)),
            label=LabelConfig(name=label),
            storage=SNIPPET_STORAGE,
            num_threads=1,
        )
        Pipeline(config).run()
        return corpus_path(Path(output_dir), lang).read_text(encoding="utf-8")


class RunRequestHandler(BaseHTTPRequestHandler):
    server_version = "pathminer"
    parser_backend = "treesitter"

    def do_POST(self) -> None:
        if urlparse(self.path).path != "/run":
            self._reply(HTTPStatus.NOT_FOUND, "Not found")
            return
        try:
            form = self._read_form()
        except ValueError as exc:
            self._reply(HTTPStatus.BAD_REQUEST, f"Malformed request body: {exc}")
            return
        contents = form.get("contents", [])
        lang = (form.get("lang") or [""])[0]
        label = (form.get("label") or [""])[0]
        if lang not in LANGUAGE_EXTENSIONS or label not in SNIPPET_LABELS:
            self._reply(HTTPStatus.BAD_REQUEST, f"Invalid parameters: lang={lang!r} label={label!r}")
            return
        try:
            result = run_snippets(contents, lang, label, parser=self.parser_backend)
        except Exception as exc:
            logger.exception("POST /run failed")
            self._reply(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc))
            return
        self._reply(HTTPStatus.OK, result)

    def _read_form(self) -> dict[str, list[str]]:
        length = int(self.headers.get("Content-Length") or 0)
        if length < 0:
            raise ValueError(f"negative Content-Length {length}")
        body = self.rfile.read(length).decode("utf-8")
        return parse_qs(body, keep_blank_values=True)

    def log_message(self, format: str, *args: object) -> None:
        logger.info("%s - %s", self.address_string(), format % args)

    def _reply(self, status: HTTPStatus, text: str) -> None:
        payload = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)


def make_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, parser: str = "treesitter") -> ThreadingHTTPServer:
    handler = type("ConfiguredRunRequestHandler", (RunRequestHandler,), {"parser_backend": parser})
    return ThreadingHTTPServer((host, port), handler)
