"""HTTP endpoint command."""

from __future__ import annotations

import argparse

from pathminer.cli.common import add_logging_args, setup_logging_from_args
from pathminer.server import DEFAULT_HOST, DEFAULT_PORT, make_server
from pathminer.utils.logging import get_logger

logger = get_logger(__name__)


def add_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    parser = subparsers.add_parser("serve", help="Serve POST /run for mining posted snippets.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Bind address.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Bind port.")
    parser.add_argument("--parser", default="treesitter", help="Parser backend used for snippets.")
    add_logging_args(parser)
    parser.set_defaults(func=run)
    return parser


def run(args: argparse.Namespace) -> int:
    setup_logging_from_args(args)
    server = make_server(args.host, args.port, args.parser)
    host, port = server.server_address[:2]
    logger.info("Listening on http://%s:%s/run", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
    return 0
