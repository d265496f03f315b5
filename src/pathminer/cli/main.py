"""pathminer command-line entrypoint."""

from __future__ import annotations

import argparse

from pathminer.cli import run, serve


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pathminer",
        description="Mine code2vec path contexts from source trees.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run.add_parser(subparsers)
    serve.add_parser(subparsers)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
