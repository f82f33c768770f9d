"""Module entry point for running the managed VPN profile service."""

from __future__ import annotations

import argparse

from . import __version__
from .cli import run_cli


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Managed VPN profiles")
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    args, extra = parser.parse_known_args(argv)

    if args.version:
        print(__version__)
        return 0

    return run_cli(extra)


if __name__ == "__main__":
    raise SystemExit(main())
