"""Command-line connection probe for mysqltls."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .bootstrap import register
from .config import load_config
from .connector import Connector


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mysqltls",
        description="Open one database connection using the configured TLS settings.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml.")
    parser.add_argument(
        "--bail",
        action="store_true",
        help="Report a terminal failure and exit instead of returning quietly.",
    )
    return parser


def describe(connector: Connector) -> str:
    """One-line status summary for a connector."""

    state = connector.state
    handle = state.handle
    encrypted = bool(handle and handle.encrypted)
    return (
        f"phase={state.phase.value} driver={state.driver_generation.value} "
        f"tls={'on' if encrypted else 'off'} ready={str(state.ready).lower()}"
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the probe and return a process exit code."""

    args = _build_parser().parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    connector = register(config)
    try:
        connector.connect(allow_bail=args.bail)
        print(describe(connector))
        return 0 if connector.state.ready else 1
    finally:
        connector.close()


if __name__ == "__main__":
    raise SystemExit(main())
