"""Command-line interface for callchain."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from callchain.config import load_config
from callchain.errors import ConfigError, ProjectRootError
from callchain.model import SearchMode
from callchain.parsers import PARSER_NAMES
from callchain.pipeline import analyze
from callchain.report import format_json, format_text

logger = logging.getLogger(__name__)


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid worker count: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("worker count must be at least 1")
    return value


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="callchain",
        description="Trace Java call chains from a mapper, method or constant up to the REST endpoints that reach it.",
    )
    parser.add_argument(
        "project_root",
        type=Path,
        help="Path to the Java project to analyze",
    )
    parser.add_argument(
        "mode",
        help="What KEY names: mapper (0), method (1) or constant (2)",
    )
    parser.add_argument(
        "key",
        help="Mapper class name, Class#method, or constant name",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--parser",
        choices=PARSER_NAMES,
        default=None,
        help="Java parser backend (default: tree-sitter)",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Parser processes (default: automatic)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: PROJECT_ROOT/.callchain.toml)",
    )
    parser.add_argument(
        "-v",
        "--debug",
        action="store_true",
        help="Enable debug output",
    )

    args = parser.parse_args(argv)

    try:
        mode = SearchMode.parse(args.mode)
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.debug:
        logging.getLogger("callchain").setLevel(logging.DEBUG)

    try:
        config = load_config(args.project_root, args.config)
        config = config.merged(parser=args.parser, workers=args.workers)
        result = analyze(args.project_root, mode, args.key, config=config)
    except (ProjectRootError, ConfigError) as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.format == "json":
        sys.stdout.write(format_json(result) + "\n")
    else:
        sys.stdout.write(format_text(result))
