"""Command-line entry point.

Usage::

    tensortest <suite.py> [options] [pattern ...]

    --list                 print the names of the selected tests instead of running them
    --log-output FILE      write compact per-test results to FILE
                           (one "name #passed #failed #errors" line per test)
    --no-colour            suppress colour output
    --summary              print only the summary line, not the error messages
    --full-tensors         print large arrays in full in diagnostics
    --early-abort          stop at the first failing or erring test
    --rethrow              let test errors propagate instead of isolating them
    --config FILE          YAML configuration file
    --log-level LEVEL      logging level (default WARNING)

The suite file is executed as a module and must define a ``Tester``
instance (preferably named ``tester``) holding the registered tests. The
same flags, without the suite argument, are understood by
``Tester.run_cli``.
"""

from __future__ import annotations

import argparse
import logging
import runpy
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from tensortester.config import (
    DEFAULT_CONFIG_FILE,
    RunDefaults,
    get_config,
    load_config,
    use_config,
)
from tensortester.tester import Tester
from tensortester.types import ConfigError, RunOptions, UsageError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser(suite: bool = True) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tensortest",
        description="Run tensor unit tests",
        epilog=(
            "If any test name patterns are given only the matching tests are run. "
            "Otherwise all the tests are run."
        ),
    )
    if suite:
        parser.add_argument("suite", help="Python file defining a Tester")
    parser.add_argument("patterns", nargs="*", help="Test name patterns (regular expressions)")

    parser.add_argument(
        "--list", action="store_true",
        help="Print the names of the selected tests instead of running them",
    )
    parser.add_argument(
        "--log-output", metavar="FILE", default=None,
        help="Write one 'name #passed #failed #errors' line per test to FILE",
    )
    parser.add_argument(
        "--no-colour", "--no-color", dest="no_colour", action="store_true",
        help="Suppress colour output",
    )
    parser.add_argument(
        "--summary", action="store_true",
        help="Print only pass/fail status rather than full error messages",
    )
    parser.add_argument(
        "--full-tensors", action="store_true",
        help="Always print arrays in full, even if large",
    )
    parser.add_argument(
        "--early-abort", action="store_true",
        help="Abort execution on the first failure or error",
    )
    parser.add_argument(
        "--rethrow", action="store_true",
        help="Errors propagate up the stack instead of being recorded",
    )
    parser.add_argument("--config", metavar="FILE", default=None, help="YAML configuration file")
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser


def options_from_args(args: argparse.Namespace, defaults: RunDefaults | None = None) -> RunOptions:
    """Merge parsed flags over the configured run defaults."""
    d = defaults or RunDefaults()
    return RunOptions(
        list_only=args.list,
        log_output=args.log_output,
        colour=d.colour and not args.no_colour,
        summary=d.summary or args.summary,
        full_tensors=d.full_tensors or args.full_tensors,
        early_abort=d.early_abort or args.early_abort,
        rethrow=d.rethrow or args.rethrow,
        patterns=list(args.patterns),
    )


def parse_options(argv: list[str] | None = None, defaults: RunDefaults | None = None) -> RunOptions:
    """Turn a flag list (without suite argument) into a :class:`RunOptions`."""
    args = build_parser(suite=False).parse_intermixed_args(argv)
    return options_from_args(args, defaults)


# ---------------------------------------------------------------------------
# Suite loading
# ---------------------------------------------------------------------------

def load_suite(path: str | Path) -> Tester:
    """Execute a suite file and return the :class:`Tester` it defines.

    Raises:
        UsageError: If the file is missing or defines no Tester.
    """
    p = Path(path)
    if not p.is_file():
        raise UsageError(f"Suite file not found: {p}")

    namespace = runpy.run_path(str(p), run_name="__tensortest__")
    tester = namespace.get("tester")
    if isinstance(tester, Tester):
        return tester
    for value in namespace.values():
        if isinstance(value, Tester):
            return value
    raise UsageError(f"No Tester instance defined in {p}")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_time=False, show_path=False)],
    )


def _resolve_config(path: str | None):
    if path:
        return load_config(path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_config(DEFAULT_CONFIG_FILE)
    return get_config()


def main(argv: list[str] | None = None) -> int:
    """CLI entry-point."""
    parser = build_parser(suite=True)
    args = parser.parse_intermixed_args(argv)
    _setup_logging(args.log_level)

    try:
        use_config(_resolve_config(args.config))
        tester = load_suite(args.suite)
        return tester.run(options=options_from_args(args, tester.config.defaults))
    except (UsageError, ConfigError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
