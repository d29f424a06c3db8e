"""The Tester: registry, assertion engine and run driver of a test session."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable
from typing import Any, TextIO

from tensortester.assertions import AssertionsMixin
from tensortester.config import TesterConfig, get_config, load_config
from tensortester.formatting import Formatter, make_formatter
from tensortester.registry import register_entry, select_tests
from tensortester.report import Reporter, write_log
from tensortester.runner import TestRunner
from tensortester.types import ConfigError, RunOptions, RunSummary, UsageError

logger = logging.getLogger(__name__)


class Tester(AssertionsMixin):
    """A test session.

    Tests are registered with :meth:`add`, then executed with :meth:`run`
    (programmatic) or :meth:`run_cli` (options parsed from a flag list).
    Assertion methods record against the test that is currently running.

    Attributes:
        tests: Registered tests keyed by name.
        assertion_pass: Passed assertions per test name, reset by each run.
        assertion_fail: Failed assertions per test name, reset by each run.
        test_error: 1 for each test that raised, reset by each run.
        count_asserts: Assertions evaluated during the current run.
        errors: Formatted failure and error messages of the current run.
        current_test: Name of the test being executed.

    Example:
        tester = Tester()

        def test_add():
            tester.eq(np.ones(3) + 1, np.full(3, 2.0), "add", 1e-6)

        tester.add(test_add)
        sys.exit(tester.run_cli())
    """

    __test__ = False  # not a pytest class

    def __init__(
        self,
        config: TesterConfig | None = None,
        formatter: Formatter | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.config = config or get_config()
        self._formatter_override = formatter
        self.formatter = formatter or self._make_formatter(self.config.defaults.to_options())
        self.stream = stream

        self.tests: dict[str, Callable[[], Any]] = {}
        self.errors: list[str] = []
        self.current_test = ""
        self.assertion_pass: dict[str, int] = {}
        self.assertion_fail: dict[str, int] = {}
        self.test_error: dict[str, int] = {}
        self.count_asserts = 0
        self.last_summary: RunSummary | None = None

    # -- registration --------------------------------------------------------

    def add(self, entry: Any, name: str | None = None) -> Tester:
        """Register one or more tests.

        Args:
            entry: A test callable, a mapping of name to callable, an int
                status code from a previous run (0 means success), or the
                path of a suite file whose exit status is registered.
            name: Test name; ignored for mappings and files.

        Returns:
            The tester, for chaining.

        Raises:
            RegistrationError: If *entry* cannot be registered.
        """
        register_entry(self.tests, entry, name, self._status_test)
        return self

    def _status_test(self, code: int, name: str) -> Callable[[], bool]:
        def check_status() -> bool:
            return self._assert_sub(code == 0, f"{name} finished with status {code}")
        return check_status

    def select(self, candidates: str | Iterable[str] | None = None) -> dict[str, Callable[[], Any]]:
        """Return the registered tests matching *candidates* (see :func:`select_tests`)."""
        return select_tests(self.tests, candidates)

    def list_tests(self, candidates: str | Iterable[str] | None = None) -> list[str]:
        """Print and return the names of the selected tests."""
        names = list(self.select(candidates))
        Reporter(self.formatter, self.stream, self.config.ncols).list_tests(names)
        return names

    # -- running -------------------------------------------------------------

    def reset_counters(self, tests: Iterable[str]) -> None:
        """Start a new run over *tests*."""
        self.count_asserts = 0
        self.errors = []
        self.assertion_pass = {name: 0 for name in tests}
        self.assertion_fail = dict.fromkeys(self.assertion_pass, 0)
        self.test_error = dict.fromkeys(self.assertion_pass, 0)

    def _make_formatter(self, options: RunOptions) -> Formatter:
        if self._formatter_override is not None:
            return self._formatter_override
        return make_formatter(
            colour=options.colour,
            full_tensors=options.full_tensors,
            summary_threshold=self.config.tensor_summary_threshold,
        )

    def run(
        self,
        candidates: str | Iterable[str] | None = None,
        options: RunOptions | None = None,
    ) -> int:
        """Run the selected tests.

        Args:
            candidates: ``None`` (all tests), a name pattern or a list of
                patterns. Patterns in ``options.patterns`` take precedence.
            options: Run flags; defaults come from the configuration.

        Returns:
            0 if no test failed or raised, 1 otherwise.

        Raises:
            UsageError: If a pattern matches no registered test.
        """
        opts = options or self.config.defaults.to_options()
        if opts.patterns:
            candidates = opts.patterns
        tests = self.select(candidates)

        formatter = self._make_formatter(opts)
        reporter = Reporter(formatter, self.stream, self.config.ncols)
        if opts.list_only:
            reporter.list_tests(tests)
            return 0

        previous, self.formatter = self.formatter, formatter
        try:
            summary = TestRunner(self, reporter, opts).run(tests)
        finally:
            self.formatter = previous
        self.last_summary = summary

        if opts.log_output:
            with open(opts.log_output, "w", encoding="utf-8") as fh:
                write_log(fh, tests, self.assertion_pass, self.assertion_fail, self.test_error)
            logger.debug("Wrote per-test results to %s", opts.log_output)
        return summary.status

    def run_cli(
        self,
        argv: list[str] | None = None,
        candidates: str | Iterable[str] | None = None,
    ) -> int:
        """Run with options parsed from a flag list (default ``sys.argv[1:]``).

        Positional arguments are name patterns overriding *candidates*.

        Returns:
            The run status, or 2 on a usage or configuration error.
        """
        from tensortester.cli import options_from_args, build_parser

        args = build_parser(suite=False).parse_intermixed_args(argv)
        try:
            if args.config:
                self.config = load_config(args.config)
            opts = options_from_args(args, self.config.defaults)
            return self.run(candidates, opts)
        except (UsageError, ConfigError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
