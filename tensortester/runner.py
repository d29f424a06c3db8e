"""
Test execution

State machine of one run:

    Init      reset counters for the selected tests, fix the iteration order
    Loop      per test: set the cursor, print WAIT, invoke, record, print outcome
    Abort     with early_abort, stop after the first FAIL/ERROR that is not last
    Finalize  count failed / erred tests, print the report, compute the status

A test body is invoked through :func:`invoke`, which turns an uncaught
exception into a :class:`TestResult` value. In rethrow mode the body is
called directly and exceptions propagate out of the run.
"""

from __future__ import annotations

import gc
import logging
import traceback
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from tensortester.report import Reporter
from tensortester.types import RunOptions, RunSummary, TestResult

if TYPE_CHECKING:
    from tensortester.tester import Tester

logger = logging.getLogger(__name__)

# Frames kept from the traceback of a test error
ERROR_TRACEBACK_LIMIT = 16


def format_error(exc: BaseException, limit: int = ERROR_TRACEBACK_LIMIT) -> str:
    """Format *exc* without the frame of the invocation boundary."""
    tb = exc.__traceback__.tb_next if exc.__traceback__ is not None else None
    lines = traceback.format_exception(type(exc), exc, tb, limit=-limit)
    return "".join(lines).rstrip("\n")


def invoke(fn: Callable[[], Any], rethrow: bool = False) -> TestResult:
    """Call a test body and report how it ended.

    Args:
        fn: Zero-argument test callable.
        rethrow: Let exceptions propagate instead of capturing them.

    Returns:
        TestResult with ``ok=False`` and the exception if the body raised.
    """
    if rethrow:
        return TestResult(ok=True, value=fn())
    try:
        value = fn()
    except Exception as exc:  # pylint: disable=broad-except
        return TestResult(ok=False, error=exc, traceback=format_error(exc))
    return TestResult(ok=True, value=value)


class TestRunner:
    """Runs selected tests of a :class:`Tester` one after the other."""

    __test__ = False  # not a pytest class

    def __init__(self, tester: Tester, reporter: Reporter, options: RunOptions) -> None:
        self.tester = tester
        self.reporter = reporter
        self.options = options

    def run(self, tests: Mapping[str, Callable[[], Any]]) -> RunSummary:
        tester = self.tester
        opts = self.options

        tester.reset_counters(tests)
        names = list(tests)
        ntests = len(names)
        self.reporter.start(ntests)

        aborted = False
        outcomes = {}
        for index, name in enumerate(names, start=1):
            tester.current_test = name
            self.reporter.begin_test(index, name)
            logger.debug("Running test %s", name)

            fails_before = tester.assertion_fail[name]
            result = invoke(tests[name], rethrow=opts.rethrow)
            result.new_failures = tester.assertion_fail[name] - fails_before

            if not result.ok:
                logger.debug("Test %s raised %r", name, result.error)
                tester.test_error[name] = 1
                tester.errors.append(f"{name}\n Function call failed \n{result.traceback}\n")

            self.reporter.end_test(result.outcome)
            outcomes[name] = result.outcome

            if opts.early_abort and index < ntests and not result.passed:
                self.reporter.aborted()
                aborted = True
                break

            gc.collect()

        summary = RunSummary(
            ntests=ntests,
            nasserts=tester.count_asserts,
            nfailures=sum(1 for n in names if tester.assertion_fail[n] > 0),
            nerrors=sum(1 for n in names if tester.test_error[n] > 0),
            aborted=aborted,
            outcomes=outcomes,
        )
        self.reporter.report(summary, tester.errors, summary_only=opts.summary)
        return summary
