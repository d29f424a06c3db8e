"""
Run reporting

Console output of a run:

    Running 3 tests
    1/3 test_add ................................................ [PASS]
    2/3 test_matmul ............................................. [FAIL]
    3/3 test_softmax ............................................ [ERROR]
    Completed 7 asserts in 3 tests with 1 failure and 1 error
    --------------------------------------------------------------------------------
    test_matmul
    ...
    --------------------------------------------------------------------------------

and an optional machine-readable log, one line per test:

    <name> <passCount> <failCount> <errorCount>
    [total] <sumPass> <sumFail> <sumError>
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping
from typing import TextIO

from tensortester.constants import (
    ERROR_MARKER,
    FAIL_MARKER,
    LOG_TOTAL_LABEL,
    NCOLS,
    PASS_MARKER,
    WAIT_MARKER,
)
from tensortester.formatting import Formatter
from tensortester.types import Outcome, RunSummary

_MARKERS = {
    Outcome.PASS: (PASS_MARKER, "pass"),
    Outcome.FAIL: (FAIL_MARKER, "fail"),
    Outcome.ERROR: (ERROR_MARKER, "error"),
}


def pluralize(num: int, word: str) -> str:
    stem = f"{num} {word}"
    return stem if num == 1 else stem + "s"


def bracket(text: str) -> str:
    return f"[{text}]"


def count_format(ntests: int) -> tuple[str, int]:
    """Return the ``i/N`` prefix template for *ntests* and its printed width."""
    total = str(ntests)
    return f"{{:>{len(total)}}}/{total} ", len(total) * 2 + 2


class Reporter:
    """Renders a run to a text stream."""

    def __init__(
        self,
        formatter: Formatter | None = None,
        stream: TextIO | None = None,
        ncols: int = NCOLS,
    ) -> None:
        self.formatter = formatter or Formatter()
        self.stream = stream or sys.stdout
        self.ncols = ncols
        self._cfmt = "{}/{} "
        self._cfmtlen = 0
        self._line = ""

    def _write(self, text: str) -> None:
        self.stream.write(text)

    # -- progress ------------------------------------------------------------

    def start(self, ntests: int) -> None:
        self._cfmt, self._cfmtlen = count_format(ntests)
        self._write(f"Running {pluralize(ntests, 'test')}\n")

    def progress_prefix(self, index: int, name: str) -> str:
        """Counter, name and dot leader of a progress line (without marker)."""
        fc = self.formatter
        width = max(self.ncols - 6 - 2 - self._cfmtlen - 1, 4)
        if len(name) > width:
            name = name[: width - 3] + "..."
        dots = "." * (self.ncols - 6 - 2 - self._cfmtlen - len(name))
        return fc.category(self._cfmt.format(index), "progress") + name + " " + dots + " "

    def begin_test(self, index: int, name: str) -> None:
        self._line = self.progress_prefix(index, name)
        self._write(self._line + bracket(self.formatter.category(WAIT_MARKER, "progress")))
        self.stream.flush()

    def end_test(self, outcome: Outcome) -> None:
        marker, category = _MARKERS[outcome]
        self._write("\r" + self._line + bracket(self.formatter.category(marker, category)) + "\n")
        self.stream.flush()

    def aborted(self) -> None:
        self._write("Aborting on first error, not all tests have been executed\n")

    # -- final report --------------------------------------------------------

    def summary_line(self, summary: RunSummary) -> str:
        fc = self.formatter
        failures = fc.category(
            pluralize(summary.nfailures, "failure"),
            "pass" if summary.nfailures == 0 else "fail",
        )
        errors = fc.category(
            pluralize(summary.nerrors, "error"),
            "pass" if summary.nerrors == 0 else "error",
        )
        return (
            f"Completed {pluralize(summary.nasserts, 'assert')} in "
            f"{pluralize(summary.ntests, 'test')} with {failures} and {errors}"
        )

    def report(self, summary: RunSummary, errors: Iterable[str], summary_only: bool = False) -> None:
        """Print the summary line, then the error log unless *summary_only*."""
        self._write(self.summary_line(summary) + "\n")
        errors = list(errors)
        if not errors or summary_only:
            return
        rule = "-" * self.ncols + "\n"
        self._write(rule)
        for entry in errors:
            self._write(entry + "\n")
            self._write(rule)

    def list_tests(self, names: Iterable[str]) -> None:
        for name in names:
            self._write(name + "\n")


def write_log(
    sink: TextIO,
    names: Iterable[str],
    assertion_pass: Mapping[str, int],
    assertion_fail: Mapping[str, int],
    test_error: Mapping[str, int],
) -> None:
    """Write one ``name pass fail error`` line per test and a totals line."""
    npasses = nfails = nerrors = 0
    for name in names:
        p, f, e = assertion_pass[name], assertion_fail[name], test_error[name]
        npasses += p
        nfails += f
        nerrors += e
        sink.write(f"{name} {p} {f} {e}\n")
    sink.write(f"{LOG_TOTAL_LABEL} {npasses} {nfails} {nerrors}\n")
