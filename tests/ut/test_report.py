"""Tests for run reporting."""

import io

import pytest

from tensortester.formatting import PlainFormatter
from tensortester.report import Reporter, count_format, pluralize, write_log
from tensortester.types import Outcome, RunSummary


@pytest.fixture()
def reporter(out):
    return Reporter(PlainFormatter(), out, ncols=80)


class TestHelpers:
    @pytest.mark.parametrize(
        "num, expected",
        [(0, "0 tests"), (1, "1 test"), (2, "2 tests")],
    )
    def test_pluralize(self, num, expected):
        assert pluralize(num, "test") == expected

    def test_count_format(self):
        fmt, width = count_format(12)
        assert fmt.format(3) == " 3/12 "
        assert width == 6


class TestProgress:
    def test_start(self, reporter, out):
        reporter.start(1)
        assert out.getvalue() == "Running 1 test\n"

    def test_line_width(self, reporter, out):
        reporter.start(3)
        reporter.begin_test(1, "test_add")
        reporter.end_test(Outcome.PASS)
        line = out.getvalue().split("\r")[-1].rstrip("\n")
        assert line.startswith("1/3 test_add ....")
        assert line.endswith(" [PASS]")
        assert len(line) == 80

    def test_wait_then_outcome(self, reporter, out):
        reporter.start(1)
        reporter.begin_test(1, "t")
        assert out.getvalue().endswith("[WAIT]")
        reporter.end_test(Outcome.ERROR)
        assert out.getvalue().endswith("\r1/1 t " + "." * (80 - 6 - 2 - 4 - 1) + " [ERROR]\n")

    def test_long_name_is_truncated(self, reporter, out):
        reporter.start(1)
        prefix = reporter.progress_prefix(1, "x" * 200)
        assert "x" * 10 + "..." in prefix
        assert len(prefix) + len("[PASS]") <= 80

    def test_aborted(self, reporter, out):
        reporter.aborted()
        assert out.getvalue() == "Aborting on first error, not all tests have been executed\n"


class TestFinalReport:
    def test_summary_line(self, reporter):
        summary = RunSummary(ntests=3, nasserts=7, nfailures=1, nerrors=1)
        assert reporter.summary_line(summary) == (
            "Completed 7 asserts in 3 tests with 1 failure and 1 error"
        )

    def test_error_log(self, reporter, out):
        summary = RunSummary(ntests=1, nasserts=1, nfailures=1, nerrors=0)
        reporter.report(summary, ["t\nboom\n"])
        rule = "-" * 80
        assert out.getvalue() == (
            "Completed 1 assert in 1 test with 1 failure and 0 errors\n"
            f"{rule}\nt\nboom\n\n{rule}\n"
        )

    def test_summary_only(self, reporter, out):
        summary = RunSummary(ntests=1, nasserts=1, nfailures=1, nerrors=0)
        reporter.report(summary, ["t\nboom\n"], summary_only=True)
        assert "boom" not in out.getvalue()

    def test_no_errors_no_rules(self, reporter, out):
        reporter.report(RunSummary(ntests=0, nasserts=0, nfailures=0, nerrors=0), [])
        assert "-" * 80 not in out.getvalue()


class TestWriteLog:
    def test_lines(self):
        sink = io.StringIO()
        write_log(
            sink,
            ["a", "b"],
            {"a": 3, "b": 0},
            {"a": 1, "b": 0},
            {"a": 0, "b": 1},
        )
        assert sink.getvalue() == "a 3 1 0\nb 0 0 1\n[total] 3 1 1\n"

    def test_empty_run(self):
        sink = io.StringIO()
        write_log(sink, [], {}, {}, {})
        assert sink.getvalue() == "[total] 0 0 0\n"
