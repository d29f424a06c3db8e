"""Tests for test registration and selection."""

import pytest

from tensortester.registry import match_names, run_suite_file, select_tests
from tensortester.types import RegistrationError, UsageError


def check_alpha():
    pass


def check_beta():
    pass


def _noop():
    pass


class TestAdd:
    """Tester.add"""

    def test_function_with_name(self, tester):
        tester.add(_noop, "relu")
        assert tester.tests == {"relu": _noop}

    def test_function_default_name(self, tester):
        tester.add(check_alpha)
        assert list(tester.tests) == ["check_alpha"]

    def test_lambda_gets_its_repr_name(self, tester):
        tester.add(lambda: None)
        assert list(tester.tests) == ["<lambda>"]

    def test_mapping_of_three(self, tester):
        tester.add({"conv": _noop, "pool": _noop, "fc": _noop})
        assert sorted(tester.tests) == ["conv", "fc", "pool"]
        for name in ("conv", "pool", "fc"):
            assert list(tester.select(f"^{name}$")) == [name]

    def test_nested_mapping(self, tester):
        tester.add({"outer": {"inner": _noop}})
        assert list(tester.tests) == ["inner"]

    def test_chaining(self, tester):
        assert tester.add(check_alpha).add(check_beta) is tester
        assert list(tester.tests) == ["check_alpha", "check_beta"]

    def test_duplicate_name_last_write_wins(self, tester):
        tester.add(check_alpha, "same")
        tester.add(check_beta, "same")
        assert tester.tests == {"same": check_beta}

    def test_status_code(self, tester):
        tester.add(0, "sub_ok")
        tester.add(3, "sub_bad")
        assert tester.run() == 1
        assert tester.assertion_pass["sub_ok"] == 1
        assert tester.assertion_fail["sub_bad"] == 1
        assert "sub_bad finished with status 3" in tester.errors[0]

    def test_status_code_default_name(self, tester):
        tester.add(0)
        assert list(tester.tests) == ["unknown"]

    @pytest.mark.parametrize("entry", [None, 1.5, True, object()])
    def test_rejects_unsupported(self, tester, entry):
        with pytest.raises(RegistrationError, match="Tester.add expects"):
            tester.add(entry, "bad")

    def test_registration_error_is_type_error(self, tester):
        with pytest.raises(TypeError):
            tester.add(None)


class TestSuiteFile:
    """Registering a suite file by path"""

    def test_passing_suite(self, tester, tmp_path):
        suite = tmp_path / "suite_ok.py"
        suite.write_text("import sys\nsys.exit(0)\n")
        tester.add(str(suite), "ignored")
        assert list(tester.tests) == [str(suite)]
        assert tester.run() == 0

    def test_failing_suite(self, tester, tmp_path):
        suite = tmp_path / "suite_bad.py"
        suite.write_text("import sys\nsys.exit(1)\n")
        tester.add(suite)
        assert tester.run() == 1
        assert tester.assertion_fail[str(suite)] == 1

    def test_exit_status(self, tmp_path):
        suite = tmp_path / "suite.py"
        suite.write_text("raise SystemExit(4)\n")
        assert run_suite_file(suite) == 4

    def test_missing_file(self, tester, tmp_path):
        with pytest.raises(RegistrationError, match="not found"):
            tester.add(str(tmp_path / "nope.py"))


class TestSelect:
    """Pattern based selection"""

    @pytest.fixture()
    def tests(self):
        return {"conv_fwd": _noop, "conv_bwd": _noop, "pool_fwd": _noop, "fc": _noop}

    def test_none_selects_all(self, tests):
        assert select_tests(tests, None) == tests

    def test_single_pattern(self, tests):
        assert list(select_tests(tests, "conv")) == ["conv_fwd", "conv_bwd"]

    def test_regex_pattern(self, tests):
        assert list(select_tests(tests, r"_fwd$")) == ["conv_fwd", "pool_fwd"]

    def test_union_keeps_registration_order(self, tests):
        assert list(select_tests(tests, ["fc", "pool", "conv_fwd", "fwd"])) == [
            "conv_fwd",
            "pool_fwd",
            "fc",
        ]

    def test_unmatched_pattern_is_usage_error(self, tests):
        with pytest.raises(UsageError, match="Invalid test case 'norm'"):
            select_tests(tests, ["conv", "norm"])

    def test_invalid_regex(self, tests):
        with pytest.raises(UsageError, match="Invalid test case"):
            match_names(tests, "(")

    def test_run_with_unmatched_pattern_does_not_run(self, tester, out):
        called = []
        tester.add(lambda: called.append(1), "only")
        with pytest.raises(UsageError):
            tester.run("missing")
        assert called == []
        assert out.getvalue() == ""


class TestListTests:
    def test_list(self, tester, out):
        tester.add({"b": _noop, "a": _noop})
        assert tester.list_tests() == ["b", "a"]
        assert out.getvalue() == "b\na\n"
