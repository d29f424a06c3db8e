"""
Assertion engine

Every assertion evaluates a condition, records the outcome against the test
that is currently running and returns the outcome as a bool. A failed
assertion never interrupts the test: callers may keep asserting.

Recorder contract:
    success -> assertion_pass[current_test] += 1, count_asserts += 1
    failure -> assertion_fail[current_test] += 1, count_asserts += 1,
               errors.append("<test>\\n<message>\\n<caller frames>\\n")

Diagnostic messages may be given as zero-argument callables; they are only
evaluated when the assertion fails.
"""

from __future__ import annotations

import os
import re
import traceback
from collections.abc import Callable
from typing import Any, Union

from tensortester.constants import DEFAULT_PRECISION
from tensortester.equality import (
    classify,
    deep_equal,
    tables_equal,
    tensors_equal,
    tensors_not_equal,
    violation_message,
)
from tensortester.types import Mismatch, ValueKind

Message = Union[str, Callable[[], str], None]

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def caller_context(limit: int) -> str:
    """Format the innermost *limit* stack frames outside this package."""
    if limit <= 0:
        return ""
    frames = [
        frame for frame in traceback.extract_stack()
        if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR)
    ]
    return "".join(traceback.format_list(frames[-limit:])).rstrip("\n")


def _compose(message: str | None, violation: str, detail: str) -> str:
    if message:
        return f"{message}\n{violation}  {detail}"
    return f"{violation}  {detail}"


class AssertionsMixin:
    """Assertion vocabulary and pass/fail recorder.

    Mixed into :class:`tensortester.tester.Tester`, which owns the state
    read and written here: ``current_test``, ``assertion_pass``,
    ``assertion_fail``, ``count_asserts``, ``errors``, ``formatter`` and
    ``config``.
    """

    # -- recorder ------------------------------------------------------------

    def _success(self) -> bool:
        self.count_asserts += 1
        name = self.current_test
        self.assertion_pass[name] = self.assertion_pass.get(name, 0) + 1
        return True

    def _failure(self, message: Message = None) -> bool:
        self.count_asserts += 1
        name = self.current_test
        self.assertion_fail[name] = self.assertion_fail.get(name, 0) + 1
        context = caller_context(self.config.traceback_limit)
        if callable(message):
            message = message()
        if message:
            self.errors.append(f"{name}\n{message}\n{context}\n")
        else:
            self.errors.append(f"{name}\n{context}\n")
        return False

    def _assert_sub(self, condition: Any, message: Message = None) -> bool:
        if condition:
            return self._success()
        return self._failure(message)

    def _operands(self, **operands: Any) -> str:
        """``name=value`` pairs rendered by the active formatter."""
        return ", ".join(f"{k}={self.formatter.describe(v)}" for k, v in operands.items())

    # -- ordering and equality -----------------------------------------------

    def assert_true(self, condition: Any, message: str = "") -> bool:
        """Assert that *condition* holds."""
        return self._assert_sub(
            condition,
            lambda: _compose(message, " BOOL violation ", self._operands(condition=condition)),
        )

    def assert_lt(self, val: Any, condition: Any, message: str = "") -> bool:
        """Assert ``val < condition``."""
        return self._assert_sub(
            val < condition,
            lambda: _compose(
                message, " LT(<) violation ", self._operands(val=val, condition=condition)
            ),
        )

    def assert_gt(self, val: Any, condition: Any, message: str = "") -> bool:
        """Assert ``val > condition``."""
        return self._assert_sub(
            val > condition,
            lambda: _compose(
                message, " GT(>) violation ", self._operands(val=val, condition=condition)
            ),
        )

    def assert_le(self, val: Any, condition: Any, message: str = "") -> bool:
        """Assert ``val <= condition``."""
        return self._assert_sub(
            val <= condition,
            lambda: _compose(
                message, " LE(<=) violation ", self._operands(val=val, condition=condition)
            ),
        )

    def assert_ge(self, val: Any, condition: Any, message: str = "") -> bool:
        """Assert ``val >= condition``."""
        return self._assert_sub(
            val >= condition,
            lambda: _compose(
                message, " GE(>=) violation ", self._operands(val=val, condition=condition)
            ),
        )

    def assert_eq(self, actual: Any, expected: Any, message: str = "") -> bool:
        """Assert ``actual == expected``."""
        return self._assert_sub(
            actual == expected,
            lambda: _compose(
                message, " EQ(==) violation ", self._operands(actual=actual, expected=expected)
            ),
        )

    def assert_ne(self, val: Any, condition: Any, message: str = "") -> bool:
        """Assert ``val != condition``."""
        return self._assert_sub(
            val != condition,
            lambda: _compose(
                message, " NE(~=) violation ", self._operands(val=val, condition=condition)
            ),
        )

    def assert_almost_eq(
        self, a: float, b: float, tolerance: float | None = None, message: str = ""
    ) -> bool:
        """Assert ``|a - b| < tolerance``.

        Args:
            a: First value.
            b: Second value.
            tolerance: Maximum difference (exclusive); defaults to the
                configured ``almost_eq_tolerance``.
            message: Context shown on failure.
        """
        if tolerance is None:
            tolerance = self.config.almost_eq_tolerance
        err = abs(a - b)
        return self._assert_sub(
            err < tolerance,
            lambda: _compose(
                message, " ALMOST_EQ(==) violation ", self._operands(val=err, tolerance=tolerance)
            ),
        )

    # -- arrays and containers -----------------------------------------------

    def assert_tensor_eq(self, ta: Any, tb: Any, tolerance: float, message: str = "") -> bool:
        """Assert that the max pointwise difference of two arrays is <= *tolerance*."""
        success, sub = tensors_equal(ta, tb, tolerance)
        return self._assert_sub(success, lambda: f"{message}\n{sub}" if message else sub)

    def assert_tensor_ne(self, ta: Any, tb: Any, tolerance: float, message: str = "") -> bool:
        """Assert that the max pointwise difference of two arrays is > *tolerance*.

        Arrays of different shapes fail this assertion too.
        """
        success, sub = tensors_not_equal(ta, tb, tolerance)
        return self._assert_sub(success, lambda: f"{message}\n{sub}" if message else sub)

    def assert_table_eq(self, actual: Any, expected: Any, message: str = "") -> bool:
        """Assert that two containers are equal, comparing values recursively."""
        return self._assert_sub(
            tables_equal(actual, expected),
            lambda: _compose(
                message, " TableEQ(==) violation ", self._operands(actual=actual, expected=expected)
            ),
        )

    def assert_table_ne(self, ta: Any, tb: Any, message: str = "") -> bool:
        """Assert that two containers differ somewhere."""
        return self._assert_sub(
            not tables_equal(ta, tb),
            lambda: _compose(message, " TableNE(~=) violation ", self._operands(ta=ta, tb=tb)),
        )

    # -- errors --------------------------------------------------------------

    def assert_error_obj(
        self,
        f: Callable[[], Any],
        errcomp: Callable[[BaseException | None], Any],
        message: str = "",
        condition: bool = False,
    ) -> bool:
        """Assert on what calling *f* raises.

        Succeeds when "*f* returned normally" equals *condition* and
        ``errcomp`` accepts the raised exception (``None`` if nothing was
        raised).

        Args:
            f: Callable under test.
            errcomp: Predicate on the raised exception.
            message: Context shown on failure.
            condition: Expected call status; ``False`` (default) means *f*
                is expected to raise.
        """
        try:
            f()
        except Exception as exc:  # pylint: disable=broad-except
            returned, err = False, exc
        else:
            returned, err = True, None
        return self._assert_sub(
            returned == condition and errcomp(err),
            lambda: _compose(message, " ERROR violation ", f"err={err!r}"),
        )

    def assert_error(self, f: Callable[[], Any], message: str = "") -> bool:
        """Assert that *f* raises."""
        return self.assert_error_obj(f, lambda err: True, message)

    def assert_no_error(self, f: Callable[[], Any], message: str = "") -> bool:
        """Assert that *f* returns without raising."""
        return self.assert_error_obj(f, lambda err: True, message, condition=True)

    def assert_error_msg(self, f: Callable[[], Any], errmsg: str, message: str = "") -> bool:
        """Assert that *f* raises an exception whose message is exactly *errmsg*."""
        return self.assert_error_obj(f, lambda err: str(err) == errmsg, message)

    def assert_error_pattern(
        self, f: Callable[[], Any], err_pattern: str, message: str = ""
    ) -> bool:
        """Assert that *f* raises an exception whose message matches *err_pattern*."""
        return self.assert_error_obj(
            f, lambda err: re.search(err_pattern, str(err)) is not None, message
        )

    # -- generalised equality ------------------------------------------------

    def eq(
        self,
        got: Any,
        expected: Any,
        label: str = "eq",
        precision: float = DEFAULT_PRECISION,
        ret: bool = False,
    ) -> bool:
        """General equality with a precision (numbers, arrays, containers).

        Containers are compared recursively with *precision* passed down to
        their elements. Arrays record an extra assertion on their sizes.

        Args:
            got: Value computed by the test.
            expected: Expected value.
            label: Used to label diagnostics.
            precision: Maximum allowed difference for numbers and arrays.
            ret: Only return the outcome, without recording an assertion.

        Returns:
            Whether the values are equal.
        """
        describe = self.formatter.describe
        result = deep_equal(got, expected, precision, label, describe)
        if ret:
            return result.equal

        kind = classify(expected)
        if result.mismatch == Mismatch.TYPE or kind in (ValueKind.CONTAINER, ValueKind.OPAQUE):
            return self._assert_sub(result.equal, result.message)
        if kind == ValueKind.ARRAY:
            self._assert_sub(result.size_ok, result.message)
        return self._assert_sub(
            result.equal,
            lambda: violation_message(label, precision, result.max_diff, got, expected, describe),
        )
