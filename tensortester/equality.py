"""
Numeric equality core

Tolerance-aware comparison of scalars, arrays and nested containers.

Dispatch is explicit: :func:`classify` tags every value with a
:class:`ValueKind` and each kind has its own comparison routine.

    kind       | comparison
    -----------|------------------------------------------------
    SCALAR     | |got - expected| <= precision (== when precision is 0)
    ARRAY      | shape check, then max |got - expected| <= precision
    CONTAINER  | size check, then recursive comparison per key
    OPAQUE     | ==

Usage:
    from tensortester.equality import deep_equal, tensors_equal

    ok, msg = tensors_equal(a, b, 1e-6)
    result = deep_equal({"w": w, "n": 3}, expected, precision=1e-5)
"""

from __future__ import annotations

import numbers
from collections.abc import Callable, Mapping
from typing import Any

import numpy as np

from tensortester import arrays
from tensortester.types import EqualityResult, Mismatch, ValueKind


class _Missing:
    """Placeholder for a key present on one side of a comparison only."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify(value: Any) -> ValueKind:
    """Tag *value* with the comparison routine that applies to it."""
    if arrays.is_array(value):
        return ValueKind.ARRAY
    if isinstance(value, (numbers.Number, np.bool_)):
        return ValueKind.SCALAR
    if isinstance(value, (Mapping, list, tuple)):
        return ValueKind.CONTAINER
    return ValueKind.OPAQUE


def _items(container):
    if isinstance(container, Mapping):
        return container.items()
    return enumerate(container)


def _lookup(container, key):
    if isinstance(container, Mapping):
        return container.get(key, MISSING)
    if isinstance(key, int) and 0 <= key < len(container):
        return container[key]
    return MISSING


def _same_family(a, b) -> bool:
    return isinstance(a, Mapping) == isinstance(b, Mapping)


def shape_str(arr: Any) -> str:
    """``3x4x5`` style rendering of an array's shape."""
    backend = arrays.backend_for(arr)
    shape = backend.shape(arr)
    return "x".join(str(s) for s in shape) if shape else "scalar"


def sizes_equal(a: Any, b: Any) -> bool:
    """Whether two arrays have the same number of dimensions and sizes."""
    backend, a, b = arrays.common_backend(a, b)
    return backend.ndim(a) == backend.ndim(b) and backend.shape(a) == backend.shape(b)


# ---------------------------------------------------------------------------
# Tensors
# ---------------------------------------------------------------------------

def tensors_equal(
    a: Any,
    b: Any,
    tolerance: float,
    negate: bool = False,
) -> tuple[bool, str | None]:
    """Compare two arrays elementwise.

    Succeeds iff the arrays have the same shape and the maximum absolute
    elementwise difference is <= *tolerance*. With ``negate=True`` the
    decision on the difference is inverted. A shape mismatch is reported as
    a failure under both polarities.

    Args:
        a: First array.
        b: Second array.
        tolerance: Maximum pointwise difference.
        negate: Invert success and failure (inequality check).

    Returns:
        ``(success, message)``; ``message`` is ``None`` on success.

    Raises:
        TypeError: If an operand is not an array or tolerance is not a number.
    """
    if not arrays.is_array(a):
        raise TypeError("First argument should be an array")
    if not arrays.is_array(b):
        raise TypeError("Second argument should be an array")
    if not isinstance(tolerance, numbers.Real):
        raise TypeError(
            "Third argument should be a number describing a tolerance for"
            " equality for a single element"
        )

    backend, a, b = arrays.common_backend(a, b)
    if backend.ndim(a) != backend.ndim(b):
        return False, "The tensors have different dimensions"
    if backend.shape(a) != backend.shape(b):
        return False, "The tensors have different sizes"

    err = backend.max_abs_diff(a, b)
    success = err <= tolerance
    if negate:
        success = not success
    if success:
        return True, None

    violation = "TensorNE(==)" if negate else "TensorEQ(==)"
    return False, f"{violation} violation: val={err:g}, condition={tolerance:g}"


def tensors_not_equal(a: Any, b: Any, tolerance: float) -> tuple[bool, str | None]:
    """Arrays are unequal if their maximum pointwise difference exceeds *tolerance*."""
    return tensors_equal(a, b, tolerance, negate=True)


# ---------------------------------------------------------------------------
# Tables (nested containers)
# ---------------------------------------------------------------------------

def _leaf_equal(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if a is MISSING or b is MISSING:
        return False
    if arrays.is_array(a) or arrays.is_array(b):
        if not (arrays.is_array(a) and arrays.is_array(b)):
            return False
        return tensors_equal(a, b, 0)[0]
    return bool(a == b)


def _included_in(a: Any, b: Any) -> bool:
    if classify(a) != ValueKind.CONTAINER or classify(b) != ValueKind.CONTAINER:
        return _leaf_equal(a, b)
    for key, value in _items(b):
        if not tables_equal(_lookup(a, key), value):
            return False
    return True


def tables_equal(a: Any, b: Any) -> bool:
    """Recursively compare two containers by value, in both directions.

    Leaves are compared with ``==`` (arrays exactly, by shape and content).
    A key present on one side only makes the containers unequal.
    """
    if classify(a) == ValueKind.CONTAINER and classify(b) == ValueKind.CONTAINER:
        if not _same_family(a, b):
            return False
    return _included_in(a, b) and _included_in(b, a)


def tables_not_equal(a: Any, b: Any) -> bool:
    return not tables_equal(a, b)


# ---------------------------------------------------------------------------
# Generalised equality
# ---------------------------------------------------------------------------

def _as_number(x):
    if isinstance(x, (bool, np.bool_)):
        return int(x)
    return x


def _scalar_diff(a, b) -> float:
    return float(abs(_as_number(a) - _as_number(b)))


def violation_message(
    label: str,
    precision: float,
    diff: float,
    got: Any,
    expected: Any,
    describe: Callable[[Any], str] = repr,
) -> str:
    return (
        f"{label} violation at precision {precision:g} (max diff={diff:g}): "
        f"{describe(got)} != {describe(expected)}"
    )


def _position_repr(value: Any, placeholder: str, describe) -> str:
    if classify(value) == ValueKind.CONTAINER:
        return placeholder
    return describe(value)


def _compare_containers(got, expected, precision, label, describe) -> EqualityResult:
    if len(got) != len(expected):
        return EqualityResult(
            equal=False,
            message=f"{label} inconsistent table size: {len(got)} != {len(expected)}",
            mismatch=Mismatch.SIZE,
        )

    def value_failure(v1, v2, position) -> EqualityResult:
        return EqualityResult(
            equal=False,
            message=(
                f"{label} inconsistent values: "
                f"{_position_repr(v1, 'container1', describe)} != "
                f"{_position_repr(v2, 'container2', describe)} at position {position!r}"
            ),
            mismatch=Mismatch.VALUE,
        )

    for key, value in _items(expected):
        sub = _lookup(got, key)
        if not deep_equal(sub, value, precision, label, describe):
            return value_failure(sub, value, key)
    for key, value in _items(got):
        other = _lookup(expected, key)
        if not deep_equal(value, other, precision, label, describe):
            return value_failure(value, other, key)
    return EqualityResult(equal=True)


def _compare_arrays(got, expected, precision, label, describe) -> EqualityResult:
    backend, a, b = arrays.common_backend(got, expected)
    if not sizes_equal(a, b):
        same_ndim = backend.ndim(a) == backend.ndim(b)
        return EqualityResult(
            equal=False,
            message=(
                f"{label} inconsistent size: {shape_str(got)} != {shape_str(expected)}"
            ),
            mismatch=Mismatch.SIZE if same_ndim else Mismatch.DIMENSION,
            max_diff=float("inf"),
            size_ok=False,
        )
    diff = backend.max_abs_diff(a, b)
    if diff <= precision:
        return EqualityResult(equal=True, max_diff=diff)
    return EqualityResult(
        equal=False,
        message=violation_message(label, precision, diff, got, expected, describe),
        mismatch=Mismatch.VALUE,
        max_diff=diff,
    )


def _compare_scalars(got, expected, precision, label, describe) -> EqualityResult:
    diff = _scalar_diff(got, expected)
    ok = bool(got == expected) if precision == 0 else diff <= precision
    if ok:
        return EqualityResult(equal=True, max_diff=diff)
    return EqualityResult(
        equal=False,
        message=violation_message(label, precision, diff, got, expected, describe),
        mismatch=Mismatch.VALUE,
        max_diff=diff,
    )


def deep_equal(
    got: Any,
    expected: Any,
    precision: float = 0,
    label: str = "eq",
    describe: Callable[[Any], str] = repr,
) -> EqualityResult:
    """
    Tolerance-aware equality of arbitrary values

    The comparison is selected by the kind of *expected*; containers pass
    *precision* down to their elements.

    Args:
        got: Value computed by the code under test.
        expected: Expected value.
        precision: Maximum allowed difference for numbers and arrays.
        label: Prefix for diagnostics.
        describe: Renders values inside diagnostics.

    Returns:
        EqualityResult
    """
    kind = classify(expected)
    if classify(got) != kind or (
        kind == ValueKind.CONTAINER and not _same_family(got, expected)
    ):
        return EqualityResult(
            equal=False,
            message=(
                f"{label} inconsistent types: "
                f"{type(got).__name__} and {type(expected).__name__}"
            ),
            mismatch=Mismatch.TYPE,
        )

    if kind == ValueKind.CONTAINER:
        return _compare_containers(got, expected, precision, label, describe)
    if kind == ValueKind.ARRAY:
        return _compare_arrays(got, expected, precision, label, describe)
    if kind == ValueKind.SCALAR:
        return _compare_scalars(got, expected, precision, label, describe)
    if _leaf_equal(got, expected):
        return EqualityResult(equal=True)
    return EqualityResult(
        equal=False,
        message=f"{label} violation: {describe(got)} != {describe(expected)}",
        mismatch=Mismatch.VALUE,
    )
