#!/usr/bin/env python
"""Basic ops example

Checks a handful of numpy operators against reference values.

Usage:
    python demos/basic_ops/run.py                  # run all tests
    python demos/basic_ops/run.py softmax --list   # list matching tests
    tensortest demos/basic_ops/run.py --no-colour  # same suite via the CLI
"""
import sys

import numpy as np

from tensortester import Tester

tester = Tester()


def linear(x, w, b):
    return x @ w.T + b


def softmax(x, axis=-1):
    e = np.exp(x - x.max(axis=axis, keepdims=True))
    return e / e.sum(axis=axis, keepdims=True)


def test_linear():
    rng = np.random.default_rng(0)
    x = rng.standard_normal((2, 4, 64))
    w = rng.standard_normal((128, 64))
    b = rng.standard_normal(128)
    y = linear(x, w, b)
    tester.assert_eq(y.shape, (2, 4, 128))
    tester.eq(y[0, 0], w @ x[0, 0] + b, "linear", 1e-9)


def test_relu():
    x = np.array([-2.0, -0.5, 0.0, 1.5])
    tester.assert_tensor_eq(np.maximum(x, 0), np.array([0.0, 0.0, 0.0, 1.5]), 0)


def test_softmax():
    x = np.random.default_rng(1).standard_normal((2, 4, 64))
    y = softmax(x)
    tester.eq(y.sum(axis=-1), np.ones((2, 4)), "softmax sum", 1e-12)
    tester.assert_ge(float(y.min()), 0.0)


def test_softmax_shift_invariance():
    x = np.linspace(-3, 3, 16)
    tester.assert_tensor_eq(softmax(x), softmax(x + 100.0), 1e-12)


def test_layer_stats():
    x = np.random.default_rng(2).standard_normal((8, 64))
    y = (x - x.mean(axis=-1, keepdims=True)) / x.std(axis=-1, keepdims=True)
    tester.eq(
        {"mean": y.mean(axis=-1), "std": y.std(axis=-1)},
        {"mean": np.zeros(8), "std": np.ones(8)},
        "layer_norm",
        1e-9,
    )


def test_bad_reshape():
    tester.assert_error_pattern(lambda: np.zeros(6).reshape(4, 2), r"cannot reshape")


tester.add({
    "linear": test_linear,
    "relu": test_relu,
    "softmax": test_softmax,
    "softmax_shift": test_softmax_shift_invariance,
    "layer_norm": test_layer_stats,
})
tester.add(test_bad_reshape, "bad_reshape")


if __name__ == "__main__":
    sys.exit(tester.run_cli())
