"""Tests for the display strategies."""

import numpy as np
import pytest

from tensortester.formatting import (
    COLOURS,
    ColourFormatter,
    PlainFormatter,
    make_formatter,
)


class TestMakeFormatter:
    def test_colour(self):
        fmt = make_formatter(colour=True)
        assert isinstance(fmt, ColourFormatter)
        assert fmt.colour_enabled is True

    def test_plain(self):
        fmt = make_formatter(colour=False, full_tensors=True, summary_threshold=10)
        assert not isinstance(fmt, ColourFormatter)
        assert fmt.full_tensors is True
        assert fmt.summary_threshold == 10


class TestColour:
    def test_plain_is_identity(self):
        assert PlainFormatter().category("PASS", "pass") == "PASS"

    @pytest.mark.parametrize("category", sorted(COLOURS))
    def test_ansi_codes(self, category):
        text = ColourFormatter().category("PASS", category)
        assert text != "PASS"
        assert "PASS" in text
        assert text.startswith("\x1b[")
        assert text.endswith("\x1b[0m")

    def test_red_is_standard_code(self):
        assert ColourFormatter().coloured("x", "red") == "\x1b[31mx\x1b[0m"

    def test_unknown_category_is_uncoloured(self):
        assert ColourFormatter().category("x", "nothing") == "x"


class TestDescribe:
    def test_scalars(self):
        assert PlainFormatter().describe(1.5) == "1.5"

    def test_small_array_printed(self):
        arr = np.array([1.0, 2.0])
        assert PlainFormatter().describe(arr) == str(arr)

    def test_large_array_summarised(self):
        arr = np.arange(300, dtype=np.float64).reshape(10, 30)
        assert PlainFormatter().describe(arr) == "Tensor of size 10x30, min=0, max=299"

    def test_threshold(self):
        arr = np.zeros(5)
        assert PlainFormatter(summary_threshold=4).describe(arr).startswith("Tensor of size 5")
        assert PlainFormatter(summary_threshold=5).describe(arr) == str(arr)

    def test_full_tensors(self):
        arr = np.arange(2000.0)
        text = PlainFormatter(full_tensors=True).describe(arr)
        assert "..." not in text
        assert "1.999e+03]" in text
        assert text.count("e+") == 2000

    def test_threshold_above_numpy_print_limit(self):
        arr = np.arange(1500.0)
        text = PlainFormatter(summary_threshold=5000).describe(arr)
        assert "..." not in text
        assert text.count("e+") == 1500

    def test_containers_recurse(self):
        text = PlainFormatter().describe({"w": np.zeros(300), "b": [1.5, "x"], "s": (2,)})
        assert text == "{'w': Tensor of size 300, min=0, max=0, 'b': [1.5, 'x'], 's': (2,)}"

    def test_containers_full_tensors(self):
        text = PlainFormatter(full_tensors=True).describe([np.arange(2000.0)])
        assert text.startswith("[[0.000e+00")
        assert "..." not in text


class TestTorchDescribe:
    def setup_method(self):
        self.torch = pytest.importorskip("torch")

    def test_full_tensors(self):
        t = self.torch.arange(2000.0)
        assert "..." not in PlainFormatter(full_tensors=True).describe(t)
        assert "..." in str(t)

    def test_summary(self):
        t = self.torch.zeros(10, 30)
        assert PlainFormatter().describe(t) == "Tensor of size 10x30, min=0, max=0"
