"""Tests for the array backends."""

import numpy as np
import pytest

from tensortester import arrays
from tensortester.equality import deep_equal, tensors_equal


class TestNumpyBackend:
    """numpy backend"""

    def setup_method(self):
        self.backend = arrays.numpy_backend()

    def test_shape_queries(self, matrix):
        assert self.backend.ndim(matrix) == 2
        assert self.backend.shape(matrix) == (3, 4)
        assert self.backend.numel(matrix) == 12

    def test_max_abs_diff(self):
        a = np.array([1.0, -2.0, 3.0])
        b = np.array([1.5, -2.0, 1.0])
        assert self.backend.max_abs_diff(a, b) == pytest.approx(2.0)

    def test_max_abs_diff_empty(self):
        assert self.backend.max_abs_diff(np.zeros(0), np.zeros(0)) == 0.0

    @pytest.mark.parametrize(
        "dtype, widened",
        [
            (np.bool_, np.int64),
            (np.int8, np.int64),
            (np.int16, np.int64),
            (np.uint8, np.int64),
            (np.uint32, np.int64),
            (np.uint64, np.float64),
            (np.float16, np.float32),
            (np.int64, np.int64),
            (np.float64, np.float64),
        ],
    )
    def test_widen(self, dtype, widened):
        arr = np.zeros(2, dtype=dtype)
        assert self.backend.widen(arr).dtype == widened

    def test_widen_does_not_mutate(self):
        arr = np.array([1, 2], dtype=np.uint8)
        self.backend.widen(arr)
        assert arr.dtype == np.uint8


class TestBackendLookup:
    """Backend selection"""

    def test_numpy_array(self):
        assert arrays.backend_for(np.zeros(1)) is arrays.numpy_backend()

    @pytest.mark.parametrize("value", [1.0, [1.0], "x", None])
    def test_non_arrays(self, value):
        assert arrays.backend_for(value) is None
        assert arrays.is_array(value) is False

    def test_common_backend_rejects_non_arrays(self):
        with pytest.raises(TypeError, match="Expected two arrays"):
            arrays.common_backend(np.zeros(1), [0.0])

    def test_unknown_extension(self):
        with pytest.raises(ValueError, match="Unknown array extension"):
            arrays.load_extension("jax")


class TestTorchBackend:
    """torch backend (skipped without torch)"""

    def setup_method(self):
        self.torch = pytest.importorskip("torch")

    def test_load_extension_is_cached(self):
        backend = arrays.load_extension("torch")
        assert backend is arrays.torch_backend()
        assert backend.name == "torch"

    def test_torch_tensors_are_arrays(self):
        t = self.torch.ones(2, 3)
        assert arrays.backend_for(t) is arrays.torch_backend()

    def test_tensors_equal(self):
        a = self.torch.tensor([1.0, 2.0, 3.0])
        assert tensors_equal(a, a.clone(), 0) == (True, None)
        ok, msg = tensors_equal(a, a + 1, 0.5)
        assert ok is False
        assert "val=1" in msg

    def test_narrow_types(self):
        a = self.torch.tensor([0], dtype=self.torch.uint8)
        b = self.torch.tensor([1], dtype=self.torch.uint8)
        assert tensors_equal(a, b, 1)[0] is True
        assert tensors_equal(a, b, 0)[0] is False

    def test_mixed_with_numpy(self):
        t = self.torch.tensor([1.0, 2.0])
        assert tensors_equal(t, np.array([1.0, 2.0]), 0)[0] is True
        assert deep_equal(t, np.array([1.0, 2.5]), 0.1).equal is False
