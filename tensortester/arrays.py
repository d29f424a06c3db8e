"""Array backends used by the equality core.

The tester does not implement array math. It talks to the array library
through the narrow :class:`ArrayBackend` interface: dimensionality, shape,
element count, elementwise subtraction, absolute value, max reduction and a
widening conversion for narrow integer element types.

numpy is the default backend. The torch backend is an extension: it is
created on first access (``torch_backend()``) or explicitly through
``load_extension("torch")``, so torch is only imported by suites that use it.
"""

from __future__ import annotations

import importlib
import logging
import sys
import threading
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)


class ArrayBackend:
    """Interface between the equality core and an array library."""

    name = "base"

    def owns(self, value: Any) -> bool:
        """Whether *value* is an array of this backend."""
        raise NotImplementedError

    def coerce(self, value: Any) -> Any:
        """Convert a foreign array into this backend's array type."""
        raise NotImplementedError

    def ndim(self, arr: Any) -> int:
        raise NotImplementedError

    def shape(self, arr: Any) -> tuple[int, ...]:
        raise NotImplementedError

    def numel(self, arr: Any) -> int:
        raise NotImplementedError

    def sub(self, a: Any, b: Any) -> Any:
        raise NotImplementedError

    def abs(self, arr: Any) -> Any:
        raise NotImplementedError

    def max(self, arr: Any) -> float:
        raise NotImplementedError

    def min(self, arr: Any) -> float:
        raise NotImplementedError

    def widen(self, arr: Any) -> Any:
        """Promote element types that cannot be subtracted safely."""
        raise NotImplementedError

    def render(self, arr: Any) -> str:
        """Text of *arr* with every element printed."""
        raise NotImplementedError

    def max_abs_diff(self, a: Any, b: Any) -> float:
        """Largest ``|a - b|`` over all elements (0 for empty arrays)."""
        if self.numel(a) == 0:
            return 0.0
        diff = self.sub(self.widen(a), self.widen(b))
        return float(self.max(self.abs(diff)))


class NumpyBackend(ArrayBackend):
    """numpy implementation of :class:`ArrayBackend`."""

    name = "numpy"

    def owns(self, value: Any) -> bool:
        return isinstance(value, np.ndarray)

    def coerce(self, value: Any) -> np.ndarray:
        if hasattr(value, "detach"):
            value = value.detach().cpu().numpy()
        return np.asarray(value)

    def ndim(self, arr: np.ndarray) -> int:
        return arr.ndim

    def shape(self, arr: np.ndarray) -> tuple[int, ...]:
        return tuple(int(s) for s in arr.shape)

    def numel(self, arr: np.ndarray) -> int:
        return int(arr.size)

    def sub(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return np.subtract(a, b)

    def abs(self, arr: np.ndarray) -> np.ndarray:
        return np.abs(arr)

    def max(self, arr: np.ndarray) -> float:
        return float(np.max(arr))

    def min(self, arr: np.ndarray) -> float:
        return float(np.min(arr))

    def widen(self, arr: np.ndarray) -> np.ndarray:
        kind = arr.dtype.kind
        if kind == "b":
            return arr.astype(np.int64)
        if kind == "u":
            # unsigned subtraction wraps around
            return arr.astype(np.float64 if arr.dtype.itemsize >= 8 else np.int64)
        if kind == "i" and arr.dtype.itemsize < 8:
            return arr.astype(np.int64)
        if kind == "f" and arr.dtype.itemsize < 4:
            return arr.astype(np.float32)
        return arr

    def render(self, arr: np.ndarray) -> str:
        return np.array2string(arr, threshold=sys.maxsize)


class TorchBackend(ArrayBackend):
    """torch implementation of :class:`ArrayBackend`."""

    name = "torch"

    def __init__(self) -> None:
        self._torch = importlib.import_module("torch")
        self._narrow = {
            self._torch.bool,
            self._torch.uint8,
            self._torch.int8,
            self._torch.int16,
            self._torch.int32,
        }

    def owns(self, value: Any) -> bool:
        return isinstance(value, self._torch.Tensor)

    def coerce(self, value: Any) -> Any:
        return self._torch.as_tensor(value)

    def ndim(self, arr: Any) -> int:
        return arr.dim()

    def shape(self, arr: Any) -> tuple[int, ...]:
        return tuple(int(s) for s in arr.shape)

    def numel(self, arr: Any) -> int:
        return int(arr.numel())

    def sub(self, a: Any, b: Any) -> Any:
        return self._torch.sub(a.detach(), b.detach().to(a.device))

    def abs(self, arr: Any) -> Any:
        return self._torch.abs(arr)

    def max(self, arr: Any) -> float:
        return float(arr.max().item())

    def min(self, arr: Any) -> float:
        return float(arr.min().item())

    def widen(self, arr: Any) -> Any:
        if arr.dtype in self._narrow:
            return arr.to(self._torch.int64)
        if arr.dtype in (self._torch.float16, self._torch.bfloat16):
            return arr.to(self._torch.float32)
        return arr

    def render(self, arr: Any) -> str:
        self._torch.set_printoptions(profile="full")
        try:
            return str(arr)
        finally:
            self._torch.set_printoptions(profile="default")


# ---------------------------------------------------------------------------
# Backend access
# ---------------------------------------------------------------------------

_numpy = NumpyBackend()

_lock = threading.Lock()
_torch: TorchBackend | None = None

_EXTENSIONS = {"torch"}


def numpy_backend() -> NumpyBackend:
    return _numpy


def torch_backend() -> TorchBackend:
    """Return the torch backend, creating it on first access."""
    global _torch  # pylint: disable=global-statement
    with _lock:
        if _torch is None:
            logger.debug("Loading torch array backend")
            _torch = TorchBackend()
        return _torch


def load_extension(name: str) -> ArrayBackend:
    """Explicitly load an optional array backend during setup.

    Raises:
        ValueError: If *name* is not a known extension.
    """
    if name not in _EXTENSIONS:
        raise ValueError(f"Unknown array extension: {name!r} (known: {sorted(_EXTENSIONS)})")
    return torch_backend()


def _is_torch_tensor(value: Any) -> bool:
    # Only a process that already imported torch can hold a torch tensor.
    torch = sys.modules.get("torch")
    return torch is not None and isinstance(value, torch.Tensor)


def backend_for(value: Any) -> ArrayBackend | None:
    """Return the backend owning *value*, or ``None`` if it is not an array."""
    if _numpy.owns(value):
        return _numpy
    if _is_torch_tensor(value):
        return torch_backend()
    return None


def is_array(value: Any) -> bool:
    return backend_for(value) is not None


def common_backend(a: Any, b: Any) -> tuple[ArrayBackend, Any, Any]:
    """Pick one backend for a pair of arrays, converting if they differ.

    Mixed numpy/torch pairs are compared in numpy.
    """
    ba = backend_for(a)
    bb = backend_for(b)
    if ba is None or bb is None:
        raise TypeError(
            f"Expected two arrays, got {type(a).__name__} and {type(b).__name__}"
        )
    if ba is bb:
        return ba, a, b
    return _numpy, _numpy.coerce(a), _numpy.coerce(b)
