"""
tensortester - unit testing for numeric array code

Register named test functions on a Tester, assert with tolerance-aware
comparisons of scalars, arrays and nested containers, and get per-test
pass/fail/error counts on the console or in a log file.

Module layout:
- equality    tolerance-aware comparison of scalars, arrays, containers
- assertions  assertion vocabulary and pass/fail recorder
- registry    test registration and pattern selection
- runner      per-test isolation and the run state machine
- report      console report and machine-readable log
- arrays      numpy backend, optional torch backend
- formatting  colour and value-display strategies
- config      YAML configuration
- cli         `tensortest` command

Usage:
    import sys
    import numpy as np
    from tensortester import Tester

    tester = Tester()

    def test_scale():
        x = np.arange(6.0).reshape(2, 3)
        tester.assert_tensor_eq(x * 2, x + x, 1e-12)

    tester.add(test_scale)

    if __name__ == "__main__":
        sys.exit(tester.run_cli())
"""

__version__ = "0.1.0"

from tensortester.arrays import load_extension
from tensortester.config import TesterConfig, get_config, load_config, reset_config, set_config
from tensortester.equality import (
    classify,
    deep_equal,
    tables_equal,
    tables_not_equal,
    tensors_equal,
    tensors_not_equal,
)
from tensortester.formatting import ColourFormatter, Formatter, PlainFormatter, make_formatter
from tensortester.tester import Tester
from tensortester.types import (
    ConfigError,
    EqualityResult,
    Mismatch,
    Outcome,
    RegistrationError,
    RunOptions,
    RunSummary,
    TesterError,
    UsageError,
    ValueKind,
)

__all__ = [
    "__version__",
    # session
    "Tester",
    "RunOptions",
    "RunSummary",
    "Outcome",
    # equality
    "classify",
    "deep_equal",
    "tensors_equal",
    "tensors_not_equal",
    "tables_equal",
    "tables_not_equal",
    "EqualityResult",
    "Mismatch",
    "ValueKind",
    # display
    "Formatter",
    "PlainFormatter",
    "ColourFormatter",
    "make_formatter",
    # config
    "TesterConfig",
    "get_config",
    "set_config",
    "reset_config",
    "load_config",
    # extensions
    "load_extension",
    # errors
    "TesterError",
    "UsageError",
    "RegistrationError",
    "ConfigError",
]
