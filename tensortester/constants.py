"""Default values shared across the tester.

Collects the magic numbers used by the reporter, the equality core and the
assertion engine in one place.
"""

# ============================================================
# Console layout
# ============================================================

# Total width of a progress line and of the rule between error entries
NCOLS = 80

# Markers printed while a test is running and once it has finished
WAIT_MARKER = "WAIT"
PASS_MARKER = "PASS"
FAIL_MARKER = "FAIL"
ERROR_MARKER = "ERROR"


# ============================================================
# Comparison defaults
# ============================================================

# Default tolerance for assert_almost_eq (strict |a - b| < tolerance)
DEFAULT_ALMOST_EQ_TOLERANCE = 1e-16

# Default precision for eq(): exact match
DEFAULT_PRECISION = 0


# ============================================================
# Diagnostics
# ============================================================

# Arrays with more elements are summarised unless full tensors are requested
TENSOR_SUMMARY_THRESHOLD = 256

# Caller frames attached to an assertion failure
TRACEBACK_LIMIT = 2


# ============================================================
# Machine-readable log
# ============================================================

LOG_TOTAL_LABEL = "[total]"
