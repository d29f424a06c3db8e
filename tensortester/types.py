"""Data classes, enums and exceptions for the tester."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """Runtime shape of a value taking part in a comparison."""

    SCALAR = "scalar"
    ARRAY = "array"
    CONTAINER = "container"
    OPAQUE = "opaque"


class Mismatch(str, Enum):
    """Why two values were found unequal."""

    NONE = "none"
    TYPE = "type"
    DIMENSION = "dimension"
    SIZE = "size"
    VALUE = "value"


class Outcome(str, Enum):
    """Final state of a single test."""

    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


# ---------------------------------------------------------------------------
# Result data classes
# ---------------------------------------------------------------------------

@dataclass
class EqualityResult:
    """Outcome of a tolerance-aware comparison.

    Attributes:
        equal: Whether the values compare equal.
        message: Diagnostic describing the first difference, ``None`` if equal.
        mismatch: Category of the difference.
        max_diff: Largest absolute difference seen (scalars and arrays only).
        size_ok: ``False`` when two arrays have different shapes.
    """

    equal: bool
    message: str | None = None
    mismatch: Mismatch = Mismatch.NONE
    max_diff: float = 0.0
    size_ok: bool = True

    def __bool__(self) -> bool:
        return self.equal


@dataclass
class TestResult:
    """What came back from invoking one test body.

    Exactly one of ``value`` / ``error`` is meaningful: ``ok`` tells which.
    """

    __test__ = False  # not a pytest class

    ok: bool
    value: Any = None
    error: BaseException | None = None
    traceback: str = ""
    new_failures: int = 0

    @property
    def passed(self) -> bool:
        return self.ok and self.new_failures == 0

    @property
    def outcome(self) -> Outcome:
        if not self.ok:
            return Outcome.ERROR
        return Outcome.PASS if self.new_failures == 0 else Outcome.FAIL


@dataclass
class RunOptions:
    """Structured options record for a run (CLI flags or programmatic)."""

    list_only: bool = False
    log_output: str | None = None
    colour: bool = True
    summary: bool = False
    full_tensors: bool = False
    early_abort: bool = False
    rethrow: bool = False
    patterns: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Aggregates computed when a run finishes."""

    ntests: int
    nasserts: int
    nfailures: int
    nerrors: int
    aborted: bool = False
    outcomes: dict[str, Outcome] = field(default_factory=dict)

    @property
    def status(self) -> int:
        return 0 if self.nfailures + self.nerrors == 0 else 1


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class TesterError(Exception):
    """Base exception for tester operations."""


class UsageError(TesterError):
    """Raised for invalid selection patterns and bad command-line usage."""


class RegistrationError(TesterError, TypeError):
    """Raised when ``Tester.add`` receives something it cannot register."""


class ConfigError(TesterError):
    """Raised when the configuration file is invalid or missing."""
