"""Test registration and selection."""

from __future__ import annotations

import logging
import re
import subprocess
import sys
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from tensortester.types import RegistrationError, UsageError

logger = logging.getLogger(__name__)

TestFn = Callable[[], Any]


def run_suite_file(path: str | Path) -> int:
    """Run a suite file in a fresh interpreter and return its exit status.

    Raises:
        RegistrationError: If the file does not exist.
    """
    p = Path(path)
    if not p.is_file():
        raise RegistrationError(f"Test suite file not found: {p}")
    logger.debug("Running suite file %s", p)
    proc = subprocess.run([sys.executable, str(p)], check=False)
    return proc.returncode


def register_entry(
    tests: dict[str, TestFn],
    entry: Any,
    name: str | None,
    status_test: Callable[[int, str], TestFn],
) -> None:
    """Add *entry* to *tests*, dispatching on what kind of entry it is.

    - callable: registered under *name* (default: its ``__name__``);
    - mapping: each value registered under its key, recursively;
    - int: a status code from a previous run, 0 meaning success;
    - str / Path: a suite file whose exit status is registered under its path.

    A name that is already registered is overwritten.

    Args:
        tests: Registry to update.
        entry: What to register.
        name: Test name.
        status_test: Builds the test that checks a status code.

    Raises:
        RegistrationError: If *entry* is none of the above.
    """
    if isinstance(entry, Mapping):
        for key, value in entry.items():
            register_entry(tests, value, str(key), status_test)
        return

    if isinstance(entry, (str, Path)):
        path = str(entry)
        code = run_suite_file(path)
        register_entry(tests, code, path, status_test)
        return

    if isinstance(entry, int) and not isinstance(entry, bool):
        name = name or "unknown"
        tests[name] = status_test(entry, name)
    elif callable(entry):
        name = name or getattr(entry, "__name__", None) or "unknown"
        tests[name] = entry
    else:
        raise RegistrationError(
            "Tester.add expects a function, a mapping of functions, a pre-computed "
            f"test result or a filename. Found {entry!r} instead for the test "
            f"{name or 'unknown'}"
        )
    logger.debug("Registered test %s", name)


def match_names(tests: Mapping[str, TestFn], pattern: str) -> list[str]:
    """Return the registered names matching *pattern* (regex search).

    Raises:
        UsageError: If no name matches.
    """
    try:
        regex = re.compile(pattern)
    except re.error as exc:
        raise UsageError(f"Invalid test case '{pattern}': {exc}") from exc
    names = [name for name in tests if regex.search(name)]
    if not names:
        raise UsageError(f"Invalid test case '{pattern}'")
    return names


def select_tests(
    tests: Mapping[str, TestFn],
    candidates: str | Iterable[str] | None = None,
) -> dict[str, TestFn]:
    """Select the tests to run.

    Args:
        tests: All registered tests.
        candidates: ``None`` for every test, a pattern, or a list of patterns.

    Returns:
        The union of matches, in registration order.

    Raises:
        UsageError: If any pattern matches no test.
    """
    if candidates is None:
        return dict(tests)
    if isinstance(candidates, str):
        candidates = [candidates]

    wanted: set[str] = set()
    for pattern in candidates:
        wanted.update(match_names(tests, pattern))

    selected = {name: fn for name, fn in tests.items() if name in wanted}
    logger.debug("Selected %d of %d tests", len(selected), len(tests))
    return selected
