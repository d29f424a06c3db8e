"""Tester configuration.

Settings come from three layers, later ones winning:

1. the defaults of :class:`TesterConfig`;
2. an optional YAML file (``tensortest.yaml``) loaded with :func:`load_config`;
3. command-line flags, which only touch the run flags in ``defaults``.

Example ``tensortest.yaml``::

    ncols: 100
    almost_eq_tolerance: 1.0e-12
    tensor_summary_threshold: 1024
    defaults:
      colour: false
      early_abort: true
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import yaml

from tensortester.constants import (
    DEFAULT_ALMOST_EQ_TOLERANCE,
    NCOLS,
    TENSOR_SUMMARY_THRESHOLD,
    TRACEBACK_LIMIT,
)
from tensortester.types import ConfigError, RunOptions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "tensortest.yaml"


@dataclass
class RunDefaults:
    """Default values of the run flags."""

    colour: bool = True
    summary: bool = False
    full_tensors: bool = False
    early_abort: bool = False
    rethrow: bool = False

    def to_options(self) -> RunOptions:
        return RunOptions(**asdict(self))


@dataclass
class TesterConfig:
    """Tester configuration."""

    __test__ = False  # not a pytest class

    ncols: int = NCOLS
    almost_eq_tolerance: float = DEFAULT_ALMOST_EQ_TOLERANCE
    tensor_summary_threshold: int = TENSOR_SUMMARY_THRESHOLD
    traceback_limit: int = TRACEBACK_LIMIT
    defaults: RunDefaults = field(default_factory=RunDefaults)

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ConfigError: If a value is out of range.
        """
        if self.ncols <= 20:
            raise ConfigError(f"ncols must be greater than 20, got {self.ncols}")
        if self.almost_eq_tolerance < 0:
            raise ConfigError(
                f"almost_eq_tolerance must be >= 0, got {self.almost_eq_tolerance}"
            )
        if self.tensor_summary_threshold < 0:
            raise ConfigError(
                f"tensor_summary_threshold must be >= 0, got {self.tensor_summary_threshold}"
            )
        if self.traceback_limit < 0:
            raise ConfigError(f"traceback_limit must be >= 0, got {self.traceback_limit}")

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# YAML file
# ---------------------------------------------------------------------------

def _known(cls) -> set[str]:
    return {f.name for f in fields(cls)}


def _parse_defaults(raw: dict | None) -> RunDefaults:
    if not raw:
        return RunDefaults()
    if not isinstance(raw, dict):
        raise ConfigError(f"'defaults' must be a mapping, got {type(raw).__name__}")
    for key in set(raw) - _known(RunDefaults):
        logger.warning("Ignoring unknown run default '%s'", key)
    return RunDefaults(**{k: bool(v) for k, v in raw.items() if k in _known(RunDefaults)})


def parse_config(data: dict) -> TesterConfig:
    """Build a validated :class:`TesterConfig` from a plain mapping."""
    known = _known(TesterConfig)
    for key in set(data) - known:
        logger.warning("Ignoring unknown configuration key '%s'", key)

    try:
        cfg = TesterConfig(
            ncols=int(data.get("ncols", NCOLS)),
            almost_eq_tolerance=float(
                data.get("almost_eq_tolerance", DEFAULT_ALMOST_EQ_TOLERANCE)
            ),
            tensor_summary_threshold=int(
                data.get("tensor_summary_threshold", TENSOR_SUMMARY_THRESHOLD)
            ),
            traceback_limit=int(data.get("traceback_limit", TRACEBACK_LIMIT)),
            defaults=_parse_defaults(data.get("defaults")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc
    cfg.validate()
    return cfg


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> TesterConfig:
    """Load and parse a YAML configuration file.

    Args:
        path: Path to the configuration file.

    Returns:
        Parsed :class:`TesterConfig`.

    Raises:
        ConfigError: If the file is missing or malformed.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Configuration file not found: {p}")

    try:
        with open(p, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {p}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {p}, got {type(data).__name__}")

    logger.debug("Loaded configuration from %s", p)
    return parse_config(data)


def save_config(cfg: TesterConfig, path: str | Path = DEFAULT_CONFIG_FILE) -> None:
    """Write the configuration back to a YAML file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as fh:
        yaml.dump(cfg.to_dict(), fh, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Process-wide configuration
# ---------------------------------------------------------------------------

_config_lock = threading.Lock()
_global_config: TesterConfig | None = None


def get_config() -> TesterConfig:
    """Return the process-wide configuration."""
    global _global_config  # pylint: disable=global-statement
    with _config_lock:
        if _global_config is None:
            _global_config = TesterConfig()
        return _global_config


def set_config(
    ncols: int | None = None,
    almost_eq_tolerance: float | None = None,
    tensor_summary_threshold: int | None = None,
    traceback_limit: int | None = None,
    defaults: RunDefaults | None = None,
) -> TesterConfig:
    """Update the process-wide configuration.

    Only arguments that are not ``None`` are applied.

    Example:
        set_config(almost_eq_tolerance=1e-9)
        set_config(defaults=RunDefaults(colour=False))
    """
    global _global_config  # pylint: disable=global-statement
    with _config_lock:
        if _global_config is None:
            _global_config = TesterConfig()

        updates = {
            "ncols": ncols,
            "almost_eq_tolerance": almost_eq_tolerance,
            "tensor_summary_threshold": tensor_summary_threshold,
            "traceback_limit": traceback_limit,
            "defaults": defaults,
        }
        for key, value in updates.items():
            if value is not None:
                setattr(_global_config, key, value)

        _global_config.validate()
        return _global_config


def use_config(cfg: TesterConfig) -> TesterConfig:
    """Replace the process-wide configuration with *cfg*."""
    global _global_config  # pylint: disable=global-statement
    cfg.validate()
    with _config_lock:
        _global_config = cfg
        return _global_config


def reset_config() -> None:
    """Reset to the default configuration."""
    global _global_config  # pylint: disable=global-statement
    with _config_lock:
        _global_config = TesterConfig()
