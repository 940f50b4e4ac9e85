# app/pingz/core/__init__.py
"""
Public API of the pingz core: data model, config loading, health state and
the poller.
"""

from .duration import DurationError, parse_duration
from .loader import ConfigError, PingzConfig, load_config, parse_config
from .poller import DEFAULT_TIMEOUT, Poller, next_delay
from .state import METRIC_NAME, HealthState
from .types import CheckResult, PollConfig, Target

__all__ = [
    "CheckResult",
    "ConfigError",
    "DEFAULT_TIMEOUT",
    "DurationError",
    "HealthState",
    "METRIC_NAME",
    "PingzConfig",
    "PollConfig",
    "Poller",
    "Target",
    "load_config",
    "next_delay",
    "parse_config",
    "parse_duration",
]
