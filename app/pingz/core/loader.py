"""YAML config file loading.

The file has three keys, all optional::

    port: 3000            # metrics server port
    frequency: "30s"      # polling interval, duration syntax
    hosts:
      - name: api
        url: https://api.example.com/health

Any problem (unreadable file, YAML syntax, schema violation, invalid URL,
invalid or non-positive frequency) is reported as a single `ConfigError`,
which the process treats as fatal at startup.
"""

from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .duration import DurationError, parse_duration
from .types import PollConfig, Target

DEFAULT_PORT = 3000
DEFAULT_FREQUENCY = "1s"


class ConfigError(Exception):
    """Raised when the config file cannot be read or is invalid."""


class PingzConfig(BaseModel):
    """Contents of the YAML config file.

    Unknown top-level keys are ignored so a config can carry extra sections
    for other tooling.

    Attributes:
        port: TCP port of the metrics server.
        frequency: Polling interval as a duration string.
        hosts: Targets to poll, in order.
    """
    model_config = ConfigDict(frozen=True, extra='ignore')

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    frequency: str = DEFAULT_FREQUENCY
    hosts: tuple[Target, ...] = ()

    @field_validator('hosts', mode='before')
    @classmethod
    def empty_hosts(cls, v: object) -> object:
        """Treat a bare ``hosts:`` key as an empty list."""
        return () if v is None else v

    @field_validator('frequency')
    @classmethod
    def validate_frequency(cls, v: str) -> str:
        """Parse eagerly so a bad frequency fails at load time.

        Raises:
            ValueError: If the duration is malformed or not positive.
        """
        try:
            seconds = parse_duration(v)
        except DurationError as e:
            raise ValueError(f"Failed to parse frequency: {e}") from e
        if seconds <= 0:
            raise ValueError(f"frequency must be positive, got {v!r}")
        return v

    @property
    def interval(self) -> float:
        """Polling interval in seconds."""
        return parse_duration(self.frequency)

    def to_poll_config(self) -> PollConfig:
        return PollConfig(interval=self.interval, targets=self.hosts)


def parse_config(text: str) -> PingzConfig:
    """Validate YAML text into a `PingzConfig`.

    Raises:
        ConfigError: On YAML syntax errors or schema violations.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config must be a mapping at the top level, got {type(data).__name__}"
        )

    try:
        return PingzConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e}") from e


def load_config(path: Union[str, Path]) -> PingzConfig:
    """Read and validate the config file at ``path``.

    Raises:
        ConfigError: If the file cannot be read or its contents are invalid.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file '{path}': {e}") from e
    return parse_config(text)
