"""Canonical data structures for the pingz poller.

Define the immutable records shared by the config loader, the poller and the
metrics exposure: monitored targets, the polling configuration, and the
outcome of a single reachability check.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ═══════════════════════════════════════════════════════════════════════════
# BASE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

class CanonicalModel(BaseModel):
    """Base model for every pingz record.

    Configuration:
        frozen: Records are immutable once loaded.
        extra: Unknown fields are rejected.
        str_strip_whitespace: String inputs are normalized.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        str_strip_whitespace=True,
    )


# ═══════════════════════════════════════════════════════════════════════════
# TARGETS
# ═══════════════════════════════════════════════════════════════════════════

class Target(CanonicalModel):
    """A monitored HTTP endpoint.

    The ``name`` becomes the ``host`` label of the exported gauge. Two targets
    sharing a name write to the same series; uniqueness is left to whoever
    writes the config.

    Attributes:
        name: Label value identifying the host in metrics and logs.
        url: Absolute http(s) URL polled with a GET request.

    Example:
        >>> Target(name="api", url="https://api.example.com/health").name
        'api'
    """
    name: str = Field(min_length=1, description="Host label for the gauge.")
    url: str = Field(min_length=1, description="Absolute URL to GET.")

    @field_validator('url')
    @classmethod
    def validate_request_uri(cls, v: str) -> str:
        """Reject anything that is not an absolute http(s) request URI.

        Raises:
            ValueError: If the URL cannot be parsed, is relative, or uses a
                scheme other than http/https.
        """
        try:
            parsed = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid URL {v!r}: {e}") from e

        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"Invalid URL {v!r}: scheme must be http or https")
        if not parsed.host:
            raise ValueError(f"Invalid URL {v!r}: missing host")
        return v


class PollConfig(CanonicalModel):
    """Everything the poller needs, fixed for the process lifetime.

    Attributes:
        interval: Seconds between the starts of consecutive cycles.
        targets: Targets checked in this order on every cycle.
    """
    interval: float = Field(gt=0, description="Polling cadence in seconds.")
    targets: tuple[Target, ...] = ()


# ═══════════════════════════════════════════════════════════════════════════
# CHECK OUTCOMES
# ═══════════════════════════════════════════════════════════════════════════

class CheckResult(CanonicalModel):
    """Outcome of one reachability check.

    Attributes:
        target: The target that was checked.
        up: True iff the GET completed and returned exactly 200.
        detail: Failure reason for logging; None when up.
        status_code: Response status when a response arrived.
        elapsed: Wall time of the check in seconds.
    """
    target: Target
    up: bool
    detail: Optional[str] = None
    status_code: Optional[int] = None
    elapsed: float = Field(default=0.0, ge=0)

    @property
    def value(self) -> float:
        """Gauge value for this outcome (1.0 up, 0.0 down)."""
        return 1.0 if self.up else 0.0
