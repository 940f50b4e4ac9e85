"""Process-wide host health state backed by a Prometheus gauge.

The state owns its own ``CollectorRegistry`` instead of using the library's
global default, so the caller constructs one instance at startup and hands
it to both the poller (sole writer) and the metrics endpoint (reader).
"""

from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

METRIC_NAME = "pingz_host_up"
METRIC_HELP = "1 if the host is up, 0 otherwise"
HOST_LABEL = "host"

UP = 1.0
DOWN = 0.0


class HealthState:
    """Mapping of target name to gauge value (1.0 up, 0.0 down).

    A series exists only after the target was polled for the first time and
    is never removed afterwards. Each ``set`` is atomic for readers because
    every labelled gauge child guards its value with its own lock; no lock
    spans a whole poll cycle, so a scrape may mix values from adjacent cycles.

    Attributes:
        registry: Registry holding the ``pingz_host_up`` gauge.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._host_up = Gauge(
            METRIC_NAME,
            METRIC_HELP,
            [HOST_LABEL],
            registry=self.registry,
        )

    def set(self, name: str, value: float) -> None:
        """Record the latest check outcome for ``name``.

        Raises:
            ValueError: If ``value`` is neither `UP` nor `DOWN`.
        """
        if value not in (UP, DOWN):
            raise ValueError(f"host value must be {UP} or {DOWN}, got {value!r}")
        self._host_up.labels(name).set(value)

    def get(self, name: str) -> Optional[float]:
        """Return the current value for ``name``, or None if never polled."""
        return self.registry.get_sample_value(METRIC_NAME, {HOST_LABEL: name})

    def snapshot(self) -> dict[str, float]:
        """Return every known host and its value.

        Values are read one series at a time; the result is not a consistent
        cut across hosts.
        """
        values: dict[str, float] = {}
        for metric in self.registry.collect():
            if metric.name != METRIC_NAME:
                continue
            for sample in metric.samples:
                values[sample.labels[HOST_LABEL]] = sample.value
        return values

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def render(self) -> bytes:
        """Serialize the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)
