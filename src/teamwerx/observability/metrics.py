"""Metrics hook protocol and no-op default implementation.

teamwerx emits counters and timings at key points of a merge.  By default
a :class:`NoopMetricsHook` is used so there is zero overhead.  Callers can
supply their own implementation that satisfies the :class:`MetricsHook`
protocol to route metrics to StatsD, Prometheus or a test recorder.

Emitted metric names:

* ``teamwerx.merge_ops_total``        -- counter, tag ``op_type``
* ``teamwerx.merge_duration_ms``      -- timing, tag ``domain``
* ``teamwerx.divergence_total``       -- counter, tag ``domain``
* ``teamwerx.warnings_total``         -- counter, tag ``code``
* ``teamwerx.changes_applied_total``  -- counter, tag ``mode``
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a timing / duration metric in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points.

    Used when no :class:`MetricsHook` backend is configured, so call-sites
    never need ``if self._metrics is not None`` guards.
    """

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
