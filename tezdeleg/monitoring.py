"""Metrics collection and a decorator that times use-case calls."""

from __future__ import annotations

import functools
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

COMPONENT = "UseCase"


@dataclass(frozen=True)
class OperationRecord:
    """One recorded call of a service operation."""

    operation: str
    component: str
    duration: float
    error: Optional[BaseException]


class MetricsClient:
    """In-memory metrics sink; subclass to forward metrics elsewhere."""

    def __init__(self) -> None:
        self.operations: list[OperationRecord] = []
        self.delegations_fetched = 0

    def record_service_operation(self, operation, component, duration, error):
        """Record one call of ``operation`` that took ``duration`` seconds."""
        self.operations.append(OperationRecord(operation, component, duration, error))

    def record_delegations_fetched(self, count):
        """Add ``count`` to the number of fetched items."""
        self.delegations_fetched += count


def monitored(
    operation: str,
    metrics_client: Optional[MetricsClient],
    count: Optional[Callable[[Any], int]] = None,
) -> Callable[[F], F]:
    """Wrap a function so every call is timed and reported to ``metrics_client``.

    When ``count`` is given and the call succeeds with a result, the number it
    returns for that result is reported as fetched items.
    """

    def decorate(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                if metrics_client is not None:
                    metrics_client.record_service_operation(
                        operation, COMPONENT, time.monotonic() - start, exc
                    )
                raise
            if metrics_client is not None:
                metrics_client.record_service_operation(
                    operation, COMPONENT, time.monotonic() - start, None
                )
                if count is not None and result is not None:
                    metrics_client.record_delegations_fetched(count(result))
            return result

        return wrapper  # type: ignore[return-value]

    return decorate