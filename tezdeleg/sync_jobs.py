"""Sync jobs for operations and rewards; they hold their adapters and report timing."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from tezdeleg.monitoring import MetricsClient, monitored


@dataclass
class _SyncJob:
    """A sync job that has no data source to copy from yet."""

    usecase: str
    tzkt_adapter: Any
    db_adapter: Any
    logger: logging.LoggerAdapter
    batch_size: int = 1000

    def __call__(self, cancel: Optional[threading.Event] = None) -> None:
        """Run one pass; there is nothing to copy, so it returns at once."""
        return None


def _build(
    usecase: str,
    operation: str,
    tzkt_adapter: Any,
    db_adapter: Any,
    metrics_client: Optional[MetricsClient],
    logger: Optional[logging.Logger],
) -> Callable[..., None]:
    base = logger if logger is not None else logging.getLogger("tezdeleg")
    job = _SyncJob(
        usecase,
        tzkt_adapter,
        db_adapter,
        logging.LoggerAdapter(base, {"usecase": usecase}),
    )
    return monitored(operation, metrics_client)(job.__call__)


def new_sync_operations_func(tzkt_adapter, db_adapter, metrics_client, logger):
    """Build the operations sync, timed by ``metrics_client``."""
    return _build("sync_operations", "SyncOperations", tzkt_adapter, db_adapter,
                  metrics_client, logger)


def new_sync_rewards_func(tzkt_adapter, db_adapter, metrics_client, logger):
    """Build the rewards sync, timed by ``metrics_client``."""
    return _build("sync_rewards", "SyncRewards", tzkt_adapter, db_adapter,
                  metrics_client, logger)