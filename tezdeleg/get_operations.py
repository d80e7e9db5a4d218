"""Use case: list stored operations page by page with optional filters."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, Sequence

from tezdeleg.get_delegations import format_timestamp
from tezdeleg.monitoring import MetricsClient, monitored
from tezdeleg.params import build_pagination, parse_limit, parse_page
from tezdeleg.records import OperationsResponse

MAX_OPERATIONS_PAGE = 65535


class OperationStore(Protocol):
    """Storage that can return a page of operations."""

    def get_operations(
        self,
        from_timestamp: int,
        to_timestamp: int,
        page: int,
        limit: int,
        operation_type: str,
        wallet: str,
        backer: str,
    ) -> Sequence[Any]:
        ...


@dataclass(frozen=True)
class GetOperationsInput:
    """Filters and paging for an operations query; empty strings mean "any"."""

    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    page: str = ""
    limit: str = ""
    wallet: str = ""
    backer: str = ""
    type: str = ""


def to_unix(moment: Optional[datetime]) -> int:
    """Return Unix seconds for ``moment``, 0 when it is not given."""
    return int(moment.timestamp()) if moment is not None else 0


def _with_time(operation: Any) -> Any:
    stamp = format_timestamp(operation["timestamp"] if isinstance(operation, Mapping) else operation.timestamp)
    if isinstance(operation, Mapping):
        return {**operation, "timestamp_time": stamp}
    if dataclasses.is_dataclass(operation):
        return dataclasses.replace(operation, timestamp_time=stamp)
    operation.timestamp_time = stamp
    return operation


class GetOperations:
    """Fetch a page of operations with their times formatted."""

    def __init__(self, default_limit: int, adapter: Optional[OperationStore]) -> None:
        self.default_limit = default_limit
        self.adapter = adapter

    def __call__(self, request: GetOperationsInput) -> OperationsResponse:
        """Return the requested page; raise ParameterError on a bad parameter."""
        from_timestamp = to_unix(request.from_date)
        to_timestamp = to_unix(request.to_date)
        page = parse_page(request.page, MAX_OPERATIONS_PAGE)
        limit = parse_limit(request.limit, self.default_limit)
        if self.adapter is None:
            raise RuntimeError("no operation store configured")

        stored = self.adapter.get_operations(
            from_timestamp,
            to_timestamp,
            page,
            limit,
            request.type,
            request.wallet,
            request.backer,
        )
        return OperationsResponse(
            operations=[_with_time(operation) for operation in stored],
            pagination=build_pagination(page, limit),
        )


def new_get_operations_func(
    default_limit: int,
    adapter: Optional[OperationStore],
    metrics_client: Optional[MetricsClient],
) -> Callable[[GetOperationsInput], OperationsResponse]:
    """Build the operations use case, timed and counted by ``metrics_client``."""
    use_case = GetOperations(default_limit, adapter)
    return monitored(
        "GetOperations", metrics_client, count=lambda result: len(result.operations)
    )(use_case.__call__)