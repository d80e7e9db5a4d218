"""Use case: list stored delegations page by page, optionally for one year."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Sequence

from tezdeleg.monitoring import MetricsClient, monitored
from tezdeleg.params import build_pagination, parse_limit, parse_page, parse_year
from tezdeleg.records import Delegation, DelegationsResponse

MUTEZ_PER_TEZ = 1_000_000.0


class DelegationStore(Protocol):
    """Storage that can return a page of delegations."""

    def get_delegations(
        self, page: int, limit: int, year: int, max_delegation_id: int
    ) -> Sequence[Delegation]:
        ...


def format_timestamp(timestamp: int) -> str:
    """Format Unix seconds as an RFC 3339 UTC time."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GetDelegations:
    """Fetch a page of delegations, with amounts reported in mutez."""

    def __init__(self, default_limit: int, adapter: Optional[DelegationStore]) -> None:
        self.default_limit = default_limit
        self.adapter = adapter

    def __call__(
        self, page: str = "", limit: str = "", year: str = "", max_delegation_id: int = 0
    ) -> DelegationsResponse:
        """Return the requested page; raise ParameterError on a bad parameter."""
        page_number = parse_page(page)
        page_size = parse_limit(limit, self.default_limit)
        year_number = parse_year(year)
        if self.adapter is None:
            raise RuntimeError("no delegation store configured")

        stored = self.adapter.get_delegations(
            page_number, page_size, year_number, max(max_delegation_id, 0)
        )
        delegations = [
            dataclasses.replace(
                delegation,
                timestamp_time=format_timestamp(delegation.timestamp),
                amount=delegation.amount * MUTEZ_PER_TEZ,
            )
            for delegation in stored
        ]
        highest_id = max((delegation.id for delegation in delegations), default=0)

        return DelegationsResponse(
            delegations=delegations,
            pagination=build_pagination(page_number, page_size),
            max_delegation_id=max(highest_id, 0),
        )


def new_get_delegations_func(
    default_limit: int,
    adapter: Optional[DelegationStore],
    metrics_client: Optional[MetricsClient],
) -> Callable[..., DelegationsResponse]:
    """Build the delegations use case, timed and counted by ``metrics_client``."""
    use_case = GetDelegations(default_limit, adapter)
    return monitored(
        "GetDelegations", metrics_client, count=lambda result: len(result.delegations)
    )(use_case.__call__)