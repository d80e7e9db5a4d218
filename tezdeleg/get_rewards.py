"""Use case: list rewards for a wallet or baker over a time range."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, Sequence

from tezdeleg.get_operations import to_unix
from tezdeleg.monitoring import MetricsClient, monitored
from tezdeleg.records import RewardsResponse


class RewardStore(Protocol):
    """Storage that can return rewards."""

    def get_rewards(
        self, from_timestamp: int, to_timestamp: int, wallet: str, backer: str
    ) -> Sequence[Any]:
        ...


@dataclass(frozen=True)
class GetRewardsInput:
    """Filters for a rewards query; empty strings mean "any"."""

    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    wallet: str = ""
    backer: str = ""


class GetRewards:
    """Fetch the rewards that match a query."""

    def __init__(self, default_limit: int, adapter: Optional[RewardStore]) -> None:
        self.default_limit = default_limit
        self.adapter = adapter

    def __call__(self, request: GetRewardsInput) -> RewardsResponse:
        """Return the rewards matching ``request``."""
        if self.adapter is None:
            raise RuntimeError("no reward store configured")
        rewards = self.adapter.get_rewards(
            to_unix(request.from_date), to_unix(request.to_date), request.wallet, request.backer
        )
        return RewardsResponse(rewards=list(rewards))


def new_get_rewards_func(
    default_limit: int,
    adapter: Optional[RewardStore],
    metrics_client: Optional[MetricsClient],
) -> Callable[[GetRewardsInput], RewardsResponse]:
    """Build the rewards use case, timed and counted by ``metrics_client``."""
    use_case = GetRewards(default_limit, adapter)
    return monitored(
        "GetRewards", metrics_client, count=lambda result: len(result.rewards)
    )(use_case.__call__)