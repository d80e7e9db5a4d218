"""Plain data records shared by the delegation service use cases."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class AccountType(enum.Enum):
    """Role of an account seen in a delegation operation."""

    USER = "user"
    DELEGATE = "delegate"


@dataclass(frozen=True)
class Delegation:
    """A stored delegation; ``amount`` is in tez, ``timestamp`` in Unix seconds."""

    delegator: str
    delegate: str
    amount: float
    timestamp: int
    level: int
    id: int = 0
    timestamp_time: str = ""


@dataclass(frozen=True)
class PaginationInfo:
    """Pagination details returned alongside a page of results."""

    current_page: int
    per_page: int
    has_prev_page: bool = False
    has_next_page: bool = False
    prev_page: int = 0
    next_page: int = 0


@dataclass(frozen=True)
class DelegationsResponse:
    """A page of delegations with the highest delegation id it contains."""

    delegations: list[Delegation] = field(default_factory=list)
    pagination: PaginationInfo = field(default_factory=lambda: PaginationInfo(1, 0))
    max_delegation_id: int = 0


@dataclass(frozen=True)
class OperationsResponse:
    """A page of operations."""

    operations: list = field(default_factory=list)
    pagination: PaginationInfo = field(default_factory=lambda: PaginationInfo(1, 0))


@dataclass(frozen=True)
class RewardsResponse:
    """Rewards matching a query."""

    rewards: list = field(default_factory=list)


@dataclass(frozen=True)
class Account:
    """A known account with its alias and role."""

    address: str
    alias: str
    type: AccountType


@dataclass(frozen=True)
class StakingPool:
    """A baker seen as a staking pool."""

    address: str
    name: str
    staking_token: str = "XTZ"


@dataclass(frozen=True)
class TzktAddress:
    """An address as reported by the indexer API."""

    address: str
    alias: str = ""


@dataclass(frozen=True)
class TzktDelegation:
    """A delegation operation as reported by the indexer API; ``amount`` is in mutez."""

    status: str
    level: int
    timestamp: datetime
    sender: TzktAddress
    delegate: TzktAddress
    amount: int