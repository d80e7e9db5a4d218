"""Use case: copy delegation operations from the indexer API into storage."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Optional, Protocol, Sequence

from tezdeleg.monitoring import MetricsClient, monitored
from tezdeleg.records import (
    Account,
    AccountType,
    Delegation,
    StakingPool,
    TzktDelegation,
)

MUTEZ_PER_TEZ = 1_000_000.0
SYNC_TIMEOUT = 30 * 60.0
HISTORICAL_LOG_EVERY = 10_000


class SyncCancelled(Exception):
    """The sync was stopped because its cancel event was set."""


class TzktSource(Protocol):
    """Indexer API that can list delegation operations."""

    def fetch_delegations(self, limit: int, offset: int) -> Sequence[TzktDelegation]:
        ...

    def fetch_delegations_from_level(self, level: int, limit: int) -> Sequence[TzktDelegation]:
        ...


class SyncStore(Protocol):
    """Storage that receives synced accounts, pools and delegations."""

    def get_highest_block_level(self) -> int:
        ...

    def save_accounts(self, accounts: Sequence[Account]) -> None:
        ...

    def save_staking_pools(self, pools: Sequence[StakingPool]) -> None:
        ...

    def save_delegations(self, delegations: Sequence[Delegation]) -> None:
        ...


def _event(cancel: Optional[threading.Event]) -> threading.Event:
    return cancel if cancel is not None else threading.Event()


def _batches(items: Sequence, size: int) -> Iterable[tuple[int, Sequence]]:
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


class SyncDelegations:
    """Sync delegations, first the whole history, then from the highest stored level."""

    def __init__(
        self,
        tzkt_adapter: TzktSource,
        db_adapter: SyncStore,
        logger: Optional[logging.Logger] = None,
        page_pause: float = 0.1,
        batch_pause: float = 0.05,
    ) -> None:
        self.tzkt_adapter = tzkt_adapter
        self.db_adapter = db_adapter
        base = logger if logger is not None else logging.getLogger("tezdeleg")
        self.logger = logging.LoggerAdapter(base, {"usecase": "sync_delegations"})
        self.batch_size_db = 100
        self.batch_size_api_historic = 1000
        self.batch_size_api_incremental = 150
        self.page_pause = page_pause
        self.batch_pause = batch_pause
        self.historical_sync_done = False

    def __call__(self, cancel: Optional[threading.Event] = None) -> None:
        """Run one sync pass; without ``cancel`` the pass stops after thirty minutes."""
        if cancel is None:
            cancel = threading.Event()
            timer = threading.Timer(SYNC_TIMEOUT, cancel.set)
            timer.daemon = True
            timer.start()
            try:
                self._run(cancel)
            finally:
                timer.cancel()
        else:
            self._run(cancel)

    def _run(self, cancel: threading.Event) -> None:
        try:
            highest_level = self.db_adapter.get_highest_block_level()
        except Exception:
            highest_level = 0

        if highest_level == 0:
            self.historical_sync_done = False
            self.logger.info("Resetting historical sync flag because database appears empty")

        if highest_level == 0 or not self.historical_sync_done:
            self.sync_historical(cancel)
        else:
            self.sync_incremental(highest_level, cancel)

    def sync_historical(self, cancel: Optional[threading.Event] = None) -> None:
        """Sync every delegation since the chain started, page by page."""
        cancel = _event(cancel)
        self.logger.info("Starting full historical delegations sync from 2018...")
        offset = 0
        total = 0
        last_level = 0

        while True:
            if cancel.is_set():
                raise SyncCancelled("sync cancelled")

            try:
                delegations = self.tzkt_adapter.fetch_delegations(
                    self.batch_size_api_historic, offset
                )
            except EOFError:
                self.logger.info("Reached end of delegations data")
                break
            except SyncCancelled:
                raise
            except Exception as exc:
                raise RuntimeError(
                    f"error fetching historical delegations (offset {offset}): {exc}"
                ) from exc

            if not delegations:
                break

            last_level = max([last_level, *(d.level for d in delegations)])
            self.process_delegations(delegations, offset, cancel)
            total += len(delegations)

            if offset % HISTORICAL_LOG_EVERY == 0:
                self.logger.info(
                    "Synced %d historical delegations up to level %d", total, last_level
                )

            offset += self.batch_size_api_historic
            time.sleep(self.page_pause)

        self.logger.info("Historical sync completed. Total delegations: %d", total)
        self.historical_sync_done = True

    def sync_incremental(self, level: int, cancel: Optional[threading.Event] = None) -> None:
        """Sync the delegations recorded from block ``level`` on."""
        cancel = _event(cancel)
        self.logger.info("Syncing incremental delegations from level %d", level)
        try:
            delegations = self.tzkt_adapter.fetch_delegations_from_level(
                level, self.batch_size_api_incremental
            )
        except EOFError:
            self.logger.info("Reached end of delegations data")
            return
        except SyncCancelled:
            raise
        except Exception as exc:
            raise RuntimeError(f"error fetching delegations from level {level}: {exc}") from exc

        self.process_delegations(delegations, 0, cancel)

        if len(delegations) >= self.batch_size_api_incremental:
            self.logger.warning(
                "Large number of delegations (%d) detected. "
                "Switching to historical sync mode for subsequent data",
                len(delegations),
            )
            self.historical_sync_done = False

    def process_delegations(
        self,
        delegations: Sequence[TzktDelegation],
        offset: int,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Store the applied delegations and the accounts and bakers they mention."""
        cancel = _event(cancel)
        accounts: dict[str, Account] = {}
        records: list[Delegation] = []

        for operation in delegations:
            if operation.status != "applied":
                continue
            accounts.setdefault(
                operation.sender.address,
                Account(operation.sender.address, operation.sender.alias, AccountType.USER),
            )
            accounts.setdefault(
                operation.delegate.address,
                Account(
                    operation.delegate.address, operation.delegate.alias, AccountType.DELEGATE
                ),
            )
            records.append(
                Delegation(
                    delegator=operation.sender.address,
                    delegate=operation.delegate.address,
                    amount=operation.amount / MUTEZ_PER_TEZ,
                    timestamp=int(operation.timestamp.timestamp()),
                    level=operation.level,
                )
            )

        if accounts:
            try:
                self._save_accounts(list(accounts.values()), offset, cancel)
            except Exception as exc:
                self.logger.warning("Error saving accounts: %s", exc)
            try:
                self._save_staking_pools(list(accounts.values()), offset, cancel)
            except Exception as exc:
                self.logger.warning("Error saving staking pools: %s", exc)

        if records:
            try:
                self._save_delegations(records, offset, cancel)
            except SyncCancelled:
                raise
            except Exception as exc:
                raise RuntimeError(f"error saving delegations: {exc}") from exc
            self.logger.info("Synced %d new delegations (offset: %d)", len(records), offset)
        else:
            self.logger.info("No new delegations to sync")

    def _pause(self, cancel: threading.Event) -> None:
        if cancel.wait(self.batch_pause):
            raise SyncCancelled("sync cancelled")

    def _save_in_batches(
        self,
        kind: str,
        items: Sequence,
        save: Callable[[Sequence], None],
        offset: int,
        cancel: threading.Event,
    ) -> None:
        for start, batch in _batches(items, self.batch_size_db):
            try:
                save(batch)
            except Exception as exc:
                end = start + len(batch) - 1
                raise RuntimeError(
                    f"error saving {kind} batch (offset {offset}, batch {start}-{end}): {exc}"
                ) from exc
            self._pause(cancel)
        self.logger.info("Successfully saved %d %s (offset %d)", len(items), kind, offset)

    def _save_accounts(
        self, accounts: Sequence[Account], offset: int, cancel: threading.Event
    ) -> None:
        self._save_in_batches("accounts", accounts, self.db_adapter.save_accounts, offset, cancel)

    def _save_staking_pools(
        self, accounts: Sequence[Account], offset: int, cancel: threading.Event
    ) -> None:
        pools = [
            StakingPool(address=account.address, name=account.alias, staking_token="XTZ")
            for account in accounts
            if account.type is AccountType.DELEGATE
        ]
        self._save_in_batches(
            "staking pools", pools, self.db_adapter.save_staking_pools, offset, cancel
        )

    def _save_delegations(
        self, delegations: Sequence[Delegation], offset: int, cancel: threading.Event
    ) -> None:
        self._save_in_batches(
            "delegations", delegations, self.db_adapter.save_delegations, offset, cancel
        )


def new_sync_delegations_func(
    tzkt_adapter: TzktSource,
    db_adapter: SyncStore,
    metrics_client: Optional[MetricsClient],
    logger: Optional[logging.Logger],
) -> Callable[..., None]:
    """Build the delegation sync, timed by ``metrics_client``."""
    use_case = SyncDelegations(tzkt_adapter, db_adapter, logger)
    return monitored("SyncDelegations", metrics_client)(use_case.__call__)