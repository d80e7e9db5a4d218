from datetime import datetime, timezone

import pytest

from tezdeleg.get_delegations import GetDelegations, new_get_delegations_func
from tezdeleg.monitoring import MetricsClient
from tezdeleg.params import ParameterError
from tezdeleg.records import Delegation, DelegationsResponse, PaginationInfo

NEW_YEAR_2025 = int(datetime(2025, 1, 1, tzinfo=timezone.utc).timestamp())


class FakeStore:
    def __init__(self, delegations=(), error=None):
        self.delegations = list(delegations)
        self.error = error
        self.calls = []

    def get_delegations(self, page, limit, year, max_delegation_id):
        self.calls.append((page, limit, year, max_delegation_id))
        if self.error is not None:
            raise self.error
        return list(self.delegations)


def _delegation(id_):
    return Delegation(
        id=id_,
        delegator="tz1...",
        delegate="tz2...",
        amount=100.0,
        timestamp=NEW_YEAR_2025,
        level=1000,
    )


def test_nominal():
    store = FakeStore([_delegation(1)])
    got = GetDelegations(50, store)("1", "10", "2025", 0)
    assert store.calls == [(1, 10, 2025, 0)]
    assert got == DelegationsResponse(
        delegations=[
            Delegation(
                id=1,
                delegator="tz1...",
                delegate="tz2...",
                amount=100000000.0,
                timestamp=NEW_YEAR_2025,
                timestamp_time="2025-01-01T00:00:00Z",
                level=1000,
            )
        ],
        pagination=PaginationInfo(current_page=1, per_page=10),
        max_delegation_id=1,
    )


def test_with_max_delegation_id():
    store = FakeStore([_delegation(50)])
    got = GetDelegations(50, store)("2", "10", "2025", 100)
    assert store.calls == [(2, 10, 2025, 100)]
    assert got.max_delegation_id == 50
    assert got.delegations[0].amount == 100000000.0
    assert got.delegations[0].timestamp_time == "2025-01-01T00:00:00Z"
    assert got.pagination == PaginationInfo(
        current_page=2, per_page=10, has_prev_page=True, prev_page=1
    )


def test_negative_max_delegation_id_is_passed_as_zero():
    store = FakeStore()
    GetDelegations(50, store)("1", "10", "", -5)
    assert store.calls == [(1, 10, 0, 0)]


def test_empty_page_and_limit_use_defaults():
    store = FakeStore()
    got = GetDelegations(50, store)("", "", "", 0)
    assert store.calls == [(1, 50, 0, 0)]
    assert got.delegations == []
    assert got.max_delegation_id == 0
    assert got.pagination == PaginationInfo(current_page=1, per_page=50)


@pytest.mark.parametrize(
    "page, limit, year",
    [
        ("invalid", "10", ""),
        ("1", "invalid", ""),
        ("0", "10", ""),
        ("-1", "10", ""),
        ("4294967296", "10", ""),
        ("1", "0", ""),
        ("1", "-10", ""),
        ("1", "70000", ""),
        ("1", "10", "invalid"),
        ("1", "10", "-2025"),
        ("1", "10", "0"),
        ("1", "10", str(datetime.now().year + 1)),
    ],
)
def test_invalid_parameters_raise_before_querying(page, limit, year):
    store = FakeStore()
    with pytest.raises(ParameterError):
        GetDelegations(50, store)(page, limit, year, 0)
    assert store.calls == []


def test_database_error_propagates():
    store = FakeStore(error=RuntimeError("database error"))
    with pytest.raises(RuntimeError, match="database error"):
        GetDelegations(50, store)("1", "10", "", 0)


def test_factory_records_metrics_on_success():
    metrics = MetricsClient()
    func = new_get_delegations_func(50, FakeStore([_delegation(1), _delegation(2)]), metrics)
    got = func("1", "10", "2025", 0)
    assert got.max_delegation_id == 2
    assert metrics.delegations_fetched == 2
    assert [(r.operation, r.component, r.error) for r in metrics.operations] == [
        ("GetDelegations", "UseCase", None)
    ]


def test_factory_records_error():
    metrics = MetricsClient()
    failure = RuntimeError("error")
    func = new_get_delegations_func(50, FakeStore(error=failure), metrics)
    with pytest.raises(RuntimeError):
        func("1", "10", "2025", 0)
    assert metrics.operations[0].error is failure
    assert metrics.delegations_fetched == 0


def test_factory_without_metrics_client():
    func = new_get_delegations_func(50, FakeStore([_delegation(7)]), None)
    got = func("1", "10", "2025", 0)
    assert got.max_delegation_id == 7
    assert len(got.delegations) == 1