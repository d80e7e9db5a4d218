from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from tezdeleg.get_operations import GetOperations, GetOperationsInput, new_get_operations_func
from tezdeleg.monitoring import MetricsClient
from tezdeleg.params import ParameterError

NEW_YEAR = datetime(2025, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Op:
    id: int
    timestamp: int
    timestamp_time: str = ""


class FakeStore:
    def __init__(self, operations=(), error=None):
        self.operations = list(operations)
        self.error = error
        self.calls = []

    def get_operations(self, from_ts, to_ts, page, limit, op_type, wallet, backer):
        self.calls.append((from_ts, to_ts, page, limit, op_type, wallet, backer))
        if self.error is not None:
            raise self.error
        return list(self.operations)


def test_formats_operation_times():
    store = FakeStore([Op(1, int(NEW_YEAR.timestamp()))])
    got = GetOperations(50, store)(GetOperationsInput(page="1", limit="10"))
    assert got.operations[0].timestamp_time == "2025-01-01T00:00:00Z"
    assert got.operations[0].id == 1


def test_mapping_operations_are_supported():
    store = FakeStore([{"id": 3, "timestamp": int(NEW_YEAR.timestamp())}])
    got = GetOperations(50, store)(GetOperationsInput())
    assert got.operations[0]["timestamp_time"] == "2025-01-01T00:00:00Z"
    assert got.operations[0]["id"] == 3


def test_filters_and_dates_are_passed_to_store():
    later = datetime(2025, 3, 1, tzinfo=timezone.utc)
    store = FakeStore()
    request = GetOperationsInput(
        from_date=NEW_YEAR, to_date=later, page="2", limit="20",
        wallet="tz1wallet", backer="tz1backer", type="delegation",
    )
    GetOperations(50, store)(request)
    from_ts, to_ts, page, limit, op_type, wallet, backer = store.calls[0]
    assert datetime.fromtimestamp(from_ts, tz=timezone.utc) == NEW_YEAR
    assert datetime.fromtimestamp(to_ts, tz=timezone.utc) == later
    assert (page, limit, op_type, wallet, backer) == (2, 20, "delegation", "tz1wallet", "tz1backer")


def test_missing_dates_and_defaults():
    store = FakeStore()
    got = GetOperations(50, store)(GetOperationsInput())
    assert store.calls == [(0, 0, 1, 50, "", "", "")]
    assert got.pagination.current_page == 1
    assert got.pagination.per_page == 50
    assert got.pagination.has_prev_page is False


def test_pagination_for_later_page():
    got = GetOperations(50, FakeStore())(GetOperationsInput(page="3", limit="10"))
    assert got.pagination.has_prev_page is True
    assert got.pagination.prev_page == 2
    assert got.pagination.current_page == 3


def test_largest_page_accepted():
    store = FakeStore()
    GetOperations(50, store)(GetOperationsInput(page="65535"))
    assert store.calls[0][2] == 65535


@pytest.mark.parametrize(
    "page, limit",
    [("65536", ""), ("0", ""), ("x", ""), ("", "501"), ("", "0"), ("", "abc")],
)
def test_invalid_parameters(page, limit):
    store = FakeStore()
    with pytest.raises(ParameterError):
        GetOperations(50, store)(GetOperationsInput(page=page, limit=limit))
    assert store.calls == []


def test_store_error_propagates():
    with pytest.raises(RuntimeError, match="database error"):
        GetOperations(50, FakeStore(error=RuntimeError("database error")))(GetOperationsInput())


def test_factory_records_metrics():
    metrics = MetricsClient()
    func = new_get_operations_func(50, FakeStore([Op(1, 0), Op(2, 0)]), metrics)
    got = func(GetOperationsInput())
    assert len(got.operations) == 2
    assert metrics.delegations_fetched == 2
    assert metrics.operations[0].operation == "GetOperations"
    assert metrics.operations[0].error is None