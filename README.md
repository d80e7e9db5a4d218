# tezdeleg

The business logic of a Tezos delegation service. It has no dependencies
outside the standard library. The package answers paginated queries for
delegations and operations, and it looks up rewards. It also copies
delegation operations from a TzKT-style indexer into a store of your own.
You pass in the storage, the indexer client and the metrics sink as plain
objects.

## Installation

```
pip install .
pip install ".[test]"   # adds pytest
```

## Querying delegations

```python
from tezdeleg.get_delegations import new_get_delegations_func

get_delegations = new_get_delegations_func(50, store, metrics_client)
response = get_delegations("2", "10", "2024", 0)

for delegation in response.delegations:
    print(delegation.delegator, delegation.amount, delegation.timestamp_time)
print(response.pagination.current_page, response.max_delegation_id)
```

The store must have a method
`get_delegations(page, limit, year, max_delegation_id)` that returns
`tezdeleg.records.Delegation` objects with amounts in tez. A negative
`max_delegation_id` is passed to the store as 0.

Page, limit and year are given as strings, the way they arrive in a query
string. An empty string selects the default: page 1, the configured limit,
and year 0, which means no year filter. Bad input raises
`tezdeleg.params.ParameterError`, a `ValueError`. Bad input is any of these:

- a value that is not an integer;
- a value that is zero or negative;
- a page above 4294967295;
- a limit above 500;
- a year later than the current one.

The response amounts are converted to mutez. `timestamp_time` is an RFC 3339
UTC string such as `2025-01-01T00:00:00Z`. `max_delegation_id` is the highest
`id` on the page. The `pagination` field is a `PaginationInfo`. It sets
`has_prev_page` and `prev_page` when the page is above 1. `has_next_page` is
always `False`.

If the store is `None`, the call raises `RuntimeError` after the parameters
have been checked.

The parsing helpers `parse_page`, `parse_limit`, `parse_year` and
`build_pagination` in `tezdeleg.params` can also be used on their own.

## Querying operations and rewards

```python
from tezdeleg.get_operations import GetOperationsInput, new_get_operations_func
from tezdeleg.get_rewards import GetRewardsInput, new_get_rewards_func

operations = new_get_operations_func(50, store, metrics_client)
page = operations(GetOperationsInput(page="1", limit="20", wallet="tz1...", type="delegation"))

rewards = new_get_rewards_func(50, store, metrics_client)
found = rewards(GetRewardsInput(wallet="tz1...", backer="tz1..."))
```

The store used for operations must have this method:

```
get_operations(from_timestamp, to_timestamp, page, limit, operation_type, wallet, backer)
```

Operations pages are capped at 65535. Returned items may be mappings,
dataclasses or plain objects. Each one must have a `timestamp` in Unix
seconds, and it comes back with a `timestamp_time` string added.

For rewards, the store's `get_rewards(from_timestamp, to_timestamp, wallet,
backer)` is called, and everything it returns is passed back. Rewards are not
paginated.

In both cases a missing date counts as timestamp 0.

## Synchronising delegations

```python
from tezdeleg.logger import LoggerConfig, setup
from tezdeleg.sync_delegations import new_sync_delegations_func

log = setup(LoggerConfig(level="info", format="json"))
sync = new_sync_delegations_func(tzkt_client, store, metrics_client, log)
sync(None)
```

The indexer client must provide:

- `fetch_delegations(limit, offset)`
- `fetch_delegations_from_level(level, limit)`

Both return `tezdeleg.records.TzktDelegation` objects. The store must
provide:

- `get_highest_block_level()`
- `save_accounts(accounts)`
- `save_staking_pools(pools)`
- `save_delegations(delegations)`

The sync runs a historical pass in these cases:

- the store reports level 0;
- reading the level fails;
- the historical pass has not yet finished in this sync object.

The historical pass pages through all delegations, 1000 at a time, until it
gets an empty page or the client raises `EOFError`. After that pass has
finished, each call fetches up to 150 delegations from the highest stored
level. If a full batch of 150 comes back, the next call goes back to a
historical pass.

Only delegations with status `applied` are saved. Senders are stored as user
accounts. Bakers are stored as delegate accounts and as `XTZ` staking pools.
Writes go to the store in batches of 100. If saving accounts or staking pools
fails, a warning is logged and the sync continues. Failures when fetching or
when saving delegations raise `RuntimeError`.

You can pass a `threading.Event` instead of `None` and set it to stop the
sync. The sync then raises `tezdeleg.sync_delegations.SyncCancelled`. With
`None`, the sync stops itself after thirty minutes.

`tezdeleg.sync_jobs` provides `new_sync_operations_func` and
`new_sync_rewards_func`. Both take the same arguments. The jobs they build do
no copying yet: each call only records its timing.

## Metrics

Every use case reports how long it took and any exception it raised to a
`tezdeleg.monitoring.MetricsClient`. The query use cases also report how many
items they returned. The default `MetricsClient` keeps its records in memory:
`operations` is a list of `OperationRecord`, and `delegations_fetched` is a
running count. Subclass it to forward metrics elsewhere, or pass `None` to
turn metrics off. `monitored(operation, metrics_client, count)` wraps any
callable of your own in the same way.

## Logging

`tezdeleg.logger.setup(LoggerConfig(...))` configures and returns the
`tezdeleg` logger. It takes these settings:

- `level`: `debug`, `info`, `warn` or `error`. Any other value gives `info`.
- `format`: `json`, or anything else for text output.
- `enable_file` with `file_path`: when both are set, output goes to that file
  in append mode instead of stdout.
- `graylog`: a `GraylogConfig` with `enabled`, `url`, `port` and `facility`.
  When it is enabled and has a URL, records are also sent as zlib-compressed
  GELF datagrams over UDP through `GelfHandler`. The default port is 12201,
  and large messages are chunked.

`get_hostname()` returns the machine's host name, or `"unknown"` if it cannot
be read.

## What this package does not include

There is no HTTP server or command-line program. The package has no database
or storage implementation and no TzKT API client; you supply these objects.
Operations and rewards are never copied from the indexer.