"""
Command builders for the RedisTimeSeries module.

Every builder is a pure function returning the full token list of one
command, command name first, ready to be passed to a redis client's
``execute_command(*args)``. Optional clauses are emitted only when set and
always in the same order.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from redis_ts_client.exceptions import InvalidArgumentError
from redis_ts_client.types import (
    MAX_TIMESTAMP,
    MIN_TIMESTAMP,
    SERVER_TIME,
    Aggregation,
    Align,
    DuplicatePolicy,
    FilterOptions,
    KeyT,
    RangeQuery,
    Sample,
    Timestamp,
    TsOptions,
)

ADD_CMD = "TS.ADD"
ALTER_CMD = "TS.ALTER"
CREATE_CMD = "TS.CREATE"
CREATERULE_CMD = "TS.CREATERULE"
DECRBY_CMD = "TS.DECRBY"
DEL_CMD = "TS.DEL"
DELETERULE_CMD = "TS.DELETERULE"
GET_CMD = "TS.GET"
INCRBY_CMD = "TS.INCRBY"
INFO_CMD = "TS.INFO"
MADD_CMD = "TS.MADD"
MGET_CMD = "TS.MGET"
MRANGE_CMD = "TS.MRANGE"
MREVRANGE_CMD = "TS.MREVRANGE"
QUERYINDEX_CMD = "TS.QUERYINDEX"
RANGE_CMD = "TS.RANGE"
REVRANGE_CMD = "TS.REVRANGE"

_TIMESTAMP_MARKERS = (SERVER_TIME, MIN_TIMESTAMP, MAX_TIMESTAMP)


def timestamp_arg(ts: Timestamp) -> str:
    """Render a timestamp: int millis, a datetime, or one of '*', '-', '+'."""
    if isinstance(ts, datetime):
        return str(int(ts.timestamp() * 1000))
    if isinstance(ts, bool):
        raise InvalidArgumentError(f"invalid timestamp {ts!r}")
    if isinstance(ts, int):
        if ts < 0:
            raise InvalidArgumentError(f"timestamp must not be negative, got {ts}")
        return str(ts)
    if isinstance(ts, str) and (ts in _TIMESTAMP_MARKERS or ts.isdigit()):
        return ts
    raise InvalidArgumentError(f"invalid timestamp {ts!r}")


def number_arg(value: Union[int, float, str]) -> str:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"invalid numeric value {value!r}")
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return value
    raise InvalidArgumentError(f"invalid numeric value {value!r}")


def _policy_arg(policy: Union[DuplicatePolicy, str]) -> str:
    if isinstance(policy, DuplicatePolicy):
        return policy.value
    return str(policy).upper()


def options_args(options: Optional[TsOptions], allow_uncompressed: bool = True) -> List[str]:
    """RETENTION, UNCOMPRESSED, DUPLICATE_POLICY, CHUNK_SIZE, LABELS clauses."""
    if options is None:
        return []
    args: List[str] = []
    if options.retention_time is not None:
        args.extend(["RETENTION", str(options.retention_time)])
    if options.uncompressed and allow_uncompressed:
        args.append("UNCOMPRESSED")
    if options.duplicate_policy is not None:
        args.extend(["DUPLICATE_POLICY", _policy_arg(options.duplicate_policy)])
    if options.chunk_size is not None:
        args.extend(["CHUNK_SIZE", str(options.chunk_size)])
    if options.labels:
        args.append("LABELS")
        for name, value in options.labels.items():
            args.extend([name, value])
    return args


def aggregation_args(aggregation: Aggregation) -> List[str]:
    return ["AGGREGATION", aggregation.type.value, str(aggregation.bucket_duration)]


def _align_arg(align: Union[Align, int]) -> str:
    if isinstance(align, Align):
        return align.value
    return timestamp_arg(align)


def _range_clauses(query: RangeQuery, with_labels: bool = False) -> List[str]:
    args = [timestamp_arg(query.from_timestamp), timestamp_arg(query.to_timestamp)]
    if query.latest:
        args.append("LATEST")
    if query.filter_by_ts:
        args.append("FILTER_BY_TS")
        args.extend(timestamp_arg(ts) for ts in query.filter_by_ts)
    if query.filter_by_value is not None:
        low, high = query.filter_by_value
        args.extend(["FILTER_BY_VALUE", number_arg(low), number_arg(high)])
    if with_labels:
        args.append("WITHLABELS")
    if query.count is not None:
        args.extend(["COUNT", str(query.count)])
    if query.aggregation is not None:
        if query.align is not None:
            args.extend(["ALIGN", _align_arg(query.align)])
        args.extend(aggregation_args(query.aggregation))
        if query.bucket_timestamp is not None:
            args.extend(["BUCKETTIMESTAMP", query.bucket_timestamp.value])
        if query.empty:
            args.append("EMPTY")
    return args


def _filter_args(filters: FilterOptions) -> List[str]:
    if not filters.filters:
        raise InvalidArgumentError("at least one filter is required")
    return filters.to_args()


def create_args(key: KeyT, options: Optional[TsOptions] = None) -> list:
    return [CREATE_CMD, key, *options_args(options)]


def alter_args(key: KeyT, options: TsOptions) -> list:
    return [ALTER_CMD, key, *options_args(options, allow_uncompressed=False)]


def add_args(
    key: KeyT,
    timestamp: Timestamp,
    value: Union[int, float, str],
    options: Optional[TsOptions] = None,
    on_duplicate: Optional[Union[DuplicatePolicy, str]] = None,
) -> list:
    args = [ADD_CMD, key, timestamp_arg(timestamp), number_arg(value), *options_args(options)]
    if on_duplicate is not None:
        args.extend(["ON_DUPLICATE", _policy_arg(on_duplicate)])
    return args


def madd_args(items: Iterable[Union[Tuple[KeyT, Timestamp, float], Tuple[KeyT, Sample]]]) -> list:
    """Items are (key, timestamp, value) triples or (key, Sample) pairs."""
    args: list = [MADD_CMD]
    for item in items:
        try:
            if len(item) == 2:
                key, (timestamp, value) = item
            elif len(item) == 3:
                key, timestamp, value = item
            else:
                raise ValueError(item)
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"invalid TS.MADD item {item!r}") from None
        args.extend([key, timestamp_arg(timestamp), number_arg(value)])
    if len(args) == 1:
        raise InvalidArgumentError("TS.MADD needs at least one sample")
    return args


def _counter_args(
    command: str,
    key: KeyT,
    value: Union[int, float, str],
    timestamp: Optional[Timestamp],
    options: Optional[TsOptions],
) -> list:
    args = [command, key, number_arg(value)]
    if timestamp is not None:
        args.extend(["TIMESTAMP", timestamp_arg(timestamp)])
    args.extend(options_args(options))
    return args


def incrby_args(key, value, timestamp=None, options=None) -> list:
    return _counter_args(INCRBY_CMD, key, value, timestamp, options)


def decrby_args(key, value, timestamp=None, options=None) -> list:
    return _counter_args(DECRBY_CMD, key, value, timestamp, options)


def createrule_args(
    source_key: KeyT,
    dest_key: KeyT,
    aggregation: Aggregation,
    align_timestamp: Optional[int] = None,
) -> list:
    args = [CREATERULE_CMD, source_key, dest_key, *aggregation_args(aggregation)]
    if align_timestamp is not None:
        args.append(timestamp_arg(align_timestamp))
    return args


def deleterule_args(source_key: KeyT, dest_key: KeyT) -> list:
    return [DELETERULE_CMD, source_key, dest_key]


def delete_args(key: KeyT, from_timestamp: Timestamp, to_timestamp: Timestamp) -> list:
    return [DEL_CMD, key, timestamp_arg(from_timestamp), timestamp_arg(to_timestamp)]


def range_args(key: KeyT, query: Optional[RangeQuery] = None, reverse: bool = False) -> list:
    command = REVRANGE_CMD if reverse else RANGE_CMD
    return [command, key, *_range_clauses(query or RangeQuery())]


def mrange_args(
    query: Optional[RangeQuery], filters: FilterOptions, reverse: bool = False
) -> list:
    command = MREVRANGE_CMD if reverse else MRANGE_CMD
    clauses = _range_clauses(query or RangeQuery(), with_labels=filters.with_labels)
    return [command, *clauses, "FILTER", *_filter_args(filters)]


def get_args(key: KeyT, latest: bool = False) -> list:
    args = [GET_CMD, key]
    if latest:
        args.append("LATEST")
    return args


def mget_args(filters: FilterOptions, latest: bool = False) -> list:
    args = [MGET_CMD]
    if latest:
        args.append("LATEST")
    if filters.with_labels:
        args.append("WITHLABELS")
    args.append("FILTER")
    args.extend(_filter_args(filters))
    return args


def info_args(key: KeyT) -> list:
    return [INFO_CMD, key]


def queryindex_args(filters: Union[FilterOptions, Sequence]) -> list:
    """TS.QUERYINDEX takes bare filter expressions; WITHLABELS does not apply."""
    if not isinstance(filters, FilterOptions):
        filters = FilterOptions(tuple(filters))
    return [QUERYINDEX_CMD, *_filter_args(filters)]
