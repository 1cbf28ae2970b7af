"""
RedisTimeSeries commands for redis-py

Encodes time series requests (create, add, range and multi-range queries,
compaction rules, label filters) into module commands and decodes the
replies into typed results, on top of an existing redis-py connection:
- TsClient wraps redis.Redis
- AsyncTsClient wraps redis.asyncio.Redis
"""

from redis_ts_client.client import AsyncTsClient, TimeSeriesCommands, TsClient
from redis_ts_client.config import RedisConfig
from redis_ts_client.exceptions import DecodeError, InvalidArgumentError, TsError
from redis_ts_client.types import (
    MAX_TIMESTAMP,
    MIN_TIMESTAMP,
    SERVER_TIME,
    Aggregation,
    AggregationType,
    Align,
    BucketTimestamp,
    DuplicatePolicy,
    Filter,
    FilterKind,
    FilterOptions,
    MgetEntry,
    MrangeEntry,
    RangeQuery,
    Rule,
    Sample,
    TsInfo,
    TsOptions,
)

__version__ = "0.1.0"
__all__ = [
    "TsClient",
    "AsyncTsClient",
    "TimeSeriesCommands",
    "RedisConfig",
    "TsError",
    "DecodeError",
    "InvalidArgumentError",
    "SERVER_TIME",
    "MIN_TIMESTAMP",
    "MAX_TIMESTAMP",
    "Aggregation",
    "AggregationType",
    "Align",
    "BucketTimestamp",
    "DuplicatePolicy",
    "Filter",
    "FilterKind",
    "FilterOptions",
    "MgetEntry",
    "MrangeEntry",
    "RangeQuery",
    "Rule",
    "Sample",
    "TsInfo",
    "TsOptions",
]
