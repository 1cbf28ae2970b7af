"""
Time series clients layered onto an existing redis-py connection.

`TsClient` wraps a blocking ``redis.Redis`` and `AsyncTsClient` wraps a
``redis.asyncio.Redis``. Both borrow the connection: each call builds the
command tokens, hands them to the connection's ``execute_command`` and
decodes the raw reply. Errors raised by redis-py propagate unchanged.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import redis
import redis.asyncio

from redis_ts_client import commands, reply
from redis_ts_client.config import RedisConfig
from redis_ts_client.exceptions import DecodeError
from redis_ts_client.types import (
    MAX_TIMESTAMP,
    MIN_TIMESTAMP,
    SERVER_TIME,
    Aggregation,
    DuplicatePolicy,
    FilterOptions,
    KeyT,
    MgetEntry,
    MrangeEntry,
    RangeQuery,
    Sample,
    Timestamp,
    TsInfo,
    TsOptions,
)

logger = logging.getLogger(__name__)

Decoder = Callable[[Any, str], Any]


def _decode(args: list, raw: Any, decoder: Decoder) -> Any:
    try:
        return decoder(raw, args[0])
    except DecodeError as e:
        logger.warning("Could not decode %s reply: %s", args[0], e)
        raise


# Commands whose second token is not a series key.
_MULTI_KEY_COMMANDS = frozenset({
    commands.MADD_CMD,
    commands.MGET_CMD,
    commands.MRANGE_CMD,
    commands.MREVRANGE_CMD,
    commands.QUERYINDEX_CMD,
})


def _log_command(args: list) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        if args[0] in _MULTI_KEY_COMMANDS or len(args) < 2:
            logger.debug("Issuing %s (%d args)", args[0], len(args) - 1)
        else:
            logger.debug("Issuing %s %s (%d args)", args[0], args[1], len(args) - 1)


def _range_query(
    query: Optional[RangeQuery],
    from_timestamp: Timestamp,
    to_timestamp: Timestamp,
    count: Optional[int],
    aggregation: Optional[Aggregation],
) -> RangeQuery:
    if query is not None:
        return query
    return RangeQuery(
        from_timestamp=from_timestamp,
        to_timestamp=to_timestamp,
        count=count,
        aggregation=aggregation,
    )


def _with_labels(filters: FilterOptions, with_labels: Optional[bool]) -> FilterOptions:
    if with_labels is None:
        return filters
    return filters.labels(with_labels)


class TimeSeriesCommands(ABC):
    """
    RedisTimeSeries operations shared by the blocking and the asyncio client.

    Subclasses provide `_execute(args, decoder)`. For the asyncio client it
    is a coroutine, so every method below returns an awaitable there.
    """

    @abstractmethod
    def _execute(self, args: list, decoder: Decoder) -> Any:
        ...

    def ts_create(self, key: KeyT, options: Optional[TsOptions] = None) -> bool:
        """
        Create a new time series.

        Args:
            key: Time series key name
            options: Retention, encoding, duplicate policy, chunk size and labels

        Example:
            >>> client.ts_create("sensor:temp", TsOptions(retention_time=86400000).label("room", "1"))
        """
        return self._execute(commands.create_args(key, options), reply.decode_ok)

    def ts_alter(self, key: KeyT, options: TsOptions) -> bool:
        """Update retention, duplicate policy, chunk size or labels of an existing series."""
        return self._execute(commands.alter_args(key, options), reply.decode_ok)

    def ts_add(
        self,
        key: KeyT,
        timestamp: Timestamp,
        value: float,
        options: Optional[TsOptions] = None,
        on_duplicate: Optional[Union[DuplicatePolicy, str]] = None,
    ) -> int:
        """
        Append a sample. The series is created with `options` if it does not exist.

        Args:
            key: Time series key name
            timestamp: Unix timestamp in ms, a datetime, or SERVER_TIME ("*")
            value: Sample value
            options: Settings used when the series is created by this call
            on_duplicate: Override the duplicate policy for this sample only

        Returns:
            Timestamp of the added sample
        """
        args = commands.add_args(key, timestamp, value, options, on_duplicate)
        return self._execute(args, reply.decode_timestamp)

    def ts_add_now(self, key: KeyT, value: float, options: Optional[TsOptions] = None) -> int:
        """Append a sample stamped with the server clock."""
        return self.ts_add(key, SERVER_TIME, value, options)

    def ts_madd(self, items: Iterable) -> List[Union[int, Exception]]:
        """
        Append samples to one or more series.

        Items are (key, timestamp, value) triples or (key, Sample) pairs. The
        result holds one timestamp per item, or the server error for an item
        that was rejected.
        """
        return self._execute(commands.madd_args(items), reply.decode_madd)

    def ts_incrby(
        self,
        key: KeyT,
        value: float,
        timestamp: Optional[Timestamp] = None,
        options: Optional[TsOptions] = None,
    ) -> int:
        """Increase the latest value by `value`, creating the series with `options` if needed."""
        args = commands.incrby_args(key, value, timestamp, options)
        return self._execute(args, reply.decode_timestamp)

    def ts_decrby(
        self,
        key: KeyT,
        value: float,
        timestamp: Optional[Timestamp] = None,
        options: Optional[TsOptions] = None,
    ) -> int:
        """Decrease the latest value by `value`, creating the series with `options` if needed."""
        args = commands.decrby_args(key, value, timestamp, options)
        return self._execute(args, reply.decode_timestamp)

    def ts_createrule(
        self,
        source_key: KeyT,
        dest_key: KeyT,
        aggregation: Aggregation,
        align_timestamp: Optional[int] = None,
    ) -> bool:
        """
        Create a compaction rule from `source_key` into `dest_key`.

        Example:
            >>> client.ts_createrule("sensor:temp", "sensor:temp:hourly",
            ...                      Aggregation(AggregationType.AVG, 3600000))
        """
        args = commands.createrule_args(source_key, dest_key, aggregation, align_timestamp)
        return self._execute(args, reply.decode_ok)

    def ts_deleterule(self, source_key: KeyT, dest_key: KeyT) -> bool:
        return self._execute(commands.deleterule_args(source_key, dest_key), reply.decode_ok)

    def ts_del(self, key: KeyT, from_timestamp: Timestamp, to_timestamp: Timestamp) -> int:
        """Delete samples between two timestamps (inclusive). Returns the number removed."""
        args = commands.delete_args(key, from_timestamp, to_timestamp)
        return self._execute(args, reply.decode_integer)

    def ts_range(
        self,
        key: KeyT,
        from_timestamp: Timestamp = MIN_TIMESTAMP,
        to_timestamp: Timestamp = MAX_TIMESTAMP,
        count: Optional[int] = None,
        aggregation: Optional[Aggregation] = None,
        query: Optional[RangeQuery] = None,
    ) -> List[Sample]:
        """
        Query samples of one series in ascending order.

        Args:
            key: Time series key name
            from_timestamp: Start timestamp (or "-" for the earliest sample)
            to_timestamp: End timestamp (or "+" for the latest sample)
            count: Maximum number of samples to return
            aggregation: Aggregation type and bucket duration
            query: Full query; when given, the four arguments above are ignored

        Example:
            >>> client.ts_range("sensor:temp", 0, 1000000, aggregation=Aggregation(AggregationType.AVG, 60000))
        """
        q = _range_query(query, from_timestamp, to_timestamp, count, aggregation)
        return self._execute(commands.range_args(key, q), reply.decode_samples)

    def ts_revrange(
        self,
        key: KeyT,
        from_timestamp: Timestamp = MIN_TIMESTAMP,
        to_timestamp: Timestamp = MAX_TIMESTAMP,
        count: Optional[int] = None,
        aggregation: Optional[Aggregation] = None,
        query: Optional[RangeQuery] = None,
    ) -> List[Sample]:
        """Same as ts_range, newest sample first."""
        q = _range_query(query, from_timestamp, to_timestamp, count, aggregation)
        return self._execute(commands.range_args(key, q, reverse=True), reply.decode_samples)

    def ts_mrange(
        self,
        filters: FilterOptions,
        from_timestamp: Timestamp = MIN_TIMESTAMP,
        to_timestamp: Timestamp = MAX_TIMESTAMP,
        count: Optional[int] = None,
        aggregation: Optional[Aggregation] = None,
        query: Optional[RangeQuery] = None,
        with_labels: Optional[bool] = None,
    ) -> Dict[str, MrangeEntry]:
        """
        Query a range from every series matching `filters`.

        Returns:
            Mapping of series key to its labels and samples, in server order.
            Labels are empty unless WITHLABELS was requested.

        Example:
            >>> client.ts_mrange(FilterOptions().equals("type", "temperature"), with_labels=True)
        """
        q = _range_query(query, from_timestamp, to_timestamp, count, aggregation)
        args = commands.mrange_args(q, _with_labels(filters, with_labels))
        return self._execute(args, reply.decode_mrange)

    def ts_mrevrange(
        self,
        filters: FilterOptions,
        from_timestamp: Timestamp = MIN_TIMESTAMP,
        to_timestamp: Timestamp = MAX_TIMESTAMP,
        count: Optional[int] = None,
        aggregation: Optional[Aggregation] = None,
        query: Optional[RangeQuery] = None,
        with_labels: Optional[bool] = None,
    ) -> Dict[str, MrangeEntry]:
        """Same as ts_mrange, newest sample first within each series."""
        q = _range_query(query, from_timestamp, to_timestamp, count, aggregation)
        args = commands.mrange_args(q, _with_labels(filters, with_labels), reverse=True)
        return self._execute(args, reply.decode_mrange)

    def ts_get(self, key: KeyT, latest: bool = False) -> Optional[Sample]:
        """
        Last sample of a series, or None if it holds no samples.

        A missing key is a server error and is raised, not mapped to None.
        """
        return self._execute(commands.get_args(key, latest), reply.decode_get)

    def ts_mget(
        self,
        filters: FilterOptions,
        with_labels: Optional[bool] = None,
        latest: bool = False,
    ) -> Dict[str, MgetEntry]:
        """Last sample of every series matching `filters`."""
        args = commands.mget_args(_with_labels(filters, with_labels), latest)
        return self._execute(args, reply.decode_mget)

    def ts_info(self, key: KeyT) -> TsInfo:
        """
        Get metadata about a time series.

        Example:
            >>> info = client.ts_info("sensor:temp")
            >>> print(info.total_samples)
        """
        return self._execute(commands.info_args(key), reply.decode_info)

    def ts_queryindex(self, filters: FilterOptions) -> List[str]:
        """Keys of all series matching `filters`."""
        return self._execute(commands.queryindex_args(filters), reply.decode_keys)


class TsClient(TimeSeriesCommands):
    """
    Blocking time series client.

    Example:
        >>> client = TsClient(redis.Redis(host="127.0.0.1", port=6379))
        >>> client.ts_add("sensor:temp", "*", 23.5)
        >>> client.ts_range("sensor:temp")
    """

    def __init__(self, connection: "redis.Redis", owns_connection: bool = False):
        """Wrap an existing connection. It is only closed here if `owns_connection`."""
        self._connection = connection
        self._owns_connection = owns_connection

    @classmethod
    def redis(
        cls,
        host: str = "127.0.0.1",
        port: int = 6379,
        password: Optional[str] = None,
        db: int = 0,
        timeout: int = 30,
        **kwargs,
    ) -> "TsClient":
        """Create a client owning a new redis.Redis connection."""
        config = RedisConfig(host=host, port=port, password=password, db=db, timeout=timeout, **kwargs)
        return cls(redis.Redis(**config.client_kwargs()), owns_connection=True)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "TsClient":
        return cls(redis.Redis.from_url(url, **kwargs), owns_connection=True)

    @property
    def connection(self) -> "redis.Redis":
        return self._connection

    def _execute(self, args: list, decoder: Decoder) -> Any:
        _log_command(args)
        raw = self._connection.execute_command(*args)
        return _decode(args, raw, decoder)

    def close(self) -> None:
        if self._owns_connection:
            self._connection.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncTsClient(TimeSeriesCommands):
    """
    asyncio time series client. Every ts_* method returns a coroutine.

    Example:
        >>> client = AsyncTsClient(redis.asyncio.Redis())
        >>> await client.ts_add("sensor:temp", "*", 23.5)
    """

    def __init__(self, connection: "redis.asyncio.Redis", owns_connection: bool = False):
        self._connection = connection
        self._owns_connection = owns_connection

    @classmethod
    def redis(
        cls,
        host: str = "127.0.0.1",
        port: int = 6379,
        password: Optional[str] = None,
        db: int = 0,
        timeout: int = 30,
        **kwargs,
    ) -> "AsyncTsClient":
        """Create a client owning a new redis.asyncio.Redis connection."""
        config = RedisConfig(host=host, port=port, password=password, db=db, timeout=timeout, **kwargs)
        return cls(redis.asyncio.Redis(**config.client_kwargs()), owns_connection=True)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "AsyncTsClient":
        return cls(redis.asyncio.Redis.from_url(url, **kwargs), owns_connection=True)

    @property
    def connection(self) -> "redis.asyncio.Redis":
        return self._connection

    async def _execute(self, args: list, decoder: Decoder) -> Any:
        _log_command(args)
        raw = await self._connection.execute_command(*args)
        return _decode(args, raw, decoder)

    async def close(self) -> None:
        if self._owns_connection:
            await self._connection.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
