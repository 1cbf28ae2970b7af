"""
Request and result types for RedisTimeSeries commands.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from redis_ts_client.exceptions import InvalidArgumentError

# Timestamp markers understood by the server.
SERVER_TIME = "*"
MIN_TIMESTAMP = "-"
MAX_TIMESTAMP = "+"

KeyT = Union[str, bytes]
Timestamp = Union[int, datetime, str]


class Sample(NamedTuple):
    """A single (timestamp, value) pair of a series."""
    timestamp: int
    value: float


class DuplicatePolicy(Enum):
    """How the server handles a sample whose timestamp already exists."""
    BLOCK = "BLOCK"
    FIRST = "FIRST"
    LAST = "LAST"
    MIN = "MIN"
    MAX = "MAX"
    SUM = "SUM"


class AggregationType(Enum):
    """Downsampling functions usable in queries and compaction rules."""
    AVG = "avg"
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    RANGE = "range"
    COUNT = "count"
    FIRST = "first"
    LAST = "last"
    STD_P = "std.p"
    STD_S = "std.s"
    VAR_P = "var.p"
    VAR_S = "var.s"
    TWA = "twa"


class Align(Enum):
    """Reference point of aggregation buckets. An int timestamp may be used instead."""
    START = "-"
    END = "+"


class BucketTimestamp(Enum):
    """Which timestamp of a bucket is reported for aggregated samples."""
    LOW = "-"
    HIGH = "+"
    MID = "~"


class FilterKind(Enum):
    """Label predicates supported in multi-series queries."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    HAS_LABEL = "has_label"
    NOT_HAS_LABEL = "not_has_label"
    IN_SET = "in_set"
    NOT_IN_SET = "not_in_set"


def _coerce_enum(enum_cls, value, normalize):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(normalize(str(value)))
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise InvalidArgumentError(
            f"unknown {enum_cls.__name__} {value!r}, expected one of: {choices}"
        ) from None


def _check_non_negative(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentError(f"{name} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True)
class Aggregation:
    """An aggregation function applied over fixed-size time buckets."""
    type: AggregationType
    bucket_duration: int

    def __post_init__(self):
        object.__setattr__(self, "type", _coerce_enum(AggregationType, self.type, str.lower))
        duration = self.bucket_duration
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidArgumentError(
                f"bucket duration must be a positive integer, got {duration!r}"
            )


@dataclass(frozen=True)
class TsOptions:
    """
    Series settings shared by TS.CREATE, TS.ALTER, TS.ADD, TS.INCRBY and TS.DECRBY.

    The uncompressed flag is only honoured by TS.CREATE (and by TS.ADD,
    TS.INCRBY, TS.DECRBY when they create the series). TS.ALTER never sends it.

    Example:
        >>> opts = TsOptions(retention_time=60000).label("sensor", "temperature")
        >>> opts = opts.with_duplicate_policy(DuplicatePolicy.LAST)
    """
    retention_time: Optional[int] = None
    uncompressed: bool = False
    duplicate_policy: Optional[DuplicatePolicy] = None
    chunk_size: Optional[int] = None
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _check_non_negative("retention time", self.retention_time)
        _check_non_negative("chunk size", self.chunk_size)
        if self.duplicate_policy is not None:
            object.__setattr__(
                self, "duplicate_policy",
                _coerce_enum(DuplicatePolicy, self.duplicate_policy, str.upper),
            )
        for name in self.labels:
            if not name:
                raise InvalidArgumentError("label names must not be empty")
        # Private copy of the caller's mapping.
        object.__setattr__(self, "labels", {str(k): str(v) for k, v in self.labels.items()})

    def with_retention(self, retention_time: int) -> "TsOptions":
        return replace(self, retention_time=retention_time)

    def with_uncompressed(self, uncompressed: bool = True) -> "TsOptions":
        return replace(self, uncompressed=uncompressed)

    def with_duplicate_policy(self, policy: DuplicatePolicy) -> "TsOptions":
        return replace(self, duplicate_policy=policy)

    def with_chunk_size(self, chunk_size: int) -> "TsOptions":
        return replace(self, chunk_size=chunk_size)

    def with_labels(self, labels: Mapping[str, str]) -> "TsOptions":
        """Replace all labels. An empty mapping removes the LABELS clause."""
        return replace(self, labels=dict(labels))

    def label(self, name: str, value: str) -> "TsOptions":
        """Add (or overwrite) a single label."""
        labels = dict(self.labels)
        labels[name] = value
        return replace(self, labels=labels)


def _check_label(label: str) -> None:
    if not label:
        raise InvalidArgumentError("filter label must not be empty")
    if "=" in label or "!" in label:
        raise InvalidArgumentError(f"filter label {label!r} must not contain '=' or '!'")


@dataclass(frozen=True)
class Filter:
    """
    A label predicate used by TS.MRANGE, TS.MREVRANGE, TS.MGET and TS.QUERYINDEX.

    Use the classmethods rather than the constructor:
        >>> Filter.equals("region", "eu").to_arg()
        'region=eu'
        >>> Filter.has_label("region").to_arg()
        'region!='
        >>> Filter.in_set("region", ["eu", "us"]).to_arg()
        'region=(eu,us)'
    """
    label: str
    kind: FilterKind
    values: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "kind", _coerce_enum(FilterKind, self.kind, str.lower))
        _check_label(self.label)
        values = tuple(str(v) for v in self.values)
        object.__setattr__(self, "values", values)
        if self.kind in (FilterKind.EQUALS, FilterKind.NOT_EQUALS):
            if len(values) != 1 or not values[0]:
                raise InvalidArgumentError(
                    f"filter on {self.label!r} needs exactly one non-empty value; "
                    "use has_label/not_has_label to test for presence"
                )
        elif self.kind in (FilterKind.IN_SET, FilterKind.NOT_IN_SET):
            if not values:
                raise InvalidArgumentError(f"set filter on {self.label!r} needs at least one value")
            for value in values:
                if not value or any(c in value for c in ",()"):
                    raise InvalidArgumentError(
                        f"set filter value {value!r} must be non-empty and not contain ',', '(' or ')'"
                    )
        elif values:
            raise InvalidArgumentError(f"{self.kind.value} filter takes no values")

    @classmethod
    def equals(cls, label: str, value: str) -> "Filter":
        return cls(label, FilterKind.EQUALS, (value,))

    @classmethod
    def not_equals(cls, label: str, value: str) -> "Filter":
        return cls(label, FilterKind.NOT_EQUALS, (value,))

    @classmethod
    def has_label(cls, label: str) -> "Filter":
        return cls(label, FilterKind.HAS_LABEL)

    @classmethod
    def not_has_label(cls, label: str) -> "Filter":
        return cls(label, FilterKind.NOT_HAS_LABEL)

    @classmethod
    def in_set(cls, label: str, values) -> "Filter":
        return cls(label, FilterKind.IN_SET, tuple(values))

    @classmethod
    def not_in_set(cls, label: str, values) -> "Filter":
        return cls(label, FilterKind.NOT_IN_SET, tuple(values))

    def to_arg(self) -> str:
        """Serialize to the single token the server expects."""
        kind = self.kind
        if kind == FilterKind.EQUALS:
            return f"{self.label}={self.values[0]}"
        if kind == FilterKind.NOT_EQUALS:
            return f"{self.label}!={self.values[0]}"
        if kind == FilterKind.HAS_LABEL:
            return f"{self.label}!="
        if kind == FilterKind.NOT_HAS_LABEL:
            return f"{self.label}="
        members = ",".join(self.values)
        if kind == FilterKind.IN_SET:
            return f"{self.label}=({members})"
        return f"{self.label}!=({members})"


@dataclass(frozen=True)
class FilterOptions:
    """
    A list of label filters plus the WITHLABELS flag.

    Example:
        >>> filters = (
        ...     FilterOptions(with_labels=True)
        ...     .equals("sensor", "temperature")
        ...     .not_in_set("room", ["attic", "garage"])
        ...     .has_label("calibrated")
        ... )
    """
    filters: Tuple[Filter, ...] = ()
    with_labels: bool = False

    def __post_init__(self):
        object.__setattr__(self, "filters", tuple(self.filters))

    def _add(self, filter_: Filter) -> "FilterOptions":
        return replace(self, filters=self.filters + (filter_,))

    def labels(self, with_labels: bool = True) -> "FilterOptions":
        return replace(self, with_labels=with_labels)

    def equals(self, label: str, value: str) -> "FilterOptions":
        return self._add(Filter.equals(label, value))

    def not_equals(self, label: str, value: str) -> "FilterOptions":
        return self._add(Filter.not_equals(label, value))

    def in_set(self, label: str, values) -> "FilterOptions":
        return self._add(Filter.in_set(label, values))

    def not_in_set(self, label: str, values) -> "FilterOptions":
        return self._add(Filter.not_in_set(label, values))

    def has_label(self, label: str) -> "FilterOptions":
        return self._add(Filter.has_label(label))

    def not_has_label(self, label: str) -> "FilterOptions":
        return self._add(Filter.not_has_label(label))

    def to_args(self) -> List[str]:
        return [f.to_arg() for f in self.filters]


@dataclass(frozen=True)
class RangeQuery:
    """
    Bounds and modifiers of a range query.

    `from_timestamp` and `to_timestamp` default to the earliest and latest
    sample. `align`, `bucket_timestamp` and `empty` only take effect together
    with an aggregation and are dropped otherwise.
    """
    from_timestamp: Timestamp = MIN_TIMESTAMP
    to_timestamp: Timestamp = MAX_TIMESTAMP
    latest: bool = False
    filter_by_ts: Tuple[Timestamp, ...] = ()
    filter_by_value: Optional[Tuple[float, float]] = None
    count: Optional[int] = None
    align: Optional[Union[Align, int]] = None
    aggregation: Optional[Aggregation] = None
    bucket_timestamp: Optional[BucketTimestamp] = None
    empty: bool = False

    def __post_init__(self):
        object.__setattr__(self, "filter_by_ts", tuple(self.filter_by_ts))
        _check_non_negative("count", self.count)
        if self.filter_by_value is not None and len(self.filter_by_value) != 2:
            raise InvalidArgumentError("filter_by_value takes a (min, max) pair")


@dataclass
class Rule:
    """A compaction rule as reported by TS.INFO."""
    dest_key: str
    bucket_duration: int
    aggregation: Union[AggregationType, str]


@dataclass
class TsInfo:
    """Metadata about a series, decoded from TS.INFO."""
    total_samples: int
    memory_usage: int
    first_timestamp: int
    last_timestamp: int
    retention_time: int
    chunk_count: int
    labels: Dict[str, str] = field(default_factory=dict)
    rules: List[Rule] = field(default_factory=list)
    chunk_size: Optional[int] = None
    max_samples_per_chunk: Optional[int] = None
    chunk_type: Optional[str] = None
    duplicate_policy: Optional[Union[DuplicatePolicy, str]] = None
    source_key: Optional[str] = None


@dataclass
class MgetEntry:
    """Latest sample of one series returned by TS.MGET."""
    key: str
    labels: Dict[str, str] = field(default_factory=dict)
    sample: Optional[Sample] = None


@dataclass
class MrangeEntry:
    """Samples of one series returned by TS.MRANGE or TS.MREVRANGE."""
    key: str
    labels: Dict[str, str] = field(default_factory=dict)
    samples: List[Sample] = field(default_factory=list)
