"""
Reply decoders for the RedisTimeSeries module.

Raw replies come straight from redis-py's ``execute_command``: ``int``,
``bytes`` (or ``str`` with ``decode_responses=True``), ``list``, ``None``,
or an exception instance inside an array. Each decoder checks the shape it
expects and raises DecodeError on anything else; nothing is coerced
implicitly.
"""

import re
from typing import Any, Dict, List, Optional, Union

from redis_ts_client.exceptions import DecodeError
from redis_ts_client.types import (
    AggregationType,
    DuplicatePolicy,
    MgetEntry,
    MrangeEntry,
    Rule,
    Sample,
    TsInfo,
)

_ARRAY = (list, tuple)

# Number text as the server formats it: no whitespace, no digit separators.
_NUMBER = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)", re.IGNORECASE)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _to_str(value: Any, what: str, command: str) -> str:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            raise DecodeError(f"utf-8 {what}", value, command) from None
    if isinstance(value, str):
        return value
    raise DecodeError(what, value, command)


def _to_optional_str(value: Any, what: str, command: str) -> Optional[str]:
    if value is None:
        return None
    return _to_str(value, what, command)


def _to_int(value: Any, what: str, command: str) -> int:
    if not _is_int(value):
        raise DecodeError(what, value, command)
    return value


def _to_float(value: Any, what: str, command: str) -> float:
    if isinstance(value, float) or _is_int(value):
        return float(value)
    if isinstance(value, (bytes, str)):
        text = _to_str(value, what, command)
        if _NUMBER.fullmatch(text):
            return float(text)
    raise DecodeError(what, value, command)


def _expect_array(reply: Any, what: str, command: str) -> Union[list, tuple]:
    if not isinstance(reply, _ARRAY):
        raise DecodeError(what, reply, command)
    return reply


def decode_ok(reply: Any, command: str = "") -> bool:
    """Simple OK reply of create, alter, createrule and deleterule."""
    if reply is True:
        return True
    if isinstance(reply, (bytes, str)) and _to_str(reply, "OK", command) == "OK":
        return True
    raise DecodeError("OK", reply, command)


def decode_timestamp(reply: Any, command: str = "") -> int:
    """Integer reply: the timestamp written by add, incrby and decrby."""
    if not _is_int(reply):
        raise DecodeError("integer timestamp", reply, command)
    return reply


def decode_integer(reply: Any, command: str = "") -> int:
    if not _is_int(reply):
        raise DecodeError("integer", reply, command)
    return reply


def decode_madd(reply: Any, command: str = "") -> List[Union[int, Exception]]:
    """
    One entry per sample: the written timestamp, or the server error for a
    sample that was rejected. Per-sample errors are returned, not raised,
    so the successful writes stay visible.
    """
    results: List[Union[int, Exception]] = []
    for item in _expect_array(reply, "array of timestamps", command):
        if isinstance(item, Exception) or _is_int(item):
            results.append(item)
        else:
            raise DecodeError("integer timestamp or error", item, command)
    return results


def decode_sample(raw: Any, command: str = "") -> Sample:
    if not isinstance(raw, _ARRAY) or len(raw) != 2:
        raise DecodeError("[timestamp, value] pair", raw, command)
    timestamp = _to_int(raw[0], "integer timestamp", command)
    value = _to_float(raw[1], "numeric sample value", command)
    return Sample(timestamp, value)


def decode_samples(reply: Any, command: str = "") -> List[Sample]:
    """Array of [timestamp, value] pairs, order preserved."""
    samples = _expect_array(reply, "array of samples", command)
    return [decode_sample(raw, command) for raw in samples]


def decode_get(reply: Any, command: str = "") -> Optional[Sample]:
    """A single pair, or None when the series holds no samples."""
    if reply is None or (isinstance(reply, _ARRAY) and len(reply) == 0):
        return None
    return decode_sample(reply, command)


def decode_labels(raw: Any, command: str = "") -> Dict[str, str]:
    """Array of [name, value] pairs. A missing or empty array gives {}."""
    if raw is None:
        return {}
    labels: Dict[str, str] = {}
    for pair in _expect_array(raw, "array of label pairs", command):
        if not isinstance(pair, _ARRAY) or len(pair) != 2:
            raise DecodeError("[name, value] label pair", pair, command)
        labels[_to_str(pair[0], "label name", command)] = _to_str(pair[1], "label value", command)
    return labels


def _series_entries(reply: Any, command: str):
    for raw in _expect_array(reply, "array of series", command):
        if not isinstance(raw, _ARRAY) or len(raw) != 3:
            raise DecodeError("[key, labels, samples] entry", raw, command)
        key = _to_str(raw[0], "series key", command)
        yield key, decode_labels(raw[1], command), raw[2]


def decode_mrange(reply: Any, command: str = "") -> Dict[str, MrangeEntry]:
    """Series key to labels and samples, in server order."""
    return {
        key: MrangeEntry(key, labels, decode_samples(samples, command))
        for key, labels, samples in _series_entries(reply, command)
    }


def decode_mget(reply: Any, command: str = "") -> Dict[str, MgetEntry]:
    """Series key to labels and latest sample (None for an empty series)."""
    return {
        key: MgetEntry(key, labels, decode_get(sample, command))
        for key, labels, sample in _series_entries(reply, command)
    }


def decode_keys(reply: Any, command: str = "") -> List[str]:
    return [_to_str(key, "series key", command) for key in _expect_array(reply, "array of keys", command)]


def _decode_rules(raw: Any, command: str) -> List[Rule]:
    rules = []
    for rule in _expect_array(raw, "array of rules", command):
        # Newer servers append the bucket alignment as a fourth element.
        if not isinstance(rule, _ARRAY) or len(rule) < 3:
            raise DecodeError("[dest, bucket, aggregation] rule", rule, command)
        aggregation: Union[AggregationType, str] = _to_str(rule[2], "aggregation type", command).lower()
        try:
            aggregation = AggregationType(aggregation)
        except ValueError:
            pass
        rules.append(Rule(
            dest_key=_to_str(rule[0], "rule destination key", command),
            bucket_duration=_to_int(rule[1], "bucket duration", command),
            aggregation=aggregation,
        ))
    return rules


def _decode_policy(raw: Any, command: str) -> Optional[Union[DuplicatePolicy, str]]:
    policy = _to_optional_str(raw, "duplicate policy", command)
    if policy is None:
        return None
    try:
        return DuplicatePolicy(policy.upper())
    except ValueError:
        return policy


_INFO_REQUIRED = {
    "totalSamples": "total_samples",
    "memoryUsage": "memory_usage",
    "firstTimestamp": "first_timestamp",
    "lastTimestamp": "last_timestamp",
    "retentionTime": "retention_time",
    "chunkCount": "chunk_count",
}

_INFO_OPTIONAL_INTS = {
    "chunkSize": "chunk_size",
    "maxSamplesPerChunk": "max_samples_per_chunk",
}


def decode_info(reply: Any, command: str = "") -> TsInfo:
    """
    Flat [field, value, field, value, ...] array of TS.INFO.

    Unknown fields are skipped so newer servers keep working. The numeric
    fields in _INFO_REQUIRED plus labels and rules must be present.
    """
    items = _expect_array(reply, "array of info fields", command)
    if len(items) % 2:
        raise DecodeError("even number of field/value entries", reply, command)
    fields = {
        _to_str(items[i], "info field name", command): items[i + 1]
        for i in range(0, len(items), 2)
    }

    missing = [name for name in (*_INFO_REQUIRED, "labels", "rules") if name not in fields]
    if missing:
        raise DecodeError(f"info fields {', '.join(missing)}", reply, command)

    values: Dict[str, Any] = {
        attr: _to_int(fields[name], name, command) for name, attr in _INFO_REQUIRED.items()
    }
    for name, attr in _INFO_OPTIONAL_INTS.items():
        if fields.get(name) is not None:
            values[attr] = _to_int(fields[name], name, command)
    values["labels"] = decode_labels(fields["labels"], command)
    values["rules"] = _decode_rules(fields["rules"], command)
    values["chunk_type"] = _to_optional_str(fields.get("chunkType"), "chunkType", command)
    values["source_key"] = _to_optional_str(fields.get("sourceKey"), "sourceKey", command)
    values["duplicate_policy"] = _decode_policy(fields.get("duplicatePolicy"), command)
    return TsInfo(**values)
