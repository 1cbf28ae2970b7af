import pytest
from redis.exceptions import ResponseError

from redis_ts_client import (
    AggregationType,
    DecodeError,
    DuplicatePolicy,
    MgetEntry,
    MrangeEntry,
    Rule,
    Sample,
    reply,
)


class TestSimpleReplies:
    @pytest.mark.parametrize("raw", [b"OK", "OK", True])
    def test_ok(self, raw):
        assert reply.decode_ok(raw) is True

    @pytest.mark.parametrize("raw", [b"QUEUED", 1, None, []])
    def test_not_ok(self, raw):
        with pytest.raises(DecodeError):
            reply.decode_ok(raw, "TS.CREATE")

    def test_timestamp(self):
        assert reply.decode_timestamp(1234567890) == 1234567890

    @pytest.mark.parametrize("raw", [b"123", None, True, [1]])
    def test_timestamp_shape(self, raw):
        with pytest.raises(DecodeError):
            reply.decode_timestamp(raw)

    def test_madd_keeps_per_sample_errors(self):
        error = ResponseError("TSDB: the key does not exist")
        assert reply.decode_madd([1, error, 3]) == [1, error, 3]

    def test_decode_error_details(self):
        with pytest.raises(DecodeError) as exc_info:
            reply.decode_timestamp(b"x", "TS.ADD")
        err = exc_info.value
        assert err.expected == "integer timestamp"
        assert err.received == b"x"
        assert "TS.ADD" in str(err)


class TestRange:
    def test_samples_in_server_order(self):
        raw = [[300, b"3"], [100, b"1.5"], [200, b"-2.25"]]
        assert reply.decode_samples(raw) == [(300, 3.0), (100, 1.5), (200, -2.25)]

    def test_decoded_strings(self):
        assert reply.decode_samples([[1, "4.5"]]) == [Sample(1, 4.5)]

    def test_empty(self):
        assert reply.decode_samples([]) == []

    def test_non_numeric_value(self):
        with pytest.raises(DecodeError):
            reply.decode_samples([[100, b"1.5"], [200, b"not-a-number"]], "TS.RANGE")

    @pytest.mark.parametrize("raw", [None, b"x", [[1]], [[1, b"2", b"3"]], [[b"ts", b"1"]]])
    def test_bad_shape(self, raw):
        with pytest.raises(DecodeError):
            reply.decode_samples(raw)

    @pytest.mark.parametrize("raw", [[[b"100", b"1"]], [[True, b"1"]], [[1.0, b"1"]]])
    def test_timestamp_must_be_integer(self, raw):
        with pytest.raises(DecodeError):
            reply.decode_samples(raw, "TS.RANGE")

    @pytest.mark.parametrize("value", [b"1_000", b" 1.5", b"1.5\n", b"", b"0x10"])
    def test_value_text_parsed_strictly(self, value):
        with pytest.raises(DecodeError):
            reply.decode_samples([[1, value]], "TS.RANGE")

    def test_value_text_forms(self):
        raw = [[1, b"-2.5e3"], [2, b"inf"], [3, b".5"], [4, 7]]
        assert [s.value for s in reply.decode_samples(raw)] == [-2500.0, float("inf"), 0.5, 7.0]


class TestGet:
    @pytest.mark.parametrize("raw", [None, []])
    def test_no_data(self, raw):
        assert reply.decode_get(raw) is None

    def test_sample(self):
        assert reply.decode_get([1234567890, b"3.2"]) == Sample(1234567890, 3.2)


class TestMultiSeries:
    def test_mrange(self):
        raw = [["seriesA", [["region", "eu"]], [[100, "1.5"], [200, "2.5"]]]]
        result = reply.decode_mrange(raw)
        assert result == {
            "seriesA": MrangeEntry("seriesA", {"region": "eu"}, [(100, 1.5), (200, 2.5)]),
        }
        assert result["seriesA"].labels == {"region": "eu"}
        assert result["seriesA"].samples == [(100, 1.5), (200, 2.5)]

    def test_mrange_keeps_series_order(self):
        raw = [
            [b"b", [], [[1, b"1"]]],
            [b"a", [], []],
        ]
        assert list(reply.decode_mrange(raw)) == ["b", "a"]
        assert reply.decode_mrange(raw)["a"].samples == []

    def test_mget_without_labels(self):
        raw = [[b"s1", [], [100, b"1"]], [b"s2", [], []]]
        result = reply.decode_mget(raw)
        assert result["s1"] == MgetEntry("s1", {}, Sample(100, 1.0))
        assert result["s2"].labels == {}
        assert result["s2"].sample is None

    def test_mget_with_labels(self):
        raw = [[b"s1", [[b"a", b"b"], [b"c", b"d"]], [100, b"1"]]]
        assert reply.decode_mget(raw)["s1"].labels == {"a": "b", "c": "d"}

    @pytest.mark.parametrize("raw", [None, [[b"s1", []]], [[b"s1", [[b"a"]], []]]])
    def test_bad_shape(self, raw):
        with pytest.raises(DecodeError):
            reply.decode_mrange(raw)

    def test_keys(self):
        assert reply.decode_keys([b"a", "b"]) == ["a", "b"]


class TestInfo:
    def test_full_reply(self, info_reply):
        info = reply.decode_info(info_reply)
        assert info.total_samples == 3
        assert info.memory_usage == 4184
        assert info.first_timestamp == 100
        assert info.last_timestamp == 300
        assert info.retention_time == 60000
        assert info.chunk_count == 1
        assert info.chunk_size == 4096
        assert info.chunk_type == "compressed"
        assert info.duplicate_policy is DuplicatePolicy.LAST
        assert info.labels == {"region": "eu", "type": "temperature"}
        assert info.source_key is None
        assert info.rules == [Rule("temp:avg", 60000, AggregationType.AVG)]
        assert info.max_samples_per_chunk is None

    def test_unknown_fields_ignored(self, info_reply):
        info_reply += [b"ignoreMaxTimeDiff", 0, b"someFutureField", [b"x", 1]]
        assert reply.decode_info(info_reply).retention_time == 60000

    def test_missing_required_field(self, info_reply):
        at = info_reply.index(b"retentionTime")
        del info_reply[at:at + 2]
        with pytest.raises(DecodeError) as exc_info:
            reply.decode_info(info_reply, "TS.INFO")
        assert "retentionTime" in exc_info.value.expected

    def test_nil_duplicate_policy_and_unknown_policy(self, info_reply):
        at = info_reply.index(b"duplicatePolicy")
        info_reply[at + 1] = None
        assert reply.decode_info(info_reply).duplicate_policy is None
        info_reply[at + 1] = b"newest"
        assert reply.decode_info(info_reply).duplicate_policy == "newest"

    def test_rule_with_alignment(self, info_reply):
        at = info_reply.index(b"rules")
        info_reply[at + 1] = [[b"dst", 1000, b"std.p", 0]]
        assert reply.decode_info(info_reply).rules == [Rule("dst", 1000, AggregationType.STD_P)]

    @pytest.mark.parametrize("raw", [None, b"OK", [b"totalSamples"]])
    def test_bad_shape(self, raw):
        with pytest.raises(DecodeError):
            reply.decode_info(raw)

    def test_integer_fields_not_parsed_from_text(self, info_reply):
        at = info_reply.index(b"totalSamples")
        info_reply[at + 1] = b"3"
        with pytest.raises(DecodeError):
            reply.decode_info(info_reply, "TS.INFO")

    def test_rule_bucket_must_be_integer(self, info_reply):
        at = info_reply.index(b"rules")
        info_reply[at + 1] = [[b"dst", b"1000", b"avg"]]
        with pytest.raises(DecodeError):
            reply.decode_info(info_reply, "TS.INFO")
