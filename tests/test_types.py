import pytest

from redis_ts_client import (
    Aggregation,
    AggregationType,
    DuplicatePolicy,
    Filter,
    FilterKind,
    FilterOptions,
    InvalidArgumentError,
    RangeQuery,
    Sample,
    TsOptions,
)


class TestTsOptions:
    def test_defaults_are_empty(self):
        opts = TsOptions()
        assert opts.retention_time is None
        assert opts.chunk_size is None
        assert opts.duplicate_policy is None
        assert not opts.uncompressed
        assert opts.labels == {}

    def test_builders_return_new_instances(self):
        base = TsOptions()
        changed = base.with_retention(1000).label("a", "b")
        assert base.retention_time is None
        assert base.labels == {}
        assert changed.retention_time == 1000
        assert changed.labels == {"a": "b"}

    def test_label_appends_and_overwrites(self):
        opts = TsOptions().label("a", "1").label("b", "2").label("a", "3")
        assert opts.labels == {"a": "3", "b": "2"}

    def test_with_labels_replaces(self):
        opts = TsOptions().label("a", "1").with_labels({"c": "d"})
        assert opts.labels == {"c": "d"}

    def test_labels_are_copied(self):
        labels = {"a": "b"}
        opts = TsOptions(labels=labels)
        labels["x"] = "y"
        assert opts.labels == {"a": "b"}

    @pytest.mark.parametrize("field", ["retention_time", "chunk_size"])
    def test_negative_values_rejected(self, field):
        with pytest.raises(InvalidArgumentError):
            TsOptions(**{field: -1})

    def test_duplicate_policy_from_string(self):
        assert TsOptions(duplicate_policy="last").duplicate_policy is DuplicatePolicy.LAST

    def test_unknown_duplicate_policy(self):
        with pytest.raises(InvalidArgumentError):
            TsOptions(duplicate_policy="newest")

    def test_empty_label_name_rejected(self):
        with pytest.raises(InvalidArgumentError):
            TsOptions().label("", "x")


class TestAggregation:
    def test_string_type_is_normalized(self):
        assert Aggregation("AVG", 1000).type is AggregationType.AVG
        assert Aggregation("std.p", 1000).type is AggregationType.STD_P

    @pytest.mark.parametrize("duration", [0, -5, 1.5, True])
    def test_bucket_must_be_positive_int(self, duration):
        with pytest.raises(InvalidArgumentError):
            Aggregation(AggregationType.SUM, duration)

    def test_unknown_type(self):
        with pytest.raises(InvalidArgumentError):
            Aggregation("median", 1000)


class TestFilter:
    @pytest.mark.parametrize("flt, token", [
        (Filter.equals("region", "eu"), "region=eu"),
        (Filter.not_equals("region", "eu"), "region!=eu"),
        (Filter.has_label("region"), "region!="),
        (Filter.not_has_label("region"), "region="),
        (Filter.in_set("region", ["eu", "us"]), "region=(eu,us)"),
        (Filter.not_in_set("region", ("eu", "us")), "region!=(eu,us)"),
    ])
    def test_serialization(self, flt, token):
        assert flt.to_arg() == token

    def test_values_are_stringified(self):
        assert Filter.equals("floor", 3).to_arg() == "floor=3"

    @pytest.mark.parametrize("label", ["", "a=b", "a!"])
    def test_bad_label_rejected(self, label):
        with pytest.raises(InvalidArgumentError):
            Filter.equals(label, "x")

    def test_empty_equals_value_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Filter.equals("region", "")

    def test_empty_set_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Filter.in_set("region", [])

    def test_set_member_with_separator_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Filter.in_set("region", ["eu,us"])

    def test_presence_takes_no_values(self):
        with pytest.raises(InvalidArgumentError):
            Filter("region", FilterKind.HAS_LABEL, ("eu",))

    def test_kind_given_by_name(self):
        assert Filter("a", "has_label").kind is FilterKind.HAS_LABEL
        assert Filter("a", "HAS_LABEL").to_arg() == "a!="
        assert Filter("a", "in_set", ("x", "y")).to_arg() == "a=(x,y)"

    def test_kind_given_by_name_still_validated(self):
        with pytest.raises(InvalidArgumentError):
            Filter("a", "has_label", ("x",))

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Filter("a", "contains", ("x",))


class TestFilterOptions:
    def test_builder_keeps_order(self):
        filters = (
            FilterOptions()
            .equals("sensor", "temperature")
            .not_has_label("broken")
            .in_set("room", ["a", "b"])
        )
        assert filters.to_args() == ["sensor=temperature", "broken=", "room=(a,b)"]
        assert not filters.with_labels

    def test_labels_flag(self):
        filters = FilterOptions().equals("a", "b")
        assert filters.labels().with_labels
        assert not filters.with_labels


def test_range_query_count_must_be_non_negative():
    with pytest.raises(InvalidArgumentError):
        RangeQuery(count=-1)


def test_sample_equals_plain_tuple():
    assert Sample(100, 1.5) == (100, 1.5)
