"""Tests for samples, series keys and snapshots."""

from __future__ import annotations

import dataclasses

import pytest

from jvmpulse.metrics.models import Sample, SeriesKey, Snapshot


class TestSeriesKey:
    def test_label_order_is_canonical(self):
        a = SeriesKey.of("m", {"b": "2", "a": "1"})
        b = SeriesKey.of("m", {"a": "1", "b": "2"})
        assert a == b
        assert hash(a) == hash(b)
        assert a.labels == (("a", "1"), ("b", "2"))

    def test_str(self):
        key = SeriesKey.of("jvm_gc_collection_seconds_count", {"gc": "G1 Young Generation"})
        assert str(key) == 'jvm_gc_collection_seconds_count{gc="G1 Young Generation"}'
        assert str(SeriesKey.of("up")) == "up"

    def test_label_dict_is_a_copy(self):
        key = SeriesKey.of("m", {"a": "1"})
        key.label_dict["a"] = "changed"
        assert key.label_dict == {"a": "1"}

    def test_sample_key(self):
        sample = Sample("m", {"z": "1", "a": "2"}, 3.0)
        assert sample.key == SeriesKey("m", (("a", "2"), ("z", "1")))

    def test_sample_labels_are_read_only(self):
        source = {"gc": "a"}
        sample = Sample("m", source, 1.0)
        source["gc"] = "changed"

        assert sample.labels == {"gc": "a"}
        with pytest.raises(TypeError):
            sample.labels["gc"] = "mutated"  # type: ignore[index]

    def test_sample_is_hashable(self):
        a = Sample("m", {"gc": "a"}, 1.0)
        b = Sample("m", {"gc": "a"}, 1.0)
        assert a == b
        assert len({a, b}) == 1


class TestSnapshot:
    def test_metrics_are_read_only(self):
        snapshot = Snapshot(target="1", timestamp=1.0, metrics={"a": [Sample("a", {}, 1.0)]})

        assert isinstance(snapshot.metrics["a"], tuple)
        with pytest.raises(TypeError):
            snapshot.metrics["b"] = ()  # type: ignore[index]
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.target = "2"  # type: ignore[misc]

    def test_source_mapping_changes_do_not_leak(self):
        source = {"a": [Sample("a", {}, 1.0)]}
        snapshot = Snapshot(target="1", timestamp=1.0, metrics=source)
        source["a"].append(Sample("a", {}, 2.0))
        source["b"] = []

        assert len(snapshot.samples("a")) == 1
        assert "b" not in snapshot.metrics

    def test_samples_and_count(self):
        snapshot = Snapshot(
            target="1",
            timestamp=1.0,
            metrics={"a": [Sample("a", {}, 1.0), Sample("a", {"x": "1"}, 2.0)], "b": []},
            types={"a": "gauge"},
        )
        assert snapshot.sample_count == 2
        assert snapshot.samples("missing") == ()
        assert snapshot.types == {"a": "gauge"}

    def test_published_labels_cannot_be_rewritten(self):
        sample = Sample("m", {"gc": "a"}, 1.0)
        snapshot = Snapshot(target="1", timestamp=1.0, metrics={"m": [sample]})

        with pytest.raises(TypeError):
            snapshot.metrics["m"][0].labels["gc"] = "mutated"  # type: ignore[index]
        assert snapshot.metrics["m"][0].labels["gc"] == "a"

    def test_empty_snapshot_is_truthy(self):
        assert Snapshot(target="1", timestamp=1.0)
