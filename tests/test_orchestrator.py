"""Tests for the enrichment orchestrator."""
import json

import pytest
from pydantic import ValidationError

from src.enrichment.orchestrator import EventEnricher, geocode_events
from src.geocoding.cache import CoordinateCache, load_cached_coordinates
from src.geocoding.google import Resolved, ServiceError
from src.geocoding.rate_limit import RateLimiter
from src.models.event import Coordinate, Event

from conftest import FakeGeocoder


def read_output(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestStockholmScenario:

    def test_three_records_one_call(self, tmp_path, fake_geocoder, sample_events):
        output = tmp_path / "eventsWithCoords.json"

        result = geocode_events(sample_events, rps=1, output_file=output, geocoder=fake_geocoder)

        assert fake_geocoder.calls == ["Stockholm"]
        records = read_output(output)
        assert records == [
            {"id": 1, "title": "A", "address": "Stockholm", "lat": 59.33, "lon": 18.06},
            {"id": 2, "title": "B", "address": ""},
            {"id": 3, "title": "C", "address": "Stockholm", "lat": 59.33, "lon": 18.06},
        ]
        assert [r.to_output_dict() for r in result.records] == records

        stats = result.stats
        assert stats.total == 3
        assert stats.success_count == 3
        assert stats.error_count == 0
        assert stats.cache_hits == 1
        assert stats.geocode_calls == 1
        assert stats.cache_size == 1


class TestOutcomes:

    def test_unresolved_address_counts_as_error_and_is_cached(self, tmp_path, fake_geocoder):
        events = [
            {"id": 1, "title": "A", "location": {"address": "Atlantis"}},
            {"id": 2, "title": "B", "area": {"address": "Atlantis"}},
        ]

        result = geocode_events(events, output_file=tmp_path / "out.json", geocoder=fake_geocoder)

        assert fake_geocoder.calls == ["Atlantis"]
        assert result.stats.error_count == 2
        assert result.stats.cache_hits == 1
        assert read_output(tmp_path / "out.json") == [
            {"id": 1, "title": "A", "address": "Atlantis"},
            {"id": 2, "title": "B", "address": "Atlantis"},
        ]

    def test_service_error_record_carries_error(self, tmp_path):
        geocoder = FakeGeocoder({"Slussen": ServiceError("Geocoding request timed out after 10s")})
        events = [
            {"id": 1, "title": "A", "location": {"address": "Slussen"}},
            {"id": 2, "title": "B", "location": {"address": "Stockholm"}},
        ]

        result = geocode_events(events, output_file=tmp_path / "out.json", geocoder=geocoder)

        records = read_output(tmp_path / "out.json")
        assert records[0] == {"id": 1, "title": "A", "address": "Slussen",
                              "error": "Geocoding request timed out after 10s"}
        assert len(records) == 2
        assert result.stats.error_count == 2
        assert result.stats.success_count == 0

    def test_blank_and_missing_addresses_never_call(self, tmp_path, fake_geocoder, no_sleep):
        events = [
            {"id": 1, "title": "A"},
            {"id": 2, "title": "B", "location": {"address": "   "}},
            {"id": 3, "title": "C", "area": {}},
        ]

        result = geocode_events(events, output_file=tmp_path / "out.json", geocoder=fake_geocoder)

        assert fake_geocoder.calls == []
        assert no_sleep == []
        assert result.stats.success_count == 3
        for record in read_output(tmp_path / "out.json"):
            assert set(record) == {"id", "title", "address"}

    def test_event_objects_are_accepted(self, tmp_path, fake_geocoder):
        events = [Event.model_validate({"id": "x1", "title": "A", "location": {"address": "Medborgarplatsen"}})]
        result = geocode_events(events, output_file=tmp_path / "out.json", geocoder=fake_geocoder)
        assert result.records[0].coordinate == Coordinate(lat=59.3142, lon=18.0735)


class TestOrderingAndValidity:

    def test_output_matches_input_order_and_length(self, tmp_path, fake_geocoder):
        events = [
            {"id": i, "title": f"E{i}", "location": {"address": addr}}
            for i, addr in enumerate(["Stockholm", "Atlantis", "", "Medborgarplatsen", "Stockholm"])
        ]

        geocode_events(events, output_file=tmp_path / "out.json", geocoder=fake_geocoder)

        records = read_output(tmp_path / "out.json")
        assert [r["id"] for r in records] == [0, 1, 2, 3, 4]

    def test_empty_input_writes_empty_array(self, tmp_path, fake_geocoder):
        result = geocode_events([], output_file=tmp_path / "out.json", geocoder=fake_geocoder)
        assert read_output(tmp_path / "out.json") == []
        assert result.records == []

    def test_two_fresh_runs_are_byte_identical(self, tmp_path, sample_events):
        first = tmp_path / "first.json"
        second = tmp_path / "second.json"
        coordinate = Coordinate(lat=59.33, lon=18.06)

        geocode_events(sample_events, output_file=first, geocoder=FakeGeocoder({"Stockholm": Resolved(coordinate)}))
        geocode_events(sample_events, output_file=second, geocoder=FakeGeocoder({"Stockholm": Resolved(coordinate)}))

        assert first.read_bytes() == second.read_bytes()


class TestResume:

    def test_rerun_uses_previous_output_as_cache(self, tmp_path, fake_geocoder, sample_events):
        output = tmp_path / "out.json"
        geocode_events(sample_events, output_file=output, geocoder=fake_geocoder)
        first_bytes = output.read_bytes()

        second_geocoder = FakeGeocoder()
        result = geocode_events(sample_events, output_file=output, geocoder=second_geocoder)

        assert second_geocoder.calls == []
        assert result.stats.cache_hits == 2
        assert output.read_bytes() == first_bytes

    def test_unresolved_addresses_are_retried_on_next_run(self, tmp_path, fake_geocoder):
        output = tmp_path / "out.json"
        events = [{"id": 1, "title": "A", "location": {"address": "Atlantis"}}]
        geocode_events(events, output_file=output, geocoder=fake_geocoder)

        second_geocoder = FakeGeocoder()
        geocode_events(events, output_file=output, geocoder=second_geocoder)

        assert second_geocoder.calls == ["Atlantis"]

    def test_corrupt_previous_output_is_a_cold_start(self, tmp_path, fake_geocoder, sample_events):
        output = tmp_path / "out.json"
        output.write_text('[\n  {\n    "id": 1,\n    "address": "Stockholm"', encoding="utf-8")

        geocode_events(sample_events, output_file=output, geocoder=fake_geocoder)

        assert fake_geocoder.calls == ["Stockholm"]
        assert len(read_output(output)) == 3


class TestRateLimiting:

    def test_waits_only_before_network_calls(self, tmp_path, fake_geocoder, no_sleep):
        events = [
            {"id": 1, "title": "A", "location": {"address": "Stockholm"}},
            {"id": 2, "title": "B", "location": {"address": ""}},
            {"id": 3, "title": "C", "location": {"address": "Stockholm"}},
            {"id": 4, "title": "D", "location": {"address": "Medborgarplatsen"}},
            {"id": 5, "title": "E", "location": {"address": "Atlantis"}},
        ]

        geocode_events(events, rps=4, output_file=tmp_path / "out.json", geocoder=fake_geocoder)

        assert len(fake_geocoder.calls) == 3
        assert no_sleep == [0.25, 0.25]


class TestCancellationAndFailures:

    def test_should_stop_closes_file_early(self, tmp_path, fake_geocoder, sample_events):
        output = tmp_path / "out.json"
        processed = []

        def should_stop():
            return len(processed) >= 2

        enricher = EventEnricher(fake_geocoder, RateLimiter(1), CoordinateCache())
        original = enricher._enrich_one

        def tracking(*args):
            record = original(*args)
            processed.append(record)
            return record

        enricher._enrich_one = tracking
        result = enricher.enrich_events(sample_events, output, should_stop=should_stop)

        assert result.stats.cancelled is True
        assert len(read_output(output)) == 2
        assert len(result.records) == 2

    def test_write_failure_propagates(self, tmp_path, fake_geocoder, sample_events):
        missing_dir = tmp_path / "no-such-dir" / "out.json"
        with pytest.raises(OSError):
            geocode_events(sample_events, output_file=missing_dir, geocoder=fake_geocoder)

    def test_unexpected_geocoder_exception_propagates(self, tmp_path, sample_events):
        geocoder = FakeGeocoder({"Stockholm": RuntimeError("bug")})
        with pytest.raises(RuntimeError):
            geocode_events(sample_events, output_file=tmp_path / "out.json", geocoder=geocoder)

    def test_invalid_event_leaves_previous_output_intact(self, tmp_path, fake_geocoder, sample_events):
        output = tmp_path / "out.json"
        geocode_events(sample_events, output_file=output, geocoder=fake_geocoder)
        before = output.read_bytes()

        events = [{"id": 1, "title": "A", "location": {"address": "Stockholm"}}, {"title": 5}]
        with pytest.raises(ValidationError):
            geocode_events(events, output_file=output, geocoder=fake_geocoder)

        assert output.read_bytes() == before
        assert len(load_cached_coordinates(output)) == 1
