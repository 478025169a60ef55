from __future__ import annotations

import logging

import pytest

from mc_seedfinder.config import Settings
from mc_seedfinder.ingest import parse_request
from mc_seedfinder.models import ChunkCoordinate, FeatureKind, Observation
from mc_seedfinder.observations import ObservationSet
from mc_seedfinder.search import SearchConfig, SearchEngine
from mc_seedfinder.search.engine import default_worker_count
from mc_seedfinder.telemetry import LoggingTelemetry


class RecordingTelemetry:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def emit(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MC_SEEDFINDER_WORKER_COUNT", "3")
    monkeypatch.setenv("MC_SEEDFINDER_SIEVE_ENABLED", "false")

    current = Settings()
    assert current.worker_count == 3
    assert current.sieve_enabled is False


def test_search_config_from_settings_uses_cpu_count_for_zero_workers() -> None:
    config = SearchConfig.from_settings(Settings(worker_count=0), bit_width=64)

    assert config.worker_count == default_worker_count()
    assert config.bit_width == 64


def test_engine_reports_lifecycle_events() -> None:
    telemetry = RecordingTelemetry()
    observations = ObservationSet([Observation(FeatureKind.SLIME_CHUNK, ChunkCoordinate(0, 0), True)])
    config = SearchConfig(worker_count=2, seed_range=(0, 5000), progress_interval_seconds=0.0)

    SearchEngine(observations, config, telemetry=telemetry).run()

    names = [name for name, _ in telemetry.events]
    assert names[0] == "search_started"
    assert "search_partitioned" in names
    assert "search_progress" in names
    assert names[-2:] == ["search_stage_completed", "search_completed"]


def test_logging_telemetry_forwards_to_logger(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("seedfinder_tests.telemetry")

    with caplog.at_level(logging.INFO, logger="seedfinder_tests.telemetry"):
        LoggingTelemetry(logger).emit("search_progress", {"fraction_done": 0.5})

    assert caplog.records[0].getMessage() == "search_progress"
    assert caplog.records[0].telemetry == {"fraction_done": 0.5}


def test_reference_setting_orders_requests_without_reference(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MC_SEEDFINDER_REFERENCE_X", "40")
    monkeypatch.setenv("MC_SEEDFINDER_REFERENCE_Z", "-8")
    current = Settings()
    request = parse_request(
        {
            "observations": [
                {"feature": "slime_chunk", "locator": {"x": 0, "z": 0}, "value": True},
                {"feature": "slime_chunk", "locator": {"x": 40, "z": -8}, "value": True},
            ]
        }
    )

    assert current.reference == (40, -8)
    observations = request.observation_set(current.reference)
    assert observations.reference == (40, -8)
    assert [obs.locator for obs in observations] == [ChunkCoordinate(40, -8), ChunkCoordinate(0, 0)]
    assert request.observation_set().reference == (0, 0)
