from __future__ import annotations

import importlib
import json
from pathlib import Path

import pytest

from mc_seedfinder.oracles import is_slime_chunk
from mc_seedfinder.spiral import spiral

SEED = 123456789


def _runner():
    pytest.importorskip("typer")
    from typer.testing import CliRunner

    return CliRunner(), importlib.import_module("mc_seedfinder.main").app


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("mc_seedfinder.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_settings_command() -> None:
    runner, app = _runner()
    result = runner.invoke(app, ["settings"])

    assert result.exit_code == 0
    assert "mc-seedfinder" in result.output


def test_extend_48_command() -> None:
    runner, app = _runner()
    result = runner.invoke(app, ["extend-48", "113453751637441"])

    assert result.exit_code == 0
    assert "6895687433209288129" in result.output
    assert "955720999684314561" in result.output


def test_slime_search_command_finds_seed() -> None:
    runner, app = _runner()
    chunks = [(dx, dz) for dx, dz in spiral(3)]
    slime = ";".join(f"{x},{z}" for x, z in chunks if is_slime_chunk(SEED, x, z))
    not_slime = ";".join(f"{x},{z}" for x, z in chunks if not is_slime_chunk(SEED, x, z))

    result = runner.invoke(
        app,
        [
            "slime-search",
            "--chunks",
            slime,
            "--no-chunks",
            not_slime,
            "--range-start",
            str(SEED - 2000),
            "--range-stop",
            str(SEED + 2000),
            "--workers",
            "2",
        ],
    )

    assert result.exit_code == 0, result.output
    assert str(SEED) in result.output


def test_slime_search_rejects_bad_chunk_list() -> None:
    runner, app = _runner()
    result = runner.invoke(app, ["slime-search", "--chunks", "1;2"])

    assert result.exit_code == 2


def test_check_command(tmp_path: Path) -> None:
    runner, app = _runner()
    request = {
        "observations": [
            {"feature": "slime_chunk", "locator": {"x": x, "z": z}, "value": is_slime_chunk(SEED, x, z)}
            for x, z in spiral(1)
        ]
    }
    target = tmp_path / "request.json"
    target.write_text(json.dumps(request), encoding="utf-8")

    ok = runner.invoke(app, ["check", "--seed", str(SEED), "--request-file", str(target)])
    assert ok.exit_code == 0
    assert "'matched': 9" in ok.output


def test_slime_map_command() -> None:
    runner, app = _runner()
    result = runner.invoke(app, ["slime-map", "--seed", str(SEED), "--radius", "2"])

    assert result.exit_code == 0
    assert "nearest_slime_chunk" in result.output


def test_interrupted_slime_search_uses_reference_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    runner, app = _runner()
    from mc_seedfinder import main
    from mc_seedfinder.config import Settings
    from mc_seedfinder.models import ChunkCoordinate

    engines = []

    class InterruptedEngine:
        def __init__(self, observations, config, telemetry=None) -> None:
            self.observations = observations
            engines.append(self)

        def run(self):
            raise KeyboardInterrupt

        def partial_results(self):
            return []

    monkeypatch.setattr(main, "settings", Settings(reference_x=10, reference_z=10, telemetry_enabled=False))
    monkeypatch.setattr(main, "SearchEngine", InterruptedEngine)

    result = runner.invoke(app, ["slime-search", "--chunks", "0,0;10,10"])

    assert result.exit_code == 130
    assert "'partial_seeds': []" in result.output
    observations = engines[0].observations
    assert observations.reference == (10, 10)
    assert [obs.locator for obs in observations] == [ChunkCoordinate(10, 10), ChunkCoordinate(0, 0)]
