import json
import time
from typing import Any

from typer.testing import CliRunner

from meshtrack.api import MeshtasticApiClient
from meshtrack.cli import commands
from meshtrack.cli.commands import app

runner = CliRunner()


def _install_fake_backend(monkeypatch, responses: dict[str, Any]) -> list[str]:
    calls: list[str] = []

    async def _fetch(url: str, timeout: float) -> Any:
        del timeout
        calls.append(url)
        value = responses.get(url)
        if value is None:
            raise RuntimeError(f"no route for {url}")
        return value

    def _build_client(config):
        return MeshtasticApiClient.from_config(config, fetcher=_fetch)

    monkeypatch.setattr(commands, "_build_client", _build_client)
    return calls


def _write_config(tmp_path) -> str:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"api": {"baseUrlMain": "https://mesh.example.com/api"}}))
    return str(config_path)


def test_devices_json_output(monkeypatch, tmp_path) -> None:
    now_ms = int(time.time() * 1000)
    calls = _install_fake_backend(
        monkeypatch,
        {
            "https://mesh.example.com/api/devices": {
                "!a1": {"device_id": "!a1", "short_name": "A1", "last_updated": now_ms},
                "!b2": {"hex_id": "!b2", "gateway": "!b2"},
            }
        },
    )

    result = runner.invoke(app, ["devices", "--config", _write_config(tmp_path), "--json"])

    assert result.exit_code == 0
    rows = json.loads(result.stdout)
    assert [row["node_id"] for row in rows] == ["!a1", "!b2"]
    assert rows[0]["device_name"] == "A1"
    assert rows[0]["is_online"] is True
    assert rows[1]["is_mqtt_node"] is True
    assert calls == ["https://mesh.example.com/api/devices"]


def test_devices_active_only_filters(monkeypatch, tmp_path) -> None:
    now_ms = int(time.time() * 1000)
    _install_fake_backend(
        monkeypatch,
        {
            "https://mesh.example.com/api/devices": {
                "!a1": {"device_id": "!a1", "last_updated": now_ms},
                "!old": {"device_id": "!old", "position_time": 1},
            }
        },
    )

    result = runner.invoke(
        app,
        ["devices", "--config", _write_config(tmp_path), "--json", "--active-only"],
    )

    assert result.exit_code == 0
    assert [row["node_id"] for row in json.loads(result.stdout)] == ["!a1"]


def test_devices_backend_down_prints_notice(monkeypatch, tmp_path) -> None:
    _install_fake_backend(monkeypatch, {})

    result = runner.invoke(app, ["devices", "--config", _write_config(tmp_path)])

    assert result.exit_code == 0
    assert "No devices" in result.stdout


def test_track_and_metrics_commands(monkeypatch, tmp_path) -> None:
    _install_fake_backend(
        monkeypatch,
        {
            "https://mesh.example.com/api/gps:!a1": [{"lat": 1.0}, {"lat": 2.0}],
            "https://mesh.example.com/api/environment_metrics:!a1": {"temperature": 19.5},
        },
    )
    config_path = _write_config(tmp_path)

    track = runner.invoke(app, ["track", "!a1", "--config", config_path])
    assert track.exit_code == 0
    assert "points=2" in track.stdout

    env = runner.invoke(app, ["metrics", "!a1", "--environment", "--config", config_path])
    assert env.exit_code == 0
    assert "19.5" in env.stdout

    device = runner.invoke(app, ["metrics", "!a1", "--config", config_path])
    assert device.exit_code == 0
    assert "No metrics for !a1" in device.stdout


def test_config_check_passes_for_valid_config(tmp_path) -> None:
    result = runner.invoke(app, ["config", "check", "--config", _write_config(tmp_path)])

    assert result.exit_code == 0
    assert "Config validation passed" in result.stdout
    assert "https://mesh.example.com/api/devices" in result.stdout


def test_config_check_fails_when_missing(tmp_path) -> None:
    result = runner.invoke(app, ["config", "check", "--config", str(tmp_path / "missing.json")])

    assert result.exit_code == 2
    assert "Config file not found" in result.stdout


def test_config_check_fails_on_schema_error(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"thresholds": {"deviceActiveThreshold": "soon"}}))

    result = runner.invoke(app, ["config", "check", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "Schema validation failed" in result.stdout


def test_devices_table_shows_bracketed_names_literally(monkeypatch, tmp_path) -> None:
    _install_fake_backend(
        monkeypatch,
        {
            "https://mesh.example.com/api/devices": {
                "!a": {"device_id": "!a", "long_name": "[/]"},
                "!b": {"device_id": "[bold]", "short_name": "[red]x"},
            }
        },
    )

    result = runner.invoke(app, ["devices", "--config", _write_config(tmp_path)])

    assert result.exit_code == 0
    assert "[/]" in result.stdout
    assert "[bold]" in result.stdout


def test_track_and_metrics_print_bracketed_node_ids(monkeypatch, tmp_path) -> None:
    _install_fake_backend(monkeypatch, {})
    config_path = _write_config(tmp_path)

    track = runner.invoke(app, ["track", "[/]", "--config", config_path])
    assert track.exit_code == 0
    assert "No track points for [/]" in track.stdout

    metrics = runner.invoke(app, ["metrics", "[/]", "--config", config_path])
    assert metrics.exit_code == 0
    assert "No metrics for [/]" in metrics.stdout


def test_config_check_fails_when_unreadable(tmp_path) -> None:
    config_dir = tmp_path / "config.json"
    config_dir.mkdir()

    result = runner.invoke(app, ["config", "check", "--config", str(config_dir)])

    assert result.exit_code == 2
    assert "Failed to read config" in result.stdout
