import json
from pathlib import Path

from typer.testing import CliRunner

from playback_harness.cli import app

runner = CliRunner()

CLEAN_ENV = {
    "UA": "",
    "UA_VERSION": "",
    "OS": "",
    "SAUCE_USERNAME": "",
    "SAUCE_ACCESS_KEY": "",
}


def _catalog(tmp_path: Path) -> Path:
    path = tmp_path / "streams.json"
    path.write_text(
        json.dumps(
            {
                "bbb": {"url": "https://example.com/bbb.m3u8", "description": "Big Buck Bunny", "abr": True},
                "live": {"url": "https://example.com/live.m3u8", "description": "Live", "live": True},
            }
        ),
        encoding="utf-8",
    )
    return path


def test_list_cases(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--streams", str(_catalog(tmp_path)), "--list"], env=CLEAN_ENV)

    assert result.exit_code == 0
    assert "7 test case(s)" in result.output


def test_unknown_scenario_rejected(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["--streams", str(_catalog(tmp_path)), "--scenario", "rewind", "--list"],
        env=CLEAN_ENV,
    )

    assert result.exit_code == 1
    assert "Unknown scenario" in result.output


def test_missing_catalog(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--streams", str(tmp_path / "missing.json")], env=CLEAN_ENV)

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_remote_grid_requires_browser_name(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["--streams", str(_catalog(tmp_path)), "--grid-url", "http://hub:4444/wd/hub", "--list"],
        env=CLEAN_ENV,
    )

    assert result.exit_code == 1
    assert "No test browser name." in result.output
