from unittest.mock import patch

import pytest

from restroom_nav import __main__ as cli
from restroom_nav.service import build_finder

from conftest import RecordingLauncher


@pytest.fixture
def seed_only(monkeypatch, settings):
    monkeypatch.setattr(cli, "load_settings", lambda: settings)
    return settings


def _with_launcher(launcher):
    return lambda settings: build_finder(settings, launcher=launcher)


def test_dry_run_prints_choice_and_links_without_launching(seed_only, capsys):
    launcher = RecordingLauncher()
    with patch.object(cli, "build_finder", _with_launcher(launcher)):
        code = cli.main(["--lat", "31.2304", "--lng", "121.4737", "--dry-run", "--engine", "amap"])

    assert code == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "People's Square Metro Station WC" in out
    assert "[0] amap: amapuri://" in out
    assert "web: https://www.google.com/maps/dir/" in out
    assert launcher.calls == []


def test_launch_success_exits_zero(seed_only, capsys):
    launcher = RecordingLauncher(opens={"baidumap://": "application"})
    with patch.object(cli, "build_finder", _with_launcher(launcher)):
        code = cli.main(["--engine", "baidu", "--time-limit", "10"])

    assert code == cli.EXIT_OK
    assert "Opened baidu" in capsys.readouterr().out


def test_nothing_found_exits_one(seed_only, capsys):
    with patch.object(cli, "build_finder", _with_launcher(RecordingLauncher())):
        code = cli.main(["--lat", "55.75", "--lng", "37.62"])

    assert code == cli.EXIT_NOTHING_FOUND
    assert "Nothing usable found nearby." in capsys.readouterr().out


def test_exhausted_links_exit_two(seed_only, capsys):
    launcher = RecordingLauncher()
    with patch.object(cli, "build_finder", _with_launcher(launcher)):
        code = cli.main([])

    assert code == cli.EXIT_LAUNCH_FAILED
    assert "Couldn't open a navigation app." in capsys.readouterr().out
    assert (seed_only.data_dir / "location_logs.json").exists()


def test_invalid_location_exits_one(seed_only, capsys):
    with patch.object(cli, "build_finder", _with_launcher(RecordingLauncher())):
        code = cli.main(["--lat", "120", "--lng", "0"])

    assert code == cli.EXIT_NOTHING_FOUND
    assert "Invalid location" in capsys.readouterr().err
