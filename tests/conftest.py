import pytest

import app_runtime as rt


@pytest.fixture(autouse=True)
def isolated_app_home(monkeypatch, tmp_path):
    # Keep config/state/log writes out of the user's real Application Support.
    home = tmp_path / "app_home"
    monkeypatch.setattr(rt, "CONFIG_DIR", home)
    monkeypatch.setattr(rt, "CONFIG_PATH", home / "config.json")
    monkeypatch.setattr(rt, "STATE_PATH", home / "processed.json")
    monkeypatch.setattr(rt, "LOG_PATH", home / "app.log")
    return home
