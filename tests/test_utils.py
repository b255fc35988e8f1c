import os
from pathlib import Path

import pytest

from tasktimer.utils import default_data_dir, format_duration, shorten


def test_format_duration():
    assert format_duration(0) == "0s"
    assert format_duration(3) == "3s"
    assert format_duration(61) == "1m 01s"
    assert format_duration(3661) == "1h 01m 01s"
    assert format_duration(-5) == "0s"


def test_default_data_dir_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("TASKTIMER_HOME", str(tmp_path / "tt"))
    assert default_data_dir() == tmp_path / "tt"


@pytest.mark.skipif(os.name == "nt", reason="XDG lookup is not used on Windows")
def test_default_data_dir_xdg(monkeypatch, tmp_path):
    monkeypatch.delenv("TASKTIMER_HOME", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert default_data_dir() == Path(tmp_path) / "tasktimer"


def test_shorten():
    assert shorten("short") == "short"
    s = shorten("x" * 100, max_len=10)
    assert len(s) == 10
    assert s.endswith("…")
