"""Shared pytest fixtures for checklog tests."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from checklog.config import CheckConfig


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary log files."""

    def _make(lines: list[str], name: str = "test.log") -> Path:
        p = tmp_path / name
        p.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def append_lines():
    """Return a helper that appends lines to an existing log."""

    def _append(path: Path, lines: list[str]) -> None:
        with open(path, "a", encoding="utf-8") as fh:
            fh.write("".join(line + "\n" for line in lines))

    return _append


@pytest.fixture()
def state_dir(tmp_path: Path) -> Path:
    d = tmp_path / "state"
    d.mkdir()
    return d


@pytest.fixture()
def make_config(state_dir: Path):
    """Factory for configs that keep seek files inside the test's tmp dir."""

    def _make(logfile: Path | str, **kwargs: Any) -> CheckConfig:
        kwargs.setdefault("state_dir", str(state_dir))
        kwargs.setdefault("timeout", 0)
        return CheckConfig.build(logfile=str(logfile), **kwargs)

    return _make


@pytest.fixture()
def app_log_lines() -> list[str]:
    return ["[INFO] ok", "[ERROR] disk full", "[INFO] ok"]


@pytest.fixture()
def syslog_lines() -> list[str]:
    return [
        "Aug  1 10:00:00 webserver sshd[1234]: Accepted publickey for admin",
        "Aug  1 10:00:01 webserver kernel: Out of memory: Kill process 5678",
        "Aug  1 10:00:02 webserver nrpe[4321]: Error: Could not read request",
        "Aug  1 10:00:03 webserver cron[9999]: (root) CMD (/usr/bin/backup.sh)",
        "Aug  1 10:00:04 webserver app[77]: Error: upstream timed out",
    ]
