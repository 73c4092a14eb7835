"""
Pytest configuration and shared fixtures
"""

import logging
import os
from typing import Iterable

import pytest

from datahaven_launcher.env import LauncherConfig
from datahaven_launcher.shell import ShellResult, format_command


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeRunner:
    """Stands in for run_shell_command and records every command it receives"""

    def __init__(self, fail_on: Iterable[str] = ()):
        self.fail_on = list(fail_on)
        self.commands: list[str] = []

    async def __call__(self, command, cwd=".", env=None, log_level=logging.INFO, output_logger=None):
        text = format_command(command)
        self.commands.append(text)
        returncode = 1 if any(marker in text for marker in self.fail_on) else 0
        return ShellResult(command=text, returncode=returncode)

    def matching(self, fragment: str) -> list[str]:
        return [c for c in self.commands if fragment in c]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def launcher_config(tmp_path):
    return LauncherConfig(working_dir=tmp_path, startup_timeout=1, confirm_timeout=0)


@pytest.fixture
def clean_env(monkeypatch):
    """Isolate os.environ from launcher variables, including ones set by load_dotenv"""
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith(("DH_", "DATAHAVEN_", "RELAYER_"))
    }
    monkeypatch.setattr(os, "environ", env)
    return env
