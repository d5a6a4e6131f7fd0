"""
Shared pytest configuration.

This file ensures the project root is on sys.path so that `import llmfailover`
works consistently in all tests, and isolates every test from credentials
present in the developer's environment.
"""

import sys
from pathlib import Path

import pytest


# Ensure project root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from llmfailover.provider.catalog import credential_env_keys  # noqa: E402
from llmfailover.settings import settings  # noqa: E402


class FakeClock:
    """
    Millisecond clock patched into every module that stamps epoch ms.
    """

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture(autouse=True)
def clean_credentials(monkeypatch):
    for key in credential_env_keys():
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(settings, "fallback_overrides_raw", None)


@pytest.fixture()
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr("llmfailover.provider.auth_profiles._now_ms", fake)
    monkeypatch.setattr("llmfailover.provider.usage_tracking._now_ms", fake)
    monkeypatch.setattr("llmfailover.routing.fallback._now_ms", fake)
    return fake


@pytest.fixture()
def config_dir(tmp_path) -> Path:
    path = tmp_path / "config"
    path.mkdir()
    return path
