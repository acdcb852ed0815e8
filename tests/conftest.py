"""Shared fixtures."""

import pytest

from monday_archive.config import Config
from tests.factories import FakeClient


@pytest.fixture
def config(tmp_path):
    """Config rooted in a temporary data directory."""
    return Config(data_dir=str(tmp_path / "data"), fetch_concurrency=4, download_concurrency=4, backoff_sec=0.0)


@pytest.fixture
def fake_client():
    return FakeClient()
