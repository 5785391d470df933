"""Pytest bootstrap configuration.

Ensure volume settings are set before test collection and module imports
that depend on application settings.
"""
import os
from datetime import datetime, timezone

os.environ.setdefault("VOLUME__TYPE", "memory")
os.environ.setdefault("VOLUME__BUCKET", "test-bucket")
os.environ.setdefault("VOLUME__REGION", "us-east-1")
os.environ.setdefault("VOLUME__SUBFOLDER", "assets")
os.environ.setdefault("VOLUME__URL", "https://cdn.example.com")

import pytest

from infrastructure.external.storage.config import VolumeConfig
from infrastructure.external.storage.providers.memory import (
    InMemoryCdnControl,
    InMemoryObjectStore,
)
from infrastructure.external.storage.volume import S3Volume


FIXED_NOW = datetime(2024, 1, 31, 12, 0, 0, tzinfo=timezone.utc)


def build_volume(**overrides):
    """Volume over in-memory stores with a fixed clock."""
    values = {
        "type": "memory",
        "bucket": "test-bucket",
        "region": "us-east-1",
        "url": "https://cdn.example.com",
    }
    values.update(overrides)
    config = VolumeConfig(**values)
    store = InMemoryObjectStore(config.bucket, config.region)
    cdn = InMemoryCdnControl() if config.cf_distribution_id else None
    return S3Volume(config, store, cdn, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_volume():
    return build_volume


@pytest.fixture
def volume():
    return build_volume()


@pytest.fixture
def cdn_volume():
    return build_volume(subfolder="assets", cf_distribution_id="E123EXAMPLE")
