"""
Pytest configuration and fixtures for upload harness tests
"""

import os

import pytest

from uploadperf.config import HarnessConfig, TerminationPolicy
from tests.common.fake_sessions import FakeSession, SessionFactory


@pytest.fixture(scope="session")
def config():
    """
    Live endpoint configuration fixture

    Returns settings for tests that talk to a real S3 service. Those tests
    are skipped unless S3_ENDPOINT is set.
    """
    return {
        "s3_endpoint": os.getenv("S3_ENDPOINT", ""),
        "s3_access_key": os.getenv("S3_ACCESS_KEY", "minioadmin"),
        "s3_secret_key": os.getenv("S3_SECRET_KEY", "minioadmin"),
        "s3_region": os.getenv("S3_REGION", "us-east-1"),
        "s3_bucket_prefix": os.getenv("S3_BUCKET_PREFIX", "uploadperf-test"),
        "verify_ssl": os.getenv("S3_VERIFY_SSL", "false").lower() == "true",
    }


@pytest.fixture
def make_config():
    """
    Harness configuration factory

    Defaults to a small, fast run; keyword arguments override any field,
    and min_duration / min_upload_count build the termination policy.
    """

    def _make(min_duration=0, min_upload_count=1, **overrides):
        values = {
            "concurrency": 1,
            "object_size": 1024,
            "seed": 42,
            "access_key": "test",
            "secret_key": "test",
        }
        values.update(overrides)
        return HarnessConfig(
            policy=TerminationPolicy(min_duration, min_upload_count), **values
        )

    return _make


@pytest.fixture
def session_factory():
    """Factory handing out an always-succeeding FakeSession per worker"""
    return SessionFactory(lambda index: FakeSession())
