"""Pytest configuration for integration tests against real services."""

import os

import pytest
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@pytest.fixture(scope="session")
def google_api_available():
    """Check if Google API is available."""
    return bool(os.getenv("GOOGLE_API_KEY"))


@pytest.fixture(scope="session")
def redis_available():
    """Check if Redis is reachable at REDIS_URL."""
    import redis

    try:
        redis.Redis.from_url(os.getenv("REDIS_URL", "redis://localhost:6379")).ping()
        return True
    except redis.ConnectionError:
        return False


@pytest.fixture(autouse=True)
def skip_if_no_google_api(request, google_api_available):
    """Skip tests marked with requires_google_api if key not set."""
    if request.node.get_closest_marker("requires_google_api"):
        if not google_api_available:
            pytest.skip("GOOGLE_API_KEY not set")


@pytest.fixture(autouse=True)
def skip_if_no_redis(request, redis_available):
    """Skip tests marked with requires_redis if Redis is down."""
    if request.node.get_closest_marker("requires_redis"):
        if not redis_available:
            pytest.skip("Redis not available")
