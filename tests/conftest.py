import os

import pytest

os.environ.setdefault("API_KEY", "test-key")
os.environ["YT_API_KEY"] = ""

from linkpeek.config import Settings, get_settings  # noqa: E402
from linkpeek.main import app  # noqa: E402

API_KEY = os.environ["API_KEY"]


@pytest.fixture(autouse=True)
def reset_state():
    """Clear the slowapi counter and any settings overrides before every test."""
    get_settings.cache_clear()
    app.state.limiter._storage.reset()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key=API_KEY, yt_api_key="", block_private_addresses=False)
