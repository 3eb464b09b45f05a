"""Tests for FeedSettings."""

import pytest

from casefeed.config import FeedSettings
from casefeed.core.types import CountFailureMode


def test_defaults():
    settings = FeedSettings()

    assert settings.default_page_size == 20
    assert settings.max_page_size == 100
    assert settings.count_failure_mode is CountFailureMode.ABORT
    assert settings.rate_limit_requests == 100
    assert settings.rate_limit_window_seconds == 60
    assert settings.max_connections == 20


def test_mode_string_is_coerced():
    assert FeedSettings(count_failure_mode="degrade").count_failure_mode is CountFailureMode.DEGRADE


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pool_size": 0},
        {"max_overflow": -1},
        {"pool_timeout": 0},
        {"default_page_size": 0},
        {"default_page_size": 50, "max_page_size": 40},
        {"rate_limit_requests": 0},
        {"count_failure_mode": "retry"},
        {"log_level": "chatty"},
        {"log_format": "xml"},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        FeedSettings(**kwargs)


def test_settings_are_frozen():
    settings = FeedSettings()
    with pytest.raises(AttributeError):
        settings.pool_size = 10


class TestFromEnv:
    def test_reads_prefixed_variables(self):
        settings = FeedSettings.from_env(
            {
                "CASEFEED_DATABASE_URL": "postgresql+psycopg://feed@db/feed",
                "CASEFEED_POOL_SIZE": "10",
                "CASEFEED_POOL_TIMEOUT": "0.5",
                "CASEFEED_COUNT_FAILURE_MODE": "DEGRADE",
                "CASEFEED_LOG_FORMAT": "text",
                "UNRELATED": "ignored",
            }
        )

        assert settings.database_url == "postgresql+psycopg://feed@db/feed"
        assert settings.pool_size == 10
        assert settings.pool_timeout == 0.5
        assert settings.count_failure_mode is CountFailureMode.DEGRADE
        assert settings.log_format == "text"
        assert settings.max_page_size == 100

    def test_empty_environment_gives_defaults(self):
        assert FeedSettings.from_env({}) == FeedSettings()

    def test_bad_number(self):
        with pytest.raises(ValueError):
            FeedSettings.from_env({"CASEFEED_MAX_PAGE_SIZE": "lots"})
