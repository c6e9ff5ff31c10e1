"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from travel_gateway.config import Settings

ENV_KEYS = (
    "CACHE_TTL_MINUTES",
    "RATE_LIMIT_REQUESTS",
    "MAX_RETRIES",
    "RETRY_DOMAIN_ERRORS",
    "PRODUCER_TIMEOUT_SECONDS",
    "AMADEUS_HOSTNAME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Test documented defaults apply when nothing is configured."""
        config = Settings(_env_file=None)

        assert config.cache_ttl_minutes == 5
        assert config.cache_ttl_seconds == 300
        assert config.rate_limit_requests == 5
        assert config.max_retries == 3
        assert config.retry_base_delay_seconds == 1.0
        assert config.retry_backoff_factor == 2.0
        assert config.retry_max_delay_seconds == 10.0
        assert config.retry_domain_errors is True
        assert config.amadeus_hostname == "test"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from environment variables."""
        monkeypatch.setenv("CACHE_TTL_MINUTES", "10")
        monkeypatch.setenv("RATE_LIMIT_REQUESTS", "2")
        monkeypatch.setenv("MAX_RETRIES", "0")
        monkeypatch.setenv("RETRY_DOMAIN_ERRORS", "false")

        config = Settings(_env_file=None)

        assert config.cache_ttl_seconds == 600
        assert config.rate_limit_requests == 2
        assert config.max_retries == 0
        assert config.retry_domain_errors is False

    def test_env_file(self, tmp_path) -> None:
        """Test values are read from a .env file."""
        env_file = tmp_path / ".env"
        env_file.write_text("AMADEUS_HOSTNAME=production\nMAX_RETRIES=5\n")

        config = Settings(_env_file=env_file)

        assert config.amadeus_hostname == "production"
        assert config.max_retries == 5

    @pytest.mark.parametrize(
        "key,value",
        [
            ("RATE_LIMIT_REQUESTS", "0"),
            ("MAX_RETRIES", "-1"),
            ("CACHE_TTL_MINUTES", "0"),
        ],
    )
    def test_invalid_values(self, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
        """Test out-of-range values fail at load time."""
        monkeypatch.setenv(key, value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
