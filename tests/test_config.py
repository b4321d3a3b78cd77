"""Tests for settings defaults and environment overrides."""

from reserve_sampler.config import AppSettings, MarketSettings, RetrySettings
from reserve_sampler.retry import RetryPolicy


class TestDefaults:
    def test_market_defaults(self) -> None:
        market = MarketSettings()

        assert market.ui_pool_data_provider == "0x68100bD5345eA474D93577127C11F39FF8463e93"
        assert market.pool_addresses_provider == "0xe20fCBdBfFC4Dd138cE8b2E6FBb6CB49777ad64D"
        assert market.start_block == 28539000
        assert market.block_interval == 10

    def test_retry_policy_defaults(self) -> None:
        assert RetrySettings().to_policy() == RetryPolicy(
            max_attempts=3, initial_delay=2.0, multiplier=2.0
        )


class TestEnvironment:
    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("MARKET_BLOCK_INTERVAL", "25")
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("CHAIN__RPC_URL", "http://node:8545")

        assert MarketSettings().block_interval == 25
        assert RetrySettings().to_policy().max_attempts == 5
        assert AppSettings().chain.rpc_url == "http://node:8545"

    def test_log_format_from_env(self, monkeypatch) -> None:
        assert AppSettings().log_format == "console"
        monkeypatch.setenv("LOG_FORMAT", "json")

        assert AppSettings().log_format == "json"

    def test_test_fixture_settings(self, mock_settings: AppSettings) -> None:
        assert mock_settings.market.start_block == 100
        assert mock_settings.retry.to_policy().initial_delay == 0.0
        assert mock_settings.storage.db_path.endswith("snapshots.db")
