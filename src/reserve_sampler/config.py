"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from reserve_sampler.retry import RetryPolicy


class ChainSettings(BaseSettings):
    """RPC connection settings for the chain being sampled."""

    model_config = SettingsConfigDict(env_prefix="CHAIN_")

    rpc_url: str = "https://mainnet.base.org"
    chain_id: int = 8453  # Base
    request_timeout: float = 30.0


class MarketSettings(BaseSettings):
    """Lending market contracts and sampling cadence.

    Defaults point at the Aave V3 market on Base.
    """

    model_config = SettingsConfigDict(env_prefix="MARKET_")

    ui_pool_data_provider: str = "0x68100bD5345eA474D93577127C11F39FF8463e93"
    pool_addresses_provider: str = "0xe20fCBdBfFC4Dd138cE8b2E6FBb6CB49777ad64D"
    start_block: int = 28539000
    block_interval: int = 10  # sample every N blocks


class RetrySettings(BaseSettings):
    """Backoff policy for the reserve fetch."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = 3
    initial_delay: float = 2.0  # seconds
    multiplier: float = 2.0

    def to_policy(self) -> RetryPolicy:
        """Return the immutable policy value consumed by retry_async."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            multiplier=self.multiplier,
        )


class TriggerSettings(BaseSettings):
    """Chain head polling for the block-interval trigger."""

    model_config = SettingsConfigDict(env_prefix="TRIGGER_")

    poll_interval: float = 2.0  # seconds between head polls
    max_blocks_per_poll: int = 50  # cap on sample blocks dispatched per poll


class StorageSettings(BaseSettings):
    """Snapshot database location."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/snapshots.db"


class ApiSettings(BaseSettings):
    """Read-only snapshot API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    chain: ChainSettings = ChainSettings()
    market: MarketSettings = MarketSettings()
    retry: RetrySettings = RetrySettings()
    trigger: TriggerSettings = TriggerSettings()
    storage: StorageSettings = StorageSettings()
    api: ApiSettings = ApiSettings()
