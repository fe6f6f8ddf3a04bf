from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Blockscout explorer (Celo Sepolia by default)
    blockscout_api_url: str = "https://celo-sepolia.blockscout.com/api"
    blockscout_max_rps: float = 5.0

    # Per-call budgets
    gateway_timeout_sec: float = 10.0
    identity_timeout_sec: float = 15.0  # token identity + creation-time lookups

    # Per-analyzer budget inside a scan; an analyzer over budget gets its default
    scan_timeout_sec: float = 45.0

    # Parallel wallet-age lookups in the whale analyzer
    wallet_age_concurrency: int = 10

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    log_file: str = ""  # empty = console only


settings = Settings()
