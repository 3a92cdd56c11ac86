from decimal import Decimal
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str = "sqlite:///./roundups.db"
    RUN_MIGRATIONS: bool = True

    # Helius transfer feed
    HELIUS_API_KEY: str | None = None
    SOLANA_CLUSTER: str = "mainnet-beta"
    HELIUS_PAGE_SIZE: int = 100
    HELIUS_MAX_PAGES: int = 10  # bounds full historical scans

    # CoinGecko price feed
    COINGECKO_API_URL: str = "https://api.coingecko.com/api/v3"
    COINGECKO_API_KEY: str | None = None
    PRICE_CACHE_SECONDS: int = 60
    HISTORICAL_PRICE_WINDOW_SECONDS: int = 5 * 60

    # Outbound calls
    HTTP_TIMEOUT_SECONDS: float = 15.0
    PRICE_TIMEOUT_SECONDS: float = 10.0
    TRANSFER_FETCH_ATTEMPTS: int = 3
    TRANSFER_RETRY_DELAY_SECONDS: float = 1.0

    # Round-up accumulation
    INVESTMENT_THRESHOLD_USD: Decimal = Decimal("1.00")
    TRACK_DEFAULT_LIMIT: int = 100
    TRACK_MAX_LIMIT: int = 1000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    SLACK_WEBHOOK_URL: str | None = None

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def helius_network(self) -> Literal["mainnet", "devnet"]:
        """Helius hosts mainnet-beta under the plain 'mainnet' name."""
        if self.SOLANA_CLUSTER in ("mainnet", "mainnet-beta"):
            return "mainnet"
        return "devnet"

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development


settings = Settings()
