# config.py
import logging
from typing import Union

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROMO_TEXT = "🔔 Follow the channel to catch new CMC listings first."


class Settings(BaseSettings):
    """
    Validated bot configuration.
    Built once at startup and handed to every component; never mutated.
    """

    # === COINMARKETCAP ===
    cmc_api_key: str = Field(..., min_length=1, description="CoinMarketCap Pro API key")
    cmc_base_url: str = Field("https://pro-api.coinmarketcap.com", description="CMC API base URL")
    http_timeout: float = Field(15, gt=0, le=120, description="Total timeout for one CMC request (seconds)")

    # === TELEGRAM ===
    telegram_bot_token: str = Field(..., min_length=1, description="Bot token from @BotFather")
    telegram_channel_id: Union[int, str] = Field(
        ...,
        validation_alias=AliasChoices("telegram_channel_id", "telegram_channel_username"),
        description="Channel ID (with minus) or @username"
    )

    # === SCHEDULING ===
    poll_interval_ms: int = Field(10 * 60 * 1000, ge=10_000, description="How often to check CMC")
    upgrade_delay_ms: int = Field(5 * 60 * 1000, ge=1_000, description="Delay before re-checking a partial alert")

    # === KEEP-ALIVE ===
    port: int = Field(3000, ge=1, le=65535, description="HTTP port for the liveness responder")
    keep_alive_host: str = Field("0.0.0.0", description="Interface for the liveness responder")
    keep_alive_body: str = Field("Bot is running", description="Static body returned by the liveness responder")

    # === MESSAGE ===
    promo_text: str = Field(DEFAULT_PROMO_TEXT, description="Footer appended to every alert (HTML)")

    # === STATE ===
    state_db_path: str = Field("alert_state.db", description="SQLite file for alert state, empty to disable")
    state_max_entries: int = Field(500, ge=1, description="How many token ids to remember")

    # === LOGGING ===
    log_level: str = Field("INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("telegram_channel_id", mode="before")
    @classmethod
    def validate_channel_id(cls, v) -> Union[int, str]:
        """Accepts a negative numeric ID (channel/supergroup) or an @username"""
        if isinstance(v, int):
            value = v
        else:
            text = str(v).strip()
            if text.startswith("@"):
                if len(text) < 2:
                    raise ValueError("TELEGRAM_CHANNEL_USERNAME must look like @channel_name")
                return text
            try:
                value = int(text)
            except ValueError:
                raise ValueError("TELEGRAM_CHANNEL_ID must be a negative number or an @username")

        if value >= 0:
            raise ValueError("TELEGRAM_CHANNEL_ID must be negative (e.g. -1001234567890)")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {valid_levels}")
        return v_upper

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def upgrade_delay_seconds(self) -> float:
        return self.upgrade_delay_ms / 1000


def load_settings(**overrides) -> Settings:
    """
    Loads and validates settings from the environment / .env.
    Exits with a readable report when a required value is missing or invalid.
    """
    logger = logging.getLogger(__name__)

    try:
        settings = Settings(**overrides)
        logger.info("✅ Configuration loaded")
        return settings

    except ValidationError as e:
        logger.error("❌ CONFIGURATION ERROR:")
        for error in e.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            message = error["msg"]
            logger.error(f"  • {field}: {message}")

        logger.error("💡 Check your .env file and make sure all required values are set.")
        raise SystemExit(1)
