"""Configuration management."""
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv(override=False)

INSIGHT_API_STYLES = ("hf-inference", "openai")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./advisor.db")

    # JWT Authentication
    jwt_secret: str = os.getenv("JWT_SECRET", "devsecret")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "crypto-advisor")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "crypto-advisor")
    jwt_exp_minutes: int = int(os.getenv("JWT_EXP_MINUTES", str(7 * 24 * 60)))

    # Price source (CoinGecko simple price)
    price_api_url: str = "https://api.coingecko.com/api/v3/simple/price"
    price_asset_ids: str = "bitcoin,ethereum,solana,dogecoin"

    # News source (CryptoCompare)
    news_api_url: str = "https://min-api.cryptocompare.com/data/v2/news/"
    news_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("NEWS_API_KEY", "CRYPTOCOMPARE_API_KEY"),
    )

    # Text generation (Hugging Face inference router by default)
    insight_api_url: str = "https://router.huggingface.co/hf-inference/models"
    insight_model: str = Field(
        default="tiiuae/falcon-7b-instruct",
        validation_alias=AliasChoices("INSIGHT_MODEL", "HF_MODEL_NAME"),
    )
    insight_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("INSIGHT_API_KEY", "HF_API_KEY"),
    )
    insight_api_style: str = "hf-inference"  # or "openai" for chat-completions compatible servers

    # Meme of the day
    meme_api_url: str = "https://meme-api.com/gimme"

    # Every outbound call carries this timeout; the dashboard itself imposes none
    upstream_timeout_seconds: float = 5.0

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_origins: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

    def validate_insight_api_style(self) -> None:
        """Validate insight_api_style. Called at startup."""
        if self.insight_api_style not in INSIGHT_API_STYLES:
            raise ValueError(
                f"Invalid INSIGHT_API_STYLE='{self.insight_api_style}'. "
                f"Expected one of: {', '.join(INSIGHT_API_STYLES)}"
            )

    @property
    def price_asset_id_list(self) -> list:
        """Parse the tracked asset ids into a list."""
        return [s.strip().lower() for s in self.price_asset_ids.split(",") if s.strip()]

    @property
    def cors_origin_list(self) -> list:
        return [s.strip() for s in self.cors_origins.split(",") if s.strip()]


@dataclass(frozen=True)
class DashboardConfig:
    """Everything the dashboard adapters need, resolved once at construction.

    Adapters never read the process environment; tests build this directly.
    """
    price_api_url: str = "https://api.coingecko.com/api/v3/simple/price"
    price_asset_ids: Tuple[str, ...] = ("bitcoin", "ethereum", "solana", "dogecoin")
    news_api_url: str = "https://min-api.cryptocompare.com/data/v2/news/"
    news_api_key: Optional[str] = None
    insight_api_url: str = "https://router.huggingface.co/hf-inference/models"
    insight_model: str = "tiiuae/falcon-7b-instruct"
    insight_api_key: Optional[str] = None
    insight_api_style: str = "hf-inference"
    meme_api_url: str = "https://meme-api.com/gimme"
    timeout_seconds: float = 5.0

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DashboardConfig":
        return cls(
            price_api_url=settings.price_api_url,
            price_asset_ids=tuple(settings.price_asset_id_list),
            news_api_url=settings.news_api_url,
            news_api_key=settings.news_api_key or None,
            insight_api_url=settings.insight_api_url,
            insight_model=settings.insight_model,
            insight_api_key=settings.insight_api_key or None,
            insight_api_style=settings.insight_api_style,
            meme_api_url=settings.meme_api_url,
            timeout_seconds=settings.upstream_timeout_seconds,
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton. Used for test isolation."""
    global _settings
    _settings = None
