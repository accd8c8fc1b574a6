"""Configuration loading for gnewsdecoder."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/129.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Decoder settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="GNEWSDECODER_")

    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT, description="User-Agent header sent to Google News"
    )
    interval: float = Field(
        default=0.0,
        description="Delay in seconds between parameter retrieval and RPC decoding",
    )

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float) -> float:
        """Validate the timeout is positive."""
        if v <= 0:
            raise ValueError("GNEWSDECODER_REQUEST_TIMEOUT must be greater than zero.")
        return v

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        """Validate the user agent is not empty."""
        if not v or not v.strip():
            raise ValueError(
                "GNEWSDECODER_USER_AGENT must not be empty. "
                "The batchexecute endpoint misbehaves without a browser user agent."
            )
        return v.strip()

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        """Validate the delay is not negative."""
        if v < 0:
            raise ValueError("GNEWSDECODER_INTERVAL must not be negative.")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached decoder settings."""
    return Settings()
