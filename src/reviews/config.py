"""Reviews service settings, loaded from the environment.

Values are read from ``REVIEWS_*`` environment variables or a ``.env`` file.
Storage and event infrastructure are configured separately through protean's
``[tool.protean]`` section.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReviewSettings(BaseSettings):
    """Tunables for the review services and HTTP surface."""

    # Pagination
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # Seconds to wait on the order lookup before treating the purchase as unverified
    purchase_check_timeout: float = Field(default=2.0, gt=0)

    # Total attempts at writing the product aggregate (first try plus retries)
    aggregate_write_attempts: int = Field(default=2, ge=2)

    # Logging
    log_level: str | None = None
    log_dir: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="REVIEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> ReviewSettings:
    """Build settings from the current environment."""
    return ReviewSettings()
