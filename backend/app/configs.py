"""Application settings loaded from environment variables.

Defines all environment-driven configuration used by the app. Every value
has a default so the API starts without a ``.env`` file; list values are
given as JSON, e.g. ``PRICE_COLLECTORS='["walmart", "metro"]'``.
"""

import logging
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrient_navigator.services.price_search.collectors.retailers import (
    RetailerConfig,
    resolve_retailers,
    RETAILERS,
)
from nutrient_navigator.services.price_search.sessions import SessionOptions
from nutrient_navigator.services.price_search.utils import DEFAULT_USER_AGENT

logger = logging.getLogger("configs")


class Settings(BaseSettings):
    """Typed configuration model for the application."""

    # Price collection
    PRICE_COLLECTORS: list[str] = Field(default_factory=lambda: ["walmart"])
    MAX_RESULTS_PER_STORE: int = Field(3, ge=1, le=20)
    COLLECTOR_TIMEOUT_SECONDS: float = Field(30.0, gt=0)
    SESSION_WAIT_TIMEOUT_SECONDS: float = Field(10.0, gt=0)
    NAVIGATION_TIMEOUT_SECONDS: float = Field(15.0, gt=0)
    BROWSER_HEADLESS: bool = True
    USER_AGENT: str = DEFAULT_USER_AGENT

    # API parameters
    ROOT_PATH_BACKEND: str = ""
    ALLOWED_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def session_options(self) -> SessionOptions:
        """Timeouts and client identity handed to every scrape session."""
        return SessionOptions(
            headless=self.BROWSER_HEADLESS,
            user_agent=self.USER_AGENT,
            navigation_timeout=self.NAVIGATION_TIMEOUT_SECONDS,
            wait_timeout=self.SESSION_WAIT_TIMEOUT_SECONDS,
        )

    def enabled_retailers(self) -> List[RetailerConfig]:
        """Resolve PRICE_COLLECTORS against the known retailers, in order."""
        unknown = [
            key for key in self.PRICE_COLLECTORS if key.strip().lower() not in RETAILERS
        ]
        if unknown:
            logger.warning("Ignoring unknown price collectors: %s", ", ".join(unknown))
        return resolve_retailers(self.PRICE_COLLECTORS)


settings = Settings()
