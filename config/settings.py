"""
Configuration management for the Ad & Report Console.
Handles backend endpoints, session credentials, and playback tuning.
"""

import os
import logging
import streamlit as st
from typing import Dict, Any, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass
class AppConfig:
    """Application configuration settings."""
    api_base_url: str
    request_timeout_seconds: float = 20.0
    force_play_retry_ms: int = 120
    default_page_size: int = 10
    log_level: str = "INFO"
    auth_token: Optional[str] = None

    def __post_init__(self):
        self.api_base_url = self.api_base_url.rstrip("/")

    @property
    def force_play_retry_seconds(self) -> float:
        return self.force_play_retry_ms / 1000.0


class ConfigManager:
    """Manages application configuration and settings."""

    DEFAULT_API_BASE_URL = "http://localhost:5001"

    def __init__(self):
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from Streamlit secrets and environment."""
        if self._config is not None:
            return self._config

        api_base_url = self._get_setting("API_BASE_URL", self.DEFAULT_API_BASE_URL)
        if not api_base_url.startswith(("http://", "https://")):
            raise ValueError(
                f"API_BASE_URL must be an http(s) URL, got '{api_base_url}'. "
                "Please fix it in Streamlit secrets or environment variables."
            )

        self._config = AppConfig(
            api_base_url=api_base_url,
            request_timeout_seconds=self._get_float_setting("REQUEST_TIMEOUT_SECONDS", 20.0),
            force_play_retry_ms=self._get_int_setting("FORCE_PLAY_RETRY_MS", 120),
            default_page_size=self._get_int_setting("DEFAULT_PAGE_SIZE", 10),
            log_level=self._get_setting("LOG_LEVEL", "INFO").upper(),
            auth_token=self._get_secret_or_env("AUTH_TOKEN")
        )

        return self._config

    def reset(self):
        """Drop the cached configuration so the next load re-reads sources."""
        self._config = None

    def _get_secret_or_env(self, key: str) -> Optional[str]:
        """Get value from Streamlit secrets or environment variables."""
        # Try Streamlit secrets first
        try:
            if hasattr(st, 'secrets') and key in st.secrets:
                return st.secrets[key]
        except Exception:
            # st.secrets raises when no secrets.toml exists
            pass

        # Fall back to environment variables
        return os.getenv(key)

    def _get_setting(self, key: str, default: str) -> str:
        """Get string setting with default value."""
        value = self._get_secret_or_env(key)
        return value if value is not None else default

    def _get_int_setting(self, key: str, default: int) -> int:
        """Get integer setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                logging.getLogger(__name__).warning(f"Ignoring non-integer {key}={value!r}")
        return default

    def _get_float_setting(self, key: str, default: float) -> float:
        """Get float setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return float(value)
            except ValueError:
                logging.getLogger(__name__).warning(f"Ignoring non-numeric {key}={value!r}")
        return default

    def get_api_base_url(self) -> str:
        """Get backend base URL."""
        config = self.load_config()
        return config.api_base_url

    def get_request_timeout(self) -> float:
        """Get HTTP request timeout in seconds."""
        config = self.load_config()
        return config.request_timeout_seconds

    def get_force_play_retry_delay(self) -> float:
        """Get delay before the second force-play attempt, in seconds."""
        config = self.load_config()
        return config.force_play_retry_seconds

    def get_logging_settings(self) -> Dict[str, Any]:
        """Get keyword arguments for logging.basicConfig."""
        config = self.load_config()
        return {'level': getattr(logging, config.log_level, logging.INFO)}


# Global configuration manager instance
config_manager = ConfigManager()
