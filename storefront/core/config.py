"""Storefront Configuration"""

import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Bloemwinkel"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 3000
    base_url: str = "http://localhost:3000"

    # Backend API
    api_base_url: str = "http://localhost:8082"
    api_timeout: float = 15.0
    api_max_retries: int = 3
    api_retry_base_delay: float = 1.0

    # Localization
    default_locale: str = "nl"
    default_country: str = "NL"

    # Sessions and cart persistence
    session_cookie_name: str = "storefront_session"
    session_max_age_hours: int = 24 * 30
    session_max_count: int = 10000
    session_cleanup_interval_seconds: int = 300
    cart_storage_dir: Optional[str] = None

    # Checkout
    rate_limit_default_minutes: int = 30
    free_shipping_threshold: float = 50.0

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def get_cart_storage_dir(self) -> Optional[str]:
        """Get the cart storage directory, creating it when configured"""
        if not self.cart_storage_dir:
            return None

        os.makedirs(self.cart_storage_dir, exist_ok=True)
        return self.cart_storage_dir

    @property
    def backend_configured(self) -> bool:
        """Check if a backend API URL is configured"""
        return bool(self.api_base_url)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
