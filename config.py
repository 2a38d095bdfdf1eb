"""
config.py
Runtime settings (DB path, default admin, display), overridable through
CHURCH_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHURCH_")

    db_file: Path = Path(__file__).with_name("church.db")

    # Seeded on first run only
    admin_email: str = "admin@church.local"
    admin_password: str = "admin123"

    currency: str = "R$"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR


settings = Settings()
