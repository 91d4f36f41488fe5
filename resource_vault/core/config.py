from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Settings.

    This class loads variables from the environment (or .env file).
    Pydantic automatically validates types and missing values.
    """

    # --- Core Settings ---
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars (like SYSTEM_*)
    )

    # Environment: dev or prod
    environment: Literal["dev", "prod"] = "dev"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Root log level used by the entry points."
    )

    # --- Local Storage ---
    storage_dir: Path = Field(
        default=Path.home() / ".resource-vault",
        description="Directory holding one JSON file per store key",
    )
    collection_key: str = Field(
        default="resource-hub-items",
        description="Store key holding the resource collection",
    )
    theme_key: str = Field(
        default="resource-hub-theme",
        description="Store key holding the light/dark theme preference",
    )
    default_theme: Optional[Literal["light", "dark"]] = Field(
        default=None,
        description="Theme used on first load; falls back to the terminal preference",
    )

    # --- Local HTTP Surface ---
    http_host: str = "127.0.0.1"
    http_port: int = 8080

    def validate_storage_config(self):
        """Ensure the two persisted keys never collide."""
        if not self.collection_key or not self.theme_key:
            raise ValueError("COLLECTION_KEY and THEME_KEY must not be empty.")
        if self.collection_key == self.theme_key:
            raise ValueError("COLLECTION_KEY and THEME_KEY must be different store keys.")


# Create a global settings object
settings = Settings()

# Validate immediately upon import
try:
    settings.validate_storage_config()
except ValueError as e:
    print(f"Configuration Error: {e}")
