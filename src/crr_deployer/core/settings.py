from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from crr_deployer import constants as CONSTANTS


class Settings(BaseSettings):
    # Polling defaults (overridden per project by config.json "polling")
    POLL_INTERVAL_SECONDS: float = CONSTANTS.DEFAULT_POLL_INTERVAL_SECONDS
    POLL_MAX_RETRIES: int = CONSTANTS.DEFAULT_POLL_MAX_RETRIES

    # Logging
    DEBUG: bool = False

    # Used when no config_credentials_azure.json is present
    AZURE_SUBSCRIPTION_ID: str = Field(
        default="",
        validation_alias=AliasChoices("CRR_AZURE_SUBSCRIPTION_ID", "AZURE_SUBSCRIPTION_ID"),
    )

    model_config = SettingsConfigDict(env_prefix="CRR_", env_file=".env", extra="ignore")


def get_settings() -> Settings:
    """Read settings from the environment on every call so tests can monkeypatch env vars."""
    return Settings()
