"""
Configuration loading utilities.

This module provides functions to load and parse project configuration
from JSON files.

File Loading Order:
    1. config.json - Regions, names, sizes, tier, replication schedule (required)
    2. config_credentials_azure.json - Service principal credentials (optional)

Usage:
    from crr_deployer.core.config_loader import load_project_config

    config = load_project_config(Path("./projects/crr-demo"))
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from crr_deployer import constants as CONSTANTS
from .context import ProjectConfig
from .exceptions import ConfigurationError
from .schemas import DeployerConfig
from .settings import Settings, get_settings


def _load_json_file(file_path: Path, required: bool = True) -> Dict[str, Any]:
    """
    Load a JSON file and return its contents as a dictionary.

    Args:
        file_path: Path to the JSON file
        required: If True, raise error when file is missing. If False, return empty dict.

    Returns:
        Parsed JSON content as dictionary

    Raises:
        ConfigurationError: If file is missing (when required) or has invalid JSON
    """
    if not file_path.exists():
        if required:
            raise ConfigurationError(
                f"Required configuration file not found: {file_path.name}",
                config_file=str(file_path)
            )
        return {}

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file: {e}",
            config_file=str(file_path)
        )

    if not isinstance(content, dict):
        raise ConfigurationError(
            "Configuration file must contain a JSON object",
            config_file=str(file_path)
        )
    return content


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def load_project_config(project_path: Path, settings: Optional[Settings] = None) -> ProjectConfig:
    """
    Load and validate config.json for a project.

    Polling values fall back to the environment settings (CRR_POLL_INTERVAL_SECONDS,
    CRR_POLL_MAX_RETRIES) when config.json has no "polling" block.

    Args:
        project_path: Path to the project directory containing config files
        settings: Environment settings (read from the environment if omitted)

    Returns:
        ProjectConfig with all loaded settings

    Raises:
        ConfigurationError: If config.json is missing, invalid JSON, or fails validation
    """
    settings = settings or get_settings()
    config_path = project_path / CONSTANTS.CONFIG_FILE
    raw = _load_json_file(config_path, required=True)

    for field_name in CONSTANTS.CONFIG_SCHEMAS[CONSTANTS.CONFIG_FILE]:
        if field_name not in raw:
            raise ConfigurationError(
                f"Missing required field '{field_name}' in {CONSTANTS.CONFIG_FILE}",
                config_file=str(config_path)
            )

    try:
        parsed = DeployerConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {_format_validation_error(e)}",
            config_file=str(config_path)
        )

    interval = parsed.polling.interval_seconds
    retries = parsed.polling.max_retries

    return ProjectConfig(
        mode=CONSTANTS.MODE_DEBUG if settings.DEBUG else parsed.mode,
        primary=parsed.primary,
        secondary=parsed.secondary,
        service_level=parsed.service_level,
        pool_size_bytes=parsed.pool_size_bytes,
        volume_size_bytes=parsed.volume_size_bytes,
        protocol_types=list(parsed.protocol_types),
        allowed_clients=parsed.allowed_clients,
        replication_schedule=parsed.replication_schedule,
        cleanup_resources=parsed.cleanup_resources,
        poll_interval_seconds=interval if interval is not None else settings.POLL_INTERVAL_SECONDS,
        poll_max_retries=retries if retries is not None else settings.POLL_MAX_RETRIES,
    )


def load_credentials(project_path: Path, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Load Azure credentials for the project.

    Credentials come from config_credentials_azure.json when present.
    Otherwise only the subscription id is taken from the environment and
    authentication falls back to DefaultAzureCredential.

    Returns:
        Credentials dictionary, e.g. {"azure_subscription_id": "...", ...}

    Raises:
        ConfigurationError: If the credentials file lacks a subscription id
    """
    settings = settings or get_settings()
    creds_path = project_path / CONSTANTS.CONFIG_CREDENTIALS_AZURE_FILE
    credentials = _load_json_file(creds_path, required=False)

    if credentials:
        for field_name in CONSTANTS.CONFIG_SCHEMAS[CONSTANTS.CONFIG_CREDENTIALS_AZURE_FILE]:
            if not credentials.get(field_name):
                raise ConfigurationError(
                    f"Missing required field '{field_name}' in {CONSTANTS.CONFIG_CREDENTIALS_AZURE_FILE}",
                    config_file=str(creds_path)
                )
        return credentials

    if settings.AZURE_SUBSCRIPTION_ID:
        return {"azure_subscription_id": settings.AZURE_SUBSCRIPTION_ID}
    return {}
