"""
Deployment context and configuration classes.

Instead of module-level variables holding each created resource's id,
functions receive a DeploymentContext containing the parsed configuration
and the initialized provider.

Lifecycle:
    1. Created by the CLI for one command
    2. Config and credentials are loaded from the project directory
    3. The Azure provider is initialized with credentials
    4. Passed to deploy / destroy / check
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, TYPE_CHECKING
from pathlib import Path

from crr_deployer import constants as CONSTANTS

if TYPE_CHECKING:
    from .schemas import RegionConfig
    from .sequencer import WaitOptions


@dataclass
class ProjectConfig:
    """
    Parsed project configuration.

    Attributes:
        mode: "DEBUG" or "PRODUCTION"
        primary: Names and placement in the source region
        secondary: Names and placement in the destination region
        service_level: Capacity pool tier ("Standard", "Premium", "Ultra")
        pool_size_bytes: Capacity pool size
        volume_size_bytes: Volume quota
        protocol_types: Volume protocols, e.g. ["NFSv3"]
        allowed_clients: CIDR allowed by the export policy rule
        replication_schedule: "_10minutely", "hourly" or "daily"
        cleanup_resources: Tear everything down after a deploy
        poll_interval_seconds: Seconds between status polls
        poll_max_retries: Polls after the first one
    """

    mode: str
    primary: 'RegionConfig'
    secondary: 'RegionConfig'
    service_level: str
    pool_size_bytes: int
    volume_size_bytes: int
    protocol_types: list[str] = field(default_factory=list)
    allowed_clients: str = CONSTANTS.DEFAULT_ALLOWED_CLIENTS
    replication_schedule: str = CONSTANTS.DEFAULT_REPLICATION_SCHEDULE
    cleanup_resources: bool = False
    poll_interval_seconds: float = CONSTANTS.DEFAULT_POLL_INTERVAL_SECONDS
    poll_max_retries: int = CONSTANTS.DEFAULT_POLL_MAX_RETRIES

    @property
    def debug_mode(self) -> bool:
        return self.mode.upper() == CONSTANTS.MODE_DEBUG

    def wait_options(self) -> 'WaitOptions':
        """Build the poll settings for the sequencer."""
        from .sequencer import WaitOptions
        return WaitOptions(interval=self.poll_interval_seconds, retries=self.poll_max_retries)


@dataclass
class DeploymentContext:
    """
    Encapsulates all state needed for one deployer command.

    Attributes:
        project_path: Directory holding config.json
        config: Parsed ProjectConfig
        credentials: Raw Azure credentials
        provider: Initialized AzureProvider (None until initialized)
    """

    project_path: Path
    config: ProjectConfig
    credentials: Dict[str, Any] = field(default_factory=dict)
    provider: Optional[Any] = None

    def require_provider(self) -> Any:
        """
        Return the initialized provider.

        Raises:
            ValueError: If the provider has not been initialized
        """
        if self.provider is None:
            raise ValueError("Azure provider has not been initialized. Call initialize_provider() first.")
        return self.provider
