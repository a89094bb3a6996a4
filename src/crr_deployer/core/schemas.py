"""
Pydantic models for config.json.

Values are only checked at the edge (ranges, enums, CIDR syntax). The
sequencer itself never validates resource properties.
"""

import ipaddress
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from crr_deployer import constants as CONSTANTS


ServiceLevel = Literal["Standard", "Premium", "Ultra"]
ProtocolType = Literal["NFSv3", "NFSv4.1"]
ReplicationSchedule = Literal["_10minutely", "hourly", "daily"]
Mode = Literal["DEBUG", "PRODUCTION"]


class RegionConfig(BaseModel):
    """Names and placement of the account/pool/volume chain in one region."""
    model_config = ConfigDict(extra="forbid")

    resource_group: str = Field(min_length=1, max_length=90)
    location: str = Field(min_length=1)
    account_name: str = Field(min_length=1, max_length=128)
    pool_name: str = Field(min_length=1, max_length=64)
    volume_name: str = Field(min_length=1, max_length=64)
    subnet_id: str = Field(min_length=1)

    @field_validator("subnet_id")
    @classmethod
    def subnet_must_be_delegated_subnet_id(cls, value: str) -> str:
        if "/subnets/" not in value.lower():
            raise ValueError("subnet_id must be a full subnet resource id (.../virtualNetworks/<vnet>/subnets/<subnet>)")
        return value


class PollingConfig(BaseModel):
    """Optional override of the poll interval and retry budget."""
    model_config = ConfigDict(extra="forbid")

    interval_seconds: Optional[float] = Field(default=None, ge=0)
    max_retries: Optional[int] = Field(default=None, ge=0)


class DeployerConfig(BaseModel):
    """Schema of config.json."""
    model_config = ConfigDict(extra="forbid")

    mode: Mode = CONSTANTS.MODE_PRODUCTION
    primary: RegionConfig
    secondary: RegionConfig
    service_level: ServiceLevel = CONSTANTS.DEFAULT_SERVICE_LEVEL
    pool_size_bytes: int = Field(
        default=CONSTANTS.POOL_SIZE_MIN_BYTES,
        ge=CONSTANTS.POOL_SIZE_MIN_BYTES,
        le=CONSTANTS.POOL_SIZE_MAX_BYTES,
    )
    volume_size_bytes: int = Field(
        default=CONSTANTS.VOLUME_SIZE_MIN_BYTES,
        ge=CONSTANTS.VOLUME_SIZE_MIN_BYTES,
        le=CONSTANTS.VOLUME_SIZE_MAX_BYTES,
    )
    protocol_types: List[ProtocolType] = Field(
        default_factory=lambda: list(CONSTANTS.DEFAULT_PROTOCOL_TYPES), min_length=1
    )
    allowed_clients: str = CONSTANTS.DEFAULT_ALLOWED_CLIENTS
    replication_schedule: ReplicationSchedule = CONSTANTS.DEFAULT_REPLICATION_SCHEDULE
    cleanup_resources: bool = False
    polling: PollingConfig = Field(default_factory=PollingConfig)

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("allowed_clients")
    @classmethod
    def allowed_clients_must_be_cidr(cls, value: str) -> str:
        for entry in value.split(","):
            try:
                ipaddress.ip_network(entry.strip(), strict=False)
            except ValueError:
                raise ValueError(f"'{entry.strip()}' is not a valid IP address or CIDR block")
        return value

    @model_validator(mode="after")
    def volume_must_fit_pool(self) -> "DeployerConfig":
        if self.volume_size_bytes > self.pool_size_bytes:
            raise ValueError("volume_size_bytes cannot exceed pool_size_bytes")
        if self.primary.location == self.secondary.location:
            raise ValueError("primary and secondary must be in different regions for cross-region replication")
        return self
