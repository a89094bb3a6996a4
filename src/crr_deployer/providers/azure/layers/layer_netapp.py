"""
Azure NetApp Files SDK Operations.

This module contains functions to create/get/destroy the NetApp resources
used for cross-region replication, plus the replication-specific calls.

Resources managed:
- NetApp Account: Regional container for capacity pools
- Capacity Pool: Sized, tiered capacity within an account
- Volume: NFS volume carved from a pool (source or data-protection)
- Replication: Edge from a data-protection volume to its source volume

Create and delete calls start the long-running operation and return
immediately. Completion is observed by polling the provisioning state
(see crr_deployer.core.sequencer).

Architecture:
    Account ──► Capacity Pool ──► Volume (src)
                                    ▲
                                    │ authorize_replication
                                    │
    Account ──► Capacity Pool ──► Volume (dst, DataProtection)
"""

from typing import TYPE_CHECKING, List, Optional
import logging

from azure.core.exceptions import (
    ResourceNotFoundError,
    ClientAuthenticationError,
    HttpResponseError,
    AzureError
)
from azure.mgmt.netapp.models import (
    AuthorizeRequest,
    CapacityPool,
    ExportPolicyRule,
    NetAppAccount,
    ReplicationObject,
    Volume,
    VolumePropertiesDataProtection,
    VolumePropertiesExportPolicy,
)

from crr_deployer import constants as CONSTANTS

if TYPE_CHECKING:
    from crr_deployer.providers.azure.provider import AzureProvider

logger = logging.getLogger(__name__)


def _require(provider: 'AzureProvider') -> None:
    if provider is None:
        raise ValueError("provider is required")


# ==========================================
# Resource Group Preflight
# ==========================================

def check_resource_group(provider: 'AzureProvider', resource_group: str) -> bool:
    """
    Check if a Resource Group exists.

    Args:
        provider: Azure Provider instance
        resource_group: Resource group name

    Returns:
        True if the Resource Group exists, False otherwise
    """
    _require(provider)

    try:
        provider.clients["resource"].resource_groups.get(resource_group)
        logger.info(f"✓ Resource Group exists: {resource_group}")
        return True
    except ResourceNotFoundError:
        logger.info(f"✗ Resource Group not found: {resource_group}")
        return False


# ==========================================
# NetApp Account Management
# ==========================================

def create_netapp_account(
    provider: 'AzureProvider',
    resource_group: str,
    location: str,
    account_name: str
) -> str:
    """
    Start creating a NetApp account.

    Args:
        provider: Azure Provider instance with initialized clients
        resource_group: Resource group to create the account in
        location: Azure region
        account_name: NetApp account name

    Returns:
        The account resource id

    Raises:
        azure.core.exceptions.HttpResponseError: If the create request is rejected
    """
    _require(provider)
    logger.info(f"Creating NetApp Account: {account_name} in {location}")

    try:
        provider.clients["netapp"].accounts.begin_create_or_update(
            resource_group_name=resource_group,
            account_name=account_name,
            body=NetAppAccount(location=location)
        )
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED creating NetApp Account: {e.message}")
        raise
    except HttpResponseError as e:
        logger.error(f"Failed to create NetApp Account: {e.status_code} - {e.message}")
        raise
    except AzureError as e:
        logger.error(f"Azure error creating NetApp Account: {type(e).__name__}: {e}")
        raise

    return provider.naming.account_id(resource_group, account_name)


def get_netapp_account_state(provider: 'AzureProvider', resource_group: str, account_name: str) -> str:
    """
    Get the provisioning state of a NetApp account.

    Raises:
        azure.core.exceptions.ResourceNotFoundError: If the account does not exist
    """
    _require(provider)
    account = provider.clients["netapp"].accounts.get(
        resource_group_name=resource_group,
        account_name=account_name
    )
    return account.provisioning_state


def destroy_netapp_account(provider: 'AzureProvider', resource_group: str, account_name: str) -> None:
    """
    Start deleting a NetApp account.

    All capacity pools in the account must be deleted first.
    """
    _require(provider)
    logger.info(f"Deleting NetApp Account: {account_name}")

    try:
        provider.clients["netapp"].accounts.begin_delete(
            resource_group_name=resource_group,
            account_name=account_name
        )
    except ResourceNotFoundError:
        logger.info(f"NetApp Account already deleted: {account_name}")


# ==========================================
# Capacity Pool Management
# ==========================================

def create_capacity_pool(
    provider: 'AzureProvider',
    resource_group: str,
    location: str,
    account_name: str,
    pool_name: str,
    size_bytes: int,
    service_level: str
) -> str:
    """
    Start creating a capacity pool in an existing NetApp account.

    Args:
        provider: Azure Provider instance
        resource_group: Resource group of the account
        location: Azure region (same as the account)
        account_name: Parent NetApp account
        pool_name: Capacity pool name
        size_bytes: Pool size in bytes (4 TiB - 500 TiB)
        service_level: "Standard", "Premium" or "Ultra"

    Returns:
        The pool resource id
    """
    _require(provider)
    logger.info(f"Creating Capacity Pool: {pool_name} ({service_level}, {size_bytes} bytes)")

    try:
        provider.clients["netapp"].pools.begin_create_or_update(
            resource_group_name=resource_group,
            account_name=account_name,
            pool_name=pool_name,
            body=CapacityPool(
                location=location,
                size=size_bytes,
                service_level=service_level
            )
        )
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED creating Capacity Pool: {e.message}")
        raise
    except HttpResponseError as e:
        logger.error(f"Failed to create Capacity Pool: {e.status_code} - {e.message}")
        raise
    except AzureError as e:
        logger.error(f"Azure error creating Capacity Pool: {type(e).__name__}: {e}")
        raise

    return provider.naming.pool_id(resource_group, account_name, pool_name)


def get_capacity_pool_state(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str
) -> str:
    """Get the provisioning state of a capacity pool."""
    _require(provider)
    pool = provider.clients["netapp"].pools.get(
        resource_group_name=resource_group,
        account_name=account_name,
        pool_name=pool_name
    )
    return pool.provisioning_state


def destroy_capacity_pool(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str
) -> None:
    """Start deleting a capacity pool. All volumes in the pool must be deleted first."""
    _require(provider)
    logger.info(f"Deleting Capacity Pool: {pool_name}")

    try:
        provider.clients["netapp"].pools.begin_delete(
            resource_group_name=resource_group,
            account_name=account_name,
            pool_name=pool_name
        )
    except ResourceNotFoundError:
        logger.info(f"Capacity Pool already deleted: {pool_name}")


# ==========================================
# Volume Management
# ==========================================

def build_export_policy(allowed_clients: str, protocol_types: List[str]) -> VolumePropertiesExportPolicy:
    """Single read-write rule for the allowed client range."""
    rule = ExportPolicyRule(
        rule_index=1,
        allowed_clients=allowed_clients,
        unix_read_only=False,
        unix_read_write=True,
        cifs=False,
        nfsv3="NFSv3" in protocol_types,
        nfsv41="NFSv4.1" in protocol_types,
    )
    return VolumePropertiesExportPolicy(rules=[rule])


def create_volume(
    provider: 'AzureProvider',
    resource_group: str,
    location: str,
    account_name: str,
    pool_name: str,
    volume_name: str,
    size_bytes: int,
    service_level: str,
    subnet_id: str,
    protocol_types: List[str],
    allowed_clients: str,
    remote_volume_id: Optional[str] = None,
    remote_volume_region: Optional[str] = None,
    replication_schedule: str = CONSTANTS.DEFAULT_REPLICATION_SCHEDULE
) -> str:
    """
    Start creating a volume.

    When remote_volume_id is given the volume is created as a
    data-protection (replication destination) volume pointing at it.

    Args:
        provider: Azure Provider instance
        resource_group: Resource group of the account
        location: Azure region (same as the account)
        account_name: Parent NetApp account
        pool_name: Parent capacity pool
        volume_name: Volume name, also used to derive the file path
        size_bytes: Volume quota in bytes
        service_level: Service level of the parent pool
        subnet_id: Delegated subnet resource id
        protocol_types: e.g. ["NFSv3"]
        allowed_clients: CIDR for the export policy rule
        remote_volume_id: Source volume id for a data-protection volume
        remote_volume_region: Region of the source volume
        replication_schedule: "_10minutely", "hourly" or "daily"

    Returns:
        The volume resource id
    """
    _require(provider)

    volume = Volume(
        location=location,
        creation_token=provider.naming.creation_token(volume_name),
        usage_threshold=size_bytes,
        service_level=service_level,
        subnet_id=subnet_id,
        protocol_types=list(protocol_types),
        export_policy=build_export_policy(allowed_clients, protocol_types),
    )

    if remote_volume_id:
        logger.info(f"Creating Data Protection Volume: {volume_name} (replicating {remote_volume_id})")
        volume.volume_type = CONSTANTS.VOLUME_TYPE_DATA_PROTECTION
        volume.data_protection = VolumePropertiesDataProtection(
            replication=ReplicationObject(
                endpoint_type=CONSTANTS.REPLICATION_ENDPOINT_DESTINATION,
                remote_volume_resource_id=remote_volume_id,
                remote_volume_region=remote_volume_region,
                replication_schedule=replication_schedule,
            )
        )
    else:
        logger.info(f"Creating Volume: {volume_name}")

    try:
        provider.clients["netapp"].volumes.begin_create_or_update(
            resource_group_name=resource_group,
            account_name=account_name,
            pool_name=pool_name,
            volume_name=volume_name,
            body=volume
        )
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED creating Volume: {e.message}")
        raise
    except HttpResponseError as e:
        logger.error(f"Failed to create Volume: {e.status_code} - {e.message}")
        raise
    except AzureError as e:
        logger.error(f"Azure error creating Volume: {type(e).__name__}: {e}")
        raise

    return provider.naming.volume_id(resource_group, account_name, pool_name, volume_name)


def get_volume_state(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str,
    volume_name: str
) -> str:
    """Get the provisioning state of a volume."""
    _require(provider)
    volume = provider.clients["netapp"].volumes.get(
        resource_group_name=resource_group,
        account_name=account_name,
        pool_name=pool_name,
        volume_name=volume_name
    )
    return volume.provisioning_state


def destroy_volume(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str,
    volume_name: str
) -> None:
    """Start deleting a volume. A replication edge must be removed first."""
    _require(provider)
    logger.info(f"Deleting Volume: {volume_name}")

    try:
        provider.clients["netapp"].volumes.begin_delete(
            resource_group_name=resource_group,
            account_name=account_name,
            pool_name=pool_name,
            volume_name=volume_name
        )
    except ResourceNotFoundError:
        logger.info(f"Volume already deleted: {volume_name}")


# ==========================================
# Replication Management
# ==========================================

def get_replication_status(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str,
    volume_name: str
) -> str:
    """
    Get the status of the replication edge on a volume.

    Returns:
        The mirror state (e.g. "Uninitialized", "Mirrored", "Broken"),
        falling back to the relationship status

    Raises:
        azure.core.exceptions.HttpResponseError: If no replication is attached
    """
    _require(provider)
    status = provider.clients["netapp"].volumes.replication_status(
        resource_group_name=resource_group,
        account_name=account_name,
        pool_name=pool_name,
        volume_name=volume_name
    )
    return status.mirror_state or status.relationship_status or "Unknown"


def authorize_replication(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str,
    volume_name: str,
    remote_volume_id: str
) -> None:
    """
    Authorize replication on the source volume towards a destination volume.

    Args:
        provider: Azure Provider instance
        resource_group, account_name, pool_name, volume_name: Source volume
        remote_volume_id: Resource id of the destination volume
    """
    _require(provider)
    logger.info(f"Authorizing replication on source volume: {volume_name}")

    try:
        provider.clients["netapp"].volumes.begin_authorize_replication(
            resource_group_name=resource_group,
            account_name=account_name,
            pool_name=pool_name,
            volume_name=volume_name,
            body=AuthorizeRequest(remote_volume_resource_id=remote_volume_id)
        )
        logger.info(f"✓ Replication authorization requested: {volume_name}")
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED authorizing replication: {e.message}")
        raise
    except HttpResponseError as e:
        logger.error(f"Failed to authorize replication: {e.status_code} - {e.message}")
        raise
    except AzureError as e:
        logger.error(f"Azure error authorizing replication: {type(e).__name__}: {e}")
        raise


def remove_replication(
    provider: 'AzureProvider',
    resource_group: str,
    account_name: str,
    pool_name: str,
    volume_name: str
) -> None:
    """
    Break and delete the replication edge on a destination volume.

    The break must complete before the delete is accepted, so the break
    poller is awaited. The break is skipped when the mirror state already
    reports "Broken".
    """
    _require(provider)
    volumes = provider.clients["netapp"].volumes

    mirror_state = get_replication_status(provider, resource_group, account_name, pool_name, volume_name)
    if mirror_state == CONSTANTS.MIRROR_STATE_BROKEN:
        logger.info(f"Replication already broken: {volume_name}")
    else:
        logger.info(f"Breaking replication on volume: {volume_name}")
        try:
            volumes.begin_break_replication(
                resource_group_name=resource_group,
                account_name=account_name,
                pool_name=pool_name,
                volume_name=volume_name
            ).result()
        except ResourceNotFoundError:
            raise
        except HttpResponseError as e:
            logger.error(f"Failed to break replication: {e.status_code} - {e.message}")
            raise

    logger.info(f"Deleting replication on volume: {volume_name}")
    try:
        volumes.begin_delete_replication(
            resource_group_name=resource_group,
            account_name=account_name,
            pool_name=pool_name,
            volume_name=volume_name
        )
    except ClientAuthenticationError as e:
        logger.error(f"PERMISSION DENIED deleting replication: {e.message}")
        raise
    except HttpResponseError as e:
        logger.error(f"Failed to delete replication: {e.status_code} - {e.message}")
        raise
