"""
Azure NetApp Files implementation of the ResourceBackend protocol.

Dispatches the sequencer's verbs to the layer_netapp SDK functions by
resource kind and translates the SDK's "not found" errors into
ResourceAbsentError, which is the only error absence polling accepts.

Step property bags:
    Pool:   {"size_bytes": int, "service_level": str}
    Volume: {"size_bytes": int, "service_level": str, "subnet_id": str,
             "protocol_types": [str], "allowed_clients": str,
             "replication_schedule": str, "remote_volume_region": str}
"""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from crr_deployer import constants as CONSTANTS
from crr_deployer.core.exceptions import ResourceAbsentError
from crr_deployer.core.sequencer import CreateStep, ResourceHandle, ResourceKind
from crr_deployer.providers.azure.layers import layer_netapp
from crr_deployer.providers.azure.naming import NetAppResourceParts

if TYPE_CHECKING:
    from crr_deployer.providers.azure.provider import AzureProvider

# Error codes the NetApp RP returns when a volume has no replication attached
REPLICATION_MISSING_CODES = {"VolumeReplicationMissing", "VolumeReplicationMissingFor"}


def _is_not_found(error: HttpResponseError) -> bool:
    if isinstance(error, ResourceNotFoundError) or error.status_code == 404:
        return True
    code = getattr(getattr(error, "error", None), "code", None)
    return code in REPLICATION_MISSING_CODES


@contextmanager
def _absence_on_not_found(handle: ResourceHandle) -> Iterator[None]:
    try:
        yield
    except HttpResponseError as e:
        if _is_not_found(e):
            raise ResourceAbsentError(handle.resource_id, detail=str(e.message or e)) from e
        raise


class AzureNetAppBackend:
    """
    ResourceBackend backed by NetAppManagementClient.

    Attributes:
        provider: Initialized AzureProvider
    """

    def __init__(self, provider: 'AzureProvider'):
        if provider is None:
            raise ValueError("provider is required")
        self._provider = provider

    @property
    def provider(self) -> 'AzureProvider':
        return self._provider

    def _parts(self, handle: ResourceHandle) -> NetAppResourceParts:
        return self._provider.naming.parse(handle.resource_id)

    # ==========================================
    # Create / Resolve
    # ==========================================

    def _resource_id(self, step: CreateStep, parent: Optional[ResourceHandle]) -> str:
        naming = self._provider.naming
        if step.kind == ResourceKind.ACCOUNT:
            return naming.account_id(step.resource_group, step.name)

        parent_parts = self._parts(parent)
        if step.kind == ResourceKind.POOL:
            return naming.pool_id(parent_parts.resource_group, parent_parts.account_name, step.name)
        return naming.volume_id(
            parent_parts.resource_group, parent_parts.account_name, parent_parts.pool_name, step.name
        )

    def resolve(
        self,
        step: CreateStep,
        parent: Optional[ResourceHandle],
        replication_source: Optional[ResourceHandle] = None
    ) -> ResourceHandle:
        return ResourceHandle(
            kind=step.kind,
            resource_id=self._resource_id(step, parent),
            name=step.name,
            parent=parent,
            replication_source=replication_source,
        )

    def create(
        self,
        step: CreateStep,
        parent: Optional[ResourceHandle],
        replication_source: Optional[ResourceHandle] = None
    ) -> ResourceHandle:
        provider = self._provider
        props = step.properties

        if step.kind == ResourceKind.ACCOUNT:
            resource_id = layer_netapp.create_netapp_account(
                provider, step.resource_group, step.location, step.name
            )
        elif step.kind == ResourceKind.POOL:
            parent_parts = self._parts(parent)
            resource_id = layer_netapp.create_capacity_pool(
                provider,
                parent_parts.resource_group,
                step.location,
                parent_parts.account_name,
                step.name,
                size_bytes=props["size_bytes"],
                service_level=props["service_level"],
            )
        else:
            parent_parts = self._parts(parent)
            resource_id = layer_netapp.create_volume(
                provider,
                parent_parts.resource_group,
                step.location,
                parent_parts.account_name,
                parent_parts.pool_name,
                step.name,
                size_bytes=props["size_bytes"],
                service_level=props["service_level"],
                subnet_id=props["subnet_id"],
                protocol_types=props.get("protocol_types", CONSTANTS.DEFAULT_PROTOCOL_TYPES),
                allowed_clients=props.get("allowed_clients", CONSTANTS.DEFAULT_ALLOWED_CLIENTS),
                remote_volume_id=replication_source.resource_id if replication_source else None,
                remote_volume_region=props.get("remote_volume_region"),
                replication_schedule=props.get(
                    "replication_schedule", CONSTANTS.DEFAULT_REPLICATION_SCHEDULE
                ),
            )

        return ResourceHandle(
            kind=step.kind,
            resource_id=resource_id,
            name=step.name,
            parent=parent,
            replication_source=replication_source,
        )

    # ==========================================
    # Status Queries
    # ==========================================

    def get_status(self, handle: ResourceHandle) -> str:
        parts = self._parts(handle)
        with _absence_on_not_found(handle):
            if handle.kind == ResourceKind.ACCOUNT:
                return layer_netapp.get_netapp_account_state(
                    self._provider, parts.resource_group, parts.account_name
                )
            if handle.kind == ResourceKind.POOL:
                return layer_netapp.get_capacity_pool_state(
                    self._provider, parts.resource_group, parts.account_name, parts.pool_name
                )
            return layer_netapp.get_volume_state(
                self._provider, parts.resource_group, parts.account_name, parts.pool_name, parts.volume_name
            )

    def get_replication_status(self, handle: ResourceHandle) -> str:
        if handle.kind != ResourceKind.VOLUME:
            raise ValueError(f"Replication status is only defined for volumes, got {handle.kind.value}")
        parts = self._parts(handle)
        with _absence_on_not_found(handle):
            return layer_netapp.get_replication_status(
                self._provider, parts.resource_group, parts.account_name, parts.pool_name, parts.volume_name
            )

    # ==========================================
    # Delete / Replication
    # ==========================================

    def delete(self, handle: ResourceHandle) -> None:
        parts = self._parts(handle)
        if handle.kind == ResourceKind.ACCOUNT:
            layer_netapp.destroy_netapp_account(self._provider, parts.resource_group, parts.account_name)
        elif handle.kind == ResourceKind.POOL:
            layer_netapp.destroy_capacity_pool(
                self._provider, parts.resource_group, parts.account_name, parts.pool_name
            )
        else:
            layer_netapp.destroy_volume(
                self._provider, parts.resource_group, parts.account_name, parts.pool_name, parts.volume_name
            )

    def authorize_replication(self, source: ResourceHandle, destination: ResourceHandle) -> None:
        parts = self._parts(source)
        layer_netapp.authorize_replication(
            self._provider,
            parts.resource_group,
            parts.account_name,
            parts.pool_name,
            parts.volume_name,
            remote_volume_id=destination.resource_id,
        )

    def remove_replication(self, handle: ResourceHandle) -> None:
        parts = self._parts(handle)
        with _absence_on_not_found(handle):
            layer_netapp.remove_replication(
                self._provider, parts.resource_group, parts.account_name, parts.pool_name, parts.volume_name
            )
