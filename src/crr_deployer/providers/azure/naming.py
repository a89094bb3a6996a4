"""
Azure NetApp Files resource id conventions.

Handles passed around by the sequencer are full ARM resource ids. This
module builds them from names and splits them back into the name parts
the NetApp SDK operations expect.

Resource Id Layout:
    Account: /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.NetApp/netAppAccounts/{account}
    Pool:    {account id}/capacityPools/{pool}
    Volume:  {pool id}/volumes/{volume}

Usage:
    naming = AzureNetAppNaming("00000000-0000-0000-0000-000000000000")
    volume_id = naming.volume_id("rg-primary", "anf-primary", "pool1", "vol1")
    parts = naming.parse(volume_id)  # NetAppResourceParts(resource_group="rg-primary", ...)
"""

import re
from dataclasses import dataclass
from typing import Optional

from azure.mgmt.core.tools import is_valid_resource_id, parse_resource_id, resource_id

from crr_deployer import constants as CONSTANTS


@dataclass(frozen=True)
class NetAppResourceParts:
    """Name parts of a NetApp resource id."""

    subscription_id: str
    resource_group: str
    account_name: str
    pool_name: Optional[str] = None
    volume_name: Optional[str] = None


class AzureNetAppNaming:
    """
    Builds and parses NetApp resource ids for one subscription.

    Attributes:
        subscription_id: Subscription the resources live in
    """

    def __init__(self, subscription_id: str):
        self._subscription_id = subscription_id

    @property
    def subscription_id(self) -> str:
        return self._subscription_id

    def account_id(self, resource_group: str, account_name: str) -> str:
        return resource_id(
            subscription=self._subscription_id,
            resource_group=resource_group,
            namespace=CONSTANTS.NETAPP_NAMESPACE,
            type=CONSTANTS.NETAPP_ACCOUNT_TYPE,
            name=account_name,
        )

    def pool_id(self, resource_group: str, account_name: str, pool_name: str) -> str:
        return resource_id(
            subscription=self._subscription_id,
            resource_group=resource_group,
            namespace=CONSTANTS.NETAPP_NAMESPACE,
            type=CONSTANTS.NETAPP_ACCOUNT_TYPE,
            name=account_name,
            child_type_1=CONSTANTS.NETAPP_POOL_TYPE,
            child_name_1=pool_name,
        )

    def volume_id(self, resource_group: str, account_name: str, pool_name: str, volume_name: str) -> str:
        return resource_id(
            subscription=self._subscription_id,
            resource_group=resource_group,
            namespace=CONSTANTS.NETAPP_NAMESPACE,
            type=CONSTANTS.NETAPP_ACCOUNT_TYPE,
            name=account_name,
            child_type_1=CONSTANTS.NETAPP_POOL_TYPE,
            child_name_1=pool_name,
            child_type_2=CONSTANTS.NETAPP_VOLUME_TYPE,
            child_name_2=volume_name,
        )

    @staticmethod
    def parse(netapp_resource_id: str) -> NetAppResourceParts:
        """
        Split a NetApp account, pool or volume id into its name parts.

        Raises:
            ValueError: If the id is not a Microsoft.NetApp resource id
        """
        if not is_valid_resource_id(netapp_resource_id):
            raise ValueError(f"Not a valid resource id: {netapp_resource_id}")

        parts = parse_resource_id(netapp_resource_id)
        if (parts.get("namespace") or "").lower() != CONSTANTS.NETAPP_NAMESPACE.lower():
            raise ValueError(f"Not a NetApp resource id: {netapp_resource_id}")

        return NetAppResourceParts(
            subscription_id=parts["subscription"],
            resource_group=parts["resource_group"],
            account_name=parts["name"],
            pool_name=parts.get("child_name_1"),
            volume_name=parts.get("child_name_2"),
        )

    @staticmethod
    def creation_token(volume_name: str) -> str:
        """
        Derive the volume file path (creation token) from the volume name.

        The file path must start with a letter and contain only letters,
        digits and hyphens.
        """
        token = re.sub(r'[^A-Za-z0-9-]', '-', volume_name)
        if not token[:1].isalpha():
            token = f"v{token}"
        return token[:80]
