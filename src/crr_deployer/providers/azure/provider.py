"""
Azure provider - credential and SDK client initialization.

SDK Clients Initialized:
    - NetAppManagementClient: NetApp accounts, capacity pools, volumes, replication
    - ResourceManagementClient: Resource Group preflight checks

Usage:
    from crr_deployer.providers.azure.provider import AzureProvider

    provider = AzureProvider()
    provider.initialize_clients(credentials)
    # Access clients: provider.clients["netapp"], provider.clients["resource"]
"""

from typing import Dict, Any, Optional

from crr_deployer.providers.azure.naming import AzureNetAppNaming


class AzureProvider:
    """
    Manages Azure SDK clients and resource-id naming for one subscription.

    Attributes:
        name: Provider identifier ("azure")
        naming: AzureNetAppNaming for the subscription
        clients: Dictionary of initialized Azure SDK clients
    """

    name: str = "azure"

    def __init__(self):
        self._subscription_id: str = ""
        self._naming: Optional[AzureNetAppNaming] = None
        self._clients: Dict[str, Any] = {}
        self._initialized: bool = False

    @property
    def subscription_id(self) -> str:
        """Get the Azure subscription ID."""
        return self._subscription_id

    @property
    def naming(self) -> AzureNetAppNaming:
        """Get the resource-id naming helper."""
        if not self._naming:
            raise RuntimeError("Provider not initialized. Call initialize_clients first.")
        return self._naming

    @property
    def clients(self) -> Dict[str, Any]:
        """Get the dictionary of Azure SDK clients."""
        if not self._initialized:
            raise RuntimeError("Provider not initialized. Call initialize_clients first.")
        return self._clients

    def initialize_clients(self, credentials: dict) -> None:
        """
        Initialize Azure SDK clients.

        Args:
            credentials: Azure credentials dictionary with:
                - azure_subscription_id: Azure subscription ID (REQUIRED)
                - azure_tenant_id: Azure AD tenant ID (optional)
                - azure_client_id: Service principal client ID (optional)
                - azure_client_secret: Service principal secret (optional)

        Raises:
            ValueError: If the subscription ID is missing
        """
        # Fail-fast: Required credentials MUST be provided
        if not credentials.get("azure_subscription_id"):
            raise ValueError(
                "Missing required credential 'azure_subscription_id'. "
                "Provide it in config_credentials_azure.json or the AZURE_SUBSCRIPTION_ID environment variable."
            )
        self._subscription_id = credentials["azure_subscription_id"]
        self._naming = AzureNetAppNaming(self._subscription_id)

        credential = self._get_credential(credentials)
        self._initialize_sdk_clients(credential)

        self._initialized = True

    def _get_credential(self, credentials: dict) -> Any:
        """Get Azure credential for SDK clients."""
        from azure.identity import DefaultAzureCredential, ClientSecretCredential

        client_id = credentials.get("azure_client_id")
        client_secret = credentials.get("azure_client_secret")
        tenant_id = credentials.get("azure_tenant_id")

        if client_id and client_secret and tenant_id:
            return ClientSecretCredential(
                tenant_id=tenant_id,
                client_id=client_id,
                client_secret=client_secret
            )
        else:
            return DefaultAzureCredential()

    def _initialize_sdk_clients(self, credential: Any) -> None:
        """Initialize all required Azure SDK clients."""
        from azure.mgmt.netapp import NetAppManagementClient
        from azure.mgmt.resource import ResourceManagementClient

        subscription_id = self._subscription_id

        self._clients["netapp"] = NetAppManagementClient(credential=credential, subscription_id=subscription_id)
        self._clients["resource"] = ResourceManagementClient(credential=credential, subscription_id=subscription_id)
