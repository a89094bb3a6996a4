"""
Replication Deployer - builds the fixed create plan and runs it.

Plan (step index: resource):
    0: NetApp account (primary region)
    1: Capacity pool   (parent 0)
    2: Volume          (parent 1)            - replication source
    3: NetApp account (secondary region)
    4: Capacity pool   (parent 3)
    5: Volume          (parent 4, source 2)  - data-protection destination

After step 5 is ready with its replication attached, replication is
authorized on the source volume. Teardown runs the plan in reverse:
replication edge, 5, 4, 3, 2, 1, 0.

Usage:
    context = create_context(Path("./projects/crr-demo"))
    result = deploy(context)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, TYPE_CHECKING

from crr_deployer.core.config_loader import load_credentials, load_project_config
from crr_deployer.core.context import DeploymentContext, ProjectConfig
from crr_deployer.core.exceptions import ConfigurationError, ResourceAbsentError, ResourceCreationError
from crr_deployer.core.sequencer import (
    CreateStep,
    HandleRegistry,
    ResourceHandle,
    ResourceKind,
    TeardownRecord,
    WaitOutcome,
    authorize_replication,
    create_ordered,
    resolve_ordered,
    teardown_ordered,
)
from crr_deployer.logger import logger

if TYPE_CHECKING:
    from crr_deployer.core.protocols import ResourceBackend

PRIMARY_ACCOUNT = 0
PRIMARY_POOL = 1
PRIMARY_VOLUME = 2
SECONDARY_ACCOUNT = 3
SECONDARY_POOL = 4
SECONDARY_VOLUME = 5


@dataclass
class DeploymentResult:
    """
    Outcome of a deploy run.

    Attributes:
        handles: Created handles in creation order
        outcomes: Readiness outcome per step index
        authorization: Readiness outcome of the source volume after authorization
        teardown: Teardown records when cleanup ran, otherwise empty
    """

    handles: tuple
    outcomes: Dict[int, WaitOutcome]
    authorization: Optional[WaitOutcome] = None
    teardown: List[TeardownRecord] = field(default_factory=list)

    @property
    def confirmed(self) -> bool:
        """True when every wait ended READY."""
        waits = list(self.outcomes.values())
        if self.authorization is not None:
            waits.append(self.authorization)
        return bool(waits) and all(outcome == WaitOutcome.READY for outcome in waits)


# ==========================================
# Context
# ==========================================

def create_context(project_path: Path) -> DeploymentContext:
    """
    Load configuration and credentials for a project directory.

    Raises:
        ConfigurationError: If config.json is missing or invalid
    """
    config = load_project_config(project_path)
    credentials = load_credentials(project_path)
    return DeploymentContext(project_path=project_path, config=config, credentials=credentials)


def initialize_provider(context: DeploymentContext):
    """Create and initialize the Azure provider on the context."""
    from crr_deployer.providers.azure.provider import AzureProvider

    provider = AzureProvider()
    try:
        provider.initialize_clients(context.credentials)
    except ValueError as e:
        raise ConfigurationError(str(e))
    context.provider = provider
    return provider


def get_backend(context: DeploymentContext) -> 'ResourceBackend':
    """Return the Azure NetApp backend, initializing the provider if needed."""
    from crr_deployer.providers.azure.backend import AzureNetAppBackend

    if context.provider is None:
        initialize_provider(context)
    return AzureNetAppBackend(context.require_provider())


def preflight(context: DeploymentContext) -> None:
    """
    Check that both resource groups exist before anything is created.

    Raises:
        ConfigurationError: If a resource group is missing
    """
    from crr_deployer.providers.azure.layers.layer_netapp import check_resource_group

    provider = context.require_provider()
    for region in (context.config.primary, context.config.secondary):
        if not check_resource_group(provider, region.resource_group):
            raise ConfigurationError(
                f"Resource group '{region.resource_group}' does not exist. Create it before deploying."
            )


# ==========================================
# Plan
# ==========================================

def build_create_plan(config: ProjectConfig) -> List[CreateStep]:
    """Build the six-step create plan for the configured regions."""
    primary = config.primary
    secondary = config.secondary

    pool_props = {
        "size_bytes": config.pool_size_bytes,
        "service_level": config.service_level,
    }

    def volume_props(region, remote_region=None) -> dict:
        props = {
            "size_bytes": config.volume_size_bytes,
            "service_level": config.service_level,
            "subnet_id": region.subnet_id,
            "protocol_types": list(config.protocol_types),
            "allowed_clients": config.allowed_clients,
        }
        if remote_region:
            props["replication_schedule"] = config.replication_schedule
            props["remote_volume_region"] = remote_region
        return props

    return [
        CreateStep(ResourceKind.ACCOUNT, primary.account_name,
                   resource_group=primary.resource_group, location=primary.location),
        CreateStep(ResourceKind.POOL, primary.pool_name, parent=PRIMARY_ACCOUNT,
                   properties=dict(pool_props), location=primary.location),
        CreateStep(ResourceKind.VOLUME, primary.volume_name, parent=PRIMARY_POOL,
                   properties=volume_props(primary), location=primary.location),
        CreateStep(ResourceKind.ACCOUNT, secondary.account_name,
                   resource_group=secondary.resource_group, location=secondary.location),
        CreateStep(ResourceKind.POOL, secondary.pool_name, parent=SECONDARY_ACCOUNT,
                   properties=dict(pool_props), location=secondary.location),
        CreateStep(ResourceKind.VOLUME, secondary.volume_name, parent=SECONDARY_POOL,
                   properties=volume_props(secondary, remote_region=primary.location),
                   replication_source=PRIMARY_VOLUME, location=secondary.location),
    ]


# ==========================================
# Commands
# ==========================================

def deploy(context: DeploymentContext, backend: Optional['ResourceBackend'] = None) -> DeploymentResult:
    """
    Create both regions' resources, authorize replication, optionally tear down.

    Args:
        context: Deployment context with loaded config
        backend: Resource backend (defaults to Azure, with a resource group preflight)

    Raises:
        ResourceCreationError: If a create call fails (nothing is rolled back)
    """
    if backend is None:
        backend = get_backend(context)
        preflight(context)

    config = context.config
    options = config.wait_options()
    steps = build_create_plan(config)
    registry = HandleRegistry()

    logger.info(
        f"Deploying cross-region replication: {config.primary.location} -> {config.secondary.location}"
    )
    try:
        create_ordered(backend, steps, options, registry=registry)
    except ResourceCreationError as e:
        logger.error(f"Deployment aborted after {len(e.created)} of {len(steps)} resources: {e}")
        raise

    destination_outcome = registry.outcome(SECONDARY_VOLUME)
    if destination_outcome != WaitOutcome.READY:
        logger.warning(
            f"Destination volume is {destination_outcome.value}; authorizing replication anyway"
        )

    authorization = authorize_replication(
        backend, registry[PRIMARY_VOLUME], registry[SECONDARY_VOLUME], options
    )
    result = DeploymentResult(
        handles=registry.handles,
        outcomes=registry.outcomes,
        authorization=authorization,
    )

    if result.confirmed:
        logger.info("✓ Cross-region replication deployed")
    else:
        logger.warning("Deployment finished, but not every resource was confirmed ready")

    if config.cleanup_resources:
        logger.info("Cleanup enabled, tearing down all resources")
        result.teardown = teardown_ordered(backend, registry.handles, options)

    return result


def destroy(context: DeploymentContext, backend: Optional['ResourceBackend'] = None) -> List[TeardownRecord]:
    """Tear down the configured resources, rediscovered from config."""
    if backend is None:
        backend = get_backend(context)

    handles = resolve_ordered(backend, build_create_plan(context.config))
    logger.info("Destroying cross-region replication resources")
    records = teardown_ordered(backend, handles, context.config.wait_options())

    if all(record.outcome == WaitOutcome.ABSENT for record in records):
        logger.info("✓ All resources deleted")
    else:
        logger.warning("Teardown finished, but not every deletion was confirmed")
    return records


def _safe_status(query, handle: ResourceHandle) -> str:
    try:
        return query(handle)
    except ResourceAbsentError:
        return "absent"


def info(context: DeploymentContext, backend: Optional['ResourceBackend'] = None) -> Dict[str, str]:
    """
    Report the provisioning state of every configured resource.

    Returns:
        Mapping of "<region>/<kind>:<name>" (region is "primary" or
        "secondary") to provisioning state ("absent" if not found), plus
        "secondary/replication:<volume>" for the destination volume
    """
    if backend is None:
        backend = get_backend(context)

    handles = resolve_ordered(backend, build_create_plan(context.config))
    status: Dict[str, str] = {}
    for index, handle in enumerate(handles):
        region = "primary" if index < SECONDARY_ACCOUNT else "secondary"
        status[f"{region}/{handle.kind.value}:{handle.name}"] = _safe_status(backend.get_status, handle)
        if handle.replication_source is not None:
            status[f"{region}/replication:{handle.name}"] = _safe_status(
                backend.get_replication_status, handle
            )

    for key, value in status.items():
        mark = "✓" if value in ("Succeeded", "Mirrored") else "✗"
        logger.info(f"{mark} {key}: {value}")
    return status
