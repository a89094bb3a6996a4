"""
Core abstractions for the replication deployer.

Modules:
    protocols: Interface definitions (ResourceBackend)
    sequencer: Ordered create, readiness/absence polling, ordered teardown
    context: DeploymentContext and ProjectConfig
    config_loader: Configuration loading utilities
    exceptions: Custom exception types for deployment operations

Usage:
    from crr_deployer.core import create_ordered, teardown_ordered, WaitOptions

    registry = create_ordered(backend, steps, WaitOptions())
    teardown_ordered(backend, registry.handles)
"""

from .protocols import ResourceBackend
from .context import DeploymentContext, ProjectConfig
from .exceptions import (
    DeploymentError,
    ConfigurationError,
    ResourceCreationError,
    ResourceDeletionError,
    ResourceAbsentError,
    WaitTimeoutError,
)
from .sequencer import (
    CreateStep,
    HandleRegistry,
    ResourceHandle,
    ResourceKind,
    TeardownRecord,
    WaitOptions,
    WaitOutcome,
    authorize_replication,
    create_ordered,
    resolve_ordered,
    teardown_ordered,
    wait_until_absent,
    wait_until_ready,
)

__all__ = [
    # Protocols
    "ResourceBackend",
    # Context
    "DeploymentContext",
    "ProjectConfig",
    # Exceptions
    "DeploymentError",
    "ConfigurationError",
    "ResourceCreationError",
    "ResourceDeletionError",
    "ResourceAbsentError",
    "WaitTimeoutError",
    # Sequencer
    "CreateStep",
    "HandleRegistry",
    "ResourceHandle",
    "ResourceKind",
    "TeardownRecord",
    "WaitOptions",
    "WaitOutcome",
    "authorize_replication",
    "create_ordered",
    "resolve_ordered",
    "teardown_ordered",
    "wait_until_absent",
    "wait_until_ready",
]
