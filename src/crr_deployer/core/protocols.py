"""
Protocol definitions for the replication deployer.

This module defines the interface (Protocol) a resource backend must
implement so the provisioning sequencer can drive it. The Azure NetApp
Files backend is the production implementation; tests substitute an
in-memory fake.

Why a Protocol instead of an ABC?
    - No explicit inheritance required (duck typing)
    - Fakes in tests need not import the Azure SDK
    - Runtime checking with @runtime_checkable decorator
"""

from typing import Protocol, Optional, runtime_checkable, TYPE_CHECKING

if TYPE_CHECKING:
    # Avoid circular imports - only import for type hints
    from .sequencer import CreateStep, ResourceHandle


@runtime_checkable
class ResourceBackend(Protocol):
    """
    Protocol defining the verbs the sequencer issues against the management API.

    Contract for "not found":
        get_status() and get_replication_status() MUST raise
        ResourceAbsentError when the resource (or replication edge) does
        not exist. Any other exception is treated as a transient query
        failure.
    """

    def create(
        self,
        step: 'CreateStep',
        parent: Optional['ResourceHandle'],
        replication_source: Optional['ResourceHandle'] = None
    ) -> 'ResourceHandle':
        """
        Issue the create request for a step and return its handle.

        Must not block until the resource is provisioned; readiness is
        polled separately via get_status().
        """
        ...

    def resolve(
        self,
        step: 'CreateStep',
        parent: Optional['ResourceHandle'],
        replication_source: Optional['ResourceHandle'] = None
    ) -> 'ResourceHandle':
        """Build the handle a step would produce without calling the API."""
        ...

    def get_status(self, handle: 'ResourceHandle') -> str:
        """
        Return the provisioning state (e.g. "Succeeded", "Creating", "Failed").

        Raises:
            ResourceAbsentError: If the resource does not exist
        """
        ...

    def get_replication_status(self, handle: 'ResourceHandle') -> str:
        """
        Return the relationship status of the replication edge on a volume.

        Raises:
            ResourceAbsentError: If no replication edge is attached
        """
        ...

    def delete(self, handle: 'ResourceHandle') -> None:
        """Issue the delete request. Completion is observed via get_status()."""
        ...

    def authorize_replication(
        self,
        source: 'ResourceHandle',
        destination: 'ResourceHandle'
    ) -> None:
        """Authorize replication from source to destination on the source volume."""
        ...

    def remove_replication(self, handle: 'ResourceHandle') -> None:
        """Detach the replication edge from a destination volume."""
        ...
