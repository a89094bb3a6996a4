"""
Custom exceptions for the replication deployer.

This module defines a hierarchy of exceptions used throughout the deployer
to provide clear, actionable error messages.

Exception Hierarchy:
    DeploymentError (base)
    ├── ConfigurationError - Invalid or missing configuration
    ├── ResourceCreationError - Failed to create a NetApp resource
    ├── ResourceDeletionError - Failed to delete a NetApp resource
    ├── ResourceAbsentError - Backend reports the resource does not exist
    └── WaitTimeoutError - A strict wait did not reach its target state
"""

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .sequencer import ResourceHandle


class DeploymentError(Exception):
    """
    Base exception for all deployment-related errors.

    Attributes:
        message: Human-readable error description
        resource_id: Optional ARM id of the resource involved
    """

    def __init__(self, message: str, resource_id: Optional[str] = None):
        self.message = message
        self.resource_id = resource_id

        if resource_id:
            full_message = f"{message} [resource={resource_id}]"
        else:
            full_message = message

        super().__init__(full_message)


class ConfigurationError(DeploymentError):
    """
    Raised when configuration is invalid or missing required fields.

    This typically occurs when:
    - config.json is missing from the project directory
    - A config file has invalid JSON
    - A field is out of its allowed range or not one of the allowed values

    Example:
        >>> load_project_config(Path("missing"))
        ConfigurationError: Required configuration file not found: config.json (file: missing/config.json)
    """

    def __init__(self, message: str, config_file: Optional[str] = None):
        self.config_file = config_file
        if config_file:
            message = f"{message} (file: {config_file})"
        super().__init__(message)


class ResourceCreationError(DeploymentError):
    """
    Raised when a create call fails.

    The sequence is not rolled back, so the handles created before the
    failing step are kept on the exception for the caller to inspect or
    tear down.

    Attributes:
        resource_type: Kind of resource (account, pool, volume)
        resource_name: Name of the resource that failed
        created: Handles created before the failure, in creation order
        original_error: The underlying SDK exception
    """

    def __init__(
        self,
        resource_type: str,
        resource_name: str,
        created: Sequence['ResourceHandle'] = (),
        original_error: Optional[Exception] = None
    ):
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.created = tuple(created)
        self.original_error = original_error

        message = f"Failed to create {resource_type} '{resource_name}'"
        if original_error:
            message += f": {str(original_error)}"

        super().__init__(message)


class ResourceDeletionError(DeploymentError):
    """
    Raised when a delete or replication removal call fails.

    Attributes:
        resource_type: Kind of resource (account, pool, volume, replication)
        resource_id: ARM id of the resource that failed
        original_error: The underlying SDK exception
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        original_error: Optional[Exception] = None
    ):
        self.resource_type = resource_type
        self.original_error = original_error

        message = f"Failed to delete {resource_type}"
        if original_error:
            message += f": {str(original_error)}"

        super().__init__(message, resource_id=resource_id)


class ResourceAbsentError(DeploymentError):
    """
    Raised by a resource backend when the queried resource does not exist.

    Absence polling only accepts this error as proof that a resource is
    gone. Any other query failure counts as "still there".
    """

    def __init__(self, resource_id: str, detail: Optional[str] = None):
        message = "Resource not found"
        if detail:
            message += f": {detail}"
        super().__init__(message, resource_id=resource_id)


class WaitTimeoutError(DeploymentError):
    """
    Raised by a strict wait that ends without reaching its target state.

    Attributes:
        outcome: The WaitOutcome the poll loop ended with
    """

    def __init__(self, resource_id: str, outcome: str, polls: int):
        self.outcome = outcome
        self.polls = polls
        message = f"Wait ended with outcome '{outcome}' after {polls} polls"
        super().__init__(message, resource_id=resource_id)
