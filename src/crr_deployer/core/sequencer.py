"""
Provisioning Sequencer - ordered create, wait and teardown.

This module drives a fixed, data-driven list of create steps against a
ResourceBackend, polls every created resource until it is ready, and can
tear the same resources down again in strict reverse order.

Design:
    - The sequence is data: a list of CreateStep entries whose parent and
      replication source point at earlier steps by index.
    - Created handles live in an append-only HandleRegistry keyed by step
      index, threaded through arguments and return values.
    - Waits never raise on timeout unless asked to (strict=True). They
      return a WaitOutcome so callers can tell READY from TIMED_OUT.
    - Absence is only inferred from ResourceAbsentError. Other query
      failures count as "still present".

Execution is strictly sequential. No step starts before the previous
step's wait has returned.

Usage:
    registry = create_ordered(backend, steps, WaitOptions(interval=10, retries=60))
    authorize_replication(backend, registry[2], registry[5])
    teardown_ordered(backend, registry.handles)
"""

import time
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, TYPE_CHECKING

from crr_deployer import constants as CONSTANTS
from .exceptions import (
    ResourceAbsentError,
    ResourceCreationError,
    ResourceDeletionError,
    WaitTimeoutError,
)

if TYPE_CHECKING:
    from .protocols import ResourceBackend

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Kinds of resources in the containment hierarchy Account -> Pool -> Volume."""

    ACCOUNT = "account"
    POOL = "pool"
    VOLUME = "volume"


# Kind a step's parent must have; None means the kind is top-level
PARENT_KIND: Dict[ResourceKind, Optional[ResourceKind]] = {
    ResourceKind.ACCOUNT: None,
    ResourceKind.POOL: ResourceKind.ACCOUNT,
    ResourceKind.VOLUME: ResourceKind.POOL,
}


class WaitOutcome(str, Enum):
    """How a poll loop ended."""

    READY = "ready"
    FAILED = "failed"
    ABSENT = "absent"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ResourceHandle:
    """
    Opaque reference to a created resource.

    Attributes:
        kind: Resource kind
        resource_id: Identifier returned by the backend (ARM id for Azure)
        name: Short resource name, used for logging
        parent: Handle of the containing resource, if any
        replication_source: For a data-protection volume, the source volume
    """

    kind: ResourceKind
    resource_id: str
    name: str
    parent: Optional['ResourceHandle'] = None
    replication_source: Optional['ResourceHandle'] = None


@dataclass
class CreateStep:
    """
    One entry of a create plan.

    Attributes:
        kind: Resource kind to create
        name: Resource name
        parent: Index of the earlier step that creates the parent, or None
        properties: Kind-specific property bag (size, tier, subnet, ...)
        replication_source: Index of the earlier volume step to replicate from
        resource_group: Resource group (required for top-level steps)
        location: Region the resource is created in
    """

    kind: ResourceKind
    name: str
    parent: Optional[int] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    replication_source: Optional[int] = None
    resource_group: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class WaitOptions:
    """
    Poll loop settings.

    Attributes:
        interval: Seconds between polls (default 10)
        retries: Polls after the first one (default 60, ~10 minutes)
        check_replication: For volumes, also require (ready) or watch
            (absent) the replication edge
        stop_on_failure: End a readiness wait on the first "Failed" state
            instead of polling out the budget
    """

    interval: float = CONSTANTS.DEFAULT_POLL_INTERVAL_SECONDS
    retries: int = CONSTANTS.DEFAULT_POLL_MAX_RETRIES
    check_replication: bool = False
    stop_on_failure: bool = False

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")


@dataclass(frozen=True)
class TeardownRecord:
    """Result of one teardown action (a replication removal or a delete)."""

    handle: ResourceHandle
    target: str
    outcome: WaitOutcome


class HandleRegistry:
    """
    Append-only, ordered registry of created handles keyed by step index.

    The registry also records the readiness outcome of each step so that a
    caller can see which resources were confirmed and which timed out.
    """

    def __init__(self):
        self._handles: List[ResourceHandle] = []
        self._outcomes: Dict[int, WaitOutcome] = {}

    def append(self, handle: ResourceHandle) -> int:
        """Append a handle and return its step index."""
        self._handles.append(handle)
        return len(self._handles) - 1

    def record_outcome(self, index: int, outcome: WaitOutcome) -> None:
        if index >= len(self._handles):
            raise IndexError(f"No handle registered for step {index}")
        self._outcomes[index] = outcome

    def outcome(self, index: int) -> Optional[WaitOutcome]:
        return self._outcomes.get(index)

    @property
    def handles(self) -> tuple:
        """Handles in creation order."""
        return tuple(self._handles)

    @property
    def outcomes(self) -> Dict[int, WaitOutcome]:
        return dict(self._outcomes)

    def __getitem__(self, index: int) -> ResourceHandle:
        return self._handles[index]

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[ResourceHandle]:
        return iter(self._handles)


# ==========================================
# Plan Validation
# ==========================================

def validate_steps(steps: Sequence[CreateStep]) -> None:
    """
    Check that every step references only earlier steps of the right kind.

    Raises:
        ValueError: On a forward/self reference or a kind mismatch
    """
    for index, step in enumerate(steps):
        expected_parent = PARENT_KIND[step.kind]

        if expected_parent is None:
            if step.parent is not None:
                raise ValueError(f"Step {index} ({step.kind.value} '{step.name}') cannot have a parent")
            if not step.resource_group:
                raise ValueError(f"Step {index} ({step.kind.value} '{step.name}') requires a resource group")
        else:
            if step.parent is None:
                raise ValueError(
                    f"Step {index} ({step.kind.value} '{step.name}') requires a {expected_parent.value} parent"
                )
            if not 0 <= step.parent < index:
                raise ValueError(
                    f"Step {index} ({step.kind.value} '{step.name}') references parent step "
                    f"{step.parent}, which is not an earlier step"
                )
            if steps[step.parent].kind != expected_parent:
                raise ValueError(
                    f"Step {index} ({step.kind.value} '{step.name}') parent must be a "
                    f"{expected_parent.value}, got {steps[step.parent].kind.value}"
                )

        if step.replication_source is not None:
            if step.kind != ResourceKind.VOLUME:
                raise ValueError(f"Step {index} ({step.kind.value} '{step.name}') cannot replicate")
            if not 0 <= step.replication_source < index:
                raise ValueError(
                    f"Step {index} (volume '{step.name}') references replication source step "
                    f"{step.replication_source}, which is not an earlier step"
                )
            if steps[step.replication_source].kind != ResourceKind.VOLUME:
                raise ValueError(f"Step {index} (volume '{step.name}') must replicate from a volume")


def _check_containment(handles: Sequence[ResourceHandle]) -> None:
    """Reject handle lists where a parent or replication source follows its dependent."""
    position = {handle.resource_id: index for index, handle in enumerate(handles)}

    for index, handle in enumerate(handles):
        for dependency in (handle.parent, handle.replication_source):
            if dependency is None:
                continue
            dep_index = position.get(dependency.resource_id)
            if dep_index is not None and dep_index > index:
                raise ValueError(
                    f"{handle.kind.value} '{handle.name}' is listed before "
                    f"{dependency.kind.value} '{dependency.name}' it depends on"
                )


# ==========================================
# Polling
# ==========================================

def wait_until_ready(
    backend: 'ResourceBackend',
    handle: ResourceHandle,
    options: Optional[WaitOptions] = None,
    strict: bool = False
) -> WaitOutcome:
    """
    Poll a resource until its provisioning state is "Succeeded".

    At most options.retries + 1 polls are made, options.interval seconds
    apart. Query errors are treated as "not ready yet". With
    check_replication set, a "Succeeded" volume only counts as ready once
    its replication status can be read too (data-protection volumes report
    "Succeeded" before the edge is queryable).

    A "Failed" state only ends the wait early when options.stop_on_failure
    is set. FAILED is returned when the last answered poll reported "Failed".

    Args:
        backend: Resource backend
        handle: Resource to poll
        options: Poll settings
        strict: Raise WaitTimeoutError instead of returning a non-READY outcome

    Returns:
        READY, FAILED (last state "Failed") or TIMED_OUT
    """
    options = options or WaitOptions()
    outcome = WaitOutcome.TIMED_OUT
    polls = 0

    for attempt in range(options.retries + 1):
        if attempt:
            time.sleep(options.interval)
        polls += 1

        try:
            status = backend.get_status(handle)
            if status == CONSTANTS.PROVISIONING_STATE_SUCCEEDED and options.check_replication:
                backend.get_replication_status(handle)
        except Exception as e:
            logger.debug(f"  {handle.kind.value} '{handle.name}' not queryable yet (poll {polls}): {e}")
            continue

        if status == CONSTANTS.PROVISIONING_STATE_SUCCEEDED:
            outcome = WaitOutcome.READY
            break
        if status == CONSTANTS.PROVISIONING_STATE_FAILED:
            outcome = WaitOutcome.FAILED
            if options.stop_on_failure:
                break
        else:
            outcome = WaitOutcome.TIMED_OUT
        logger.debug(f"  {handle.kind.value} '{handle.name}' is {status} (poll {polls})")

    if outcome == WaitOutcome.READY:
        logger.info(f"✓ {handle.kind.value} ready: {handle.name}")
    elif outcome == WaitOutcome.FAILED:
        logger.error(f"✗ {handle.kind.value} provisioning failed: {handle.name}")
    else:
        logger.warning(f"✗ {handle.kind.value} not ready after {polls} polls: {handle.name}")

    if strict and outcome != WaitOutcome.READY:
        raise WaitTimeoutError(handle.resource_id, outcome.value, polls)
    return outcome


def wait_until_absent(
    backend: 'ResourceBackend',
    handle: ResourceHandle,
    options: Optional[WaitOptions] = None,
    strict: bool = False
) -> WaitOutcome:
    """
    Poll a resource until the backend reports it as not found.

    With check_replication set, the replication status is polled instead
    of the resource itself, so the loop ends once the edge is gone.

    Only ResourceAbsentError ends the loop. Other errors are logged and
    the resource is treated as still present.

    Returns:
        ABSENT or TIMED_OUT
    """
    options = options or WaitOptions()
    query: Callable[[ResourceHandle], str] = (
        backend.get_replication_status if options.check_replication else backend.get_status
    )
    target = "replication" if options.check_replication else handle.kind.value
    outcome = WaitOutcome.TIMED_OUT
    polls = 0

    for attempt in range(options.retries + 1):
        if attempt:
            time.sleep(options.interval)
        polls += 1

        try:
            status = query(handle)
        except ResourceAbsentError:
            outcome = WaitOutcome.ABSENT
            break
        except Exception as e:
            logger.warning(f"  {target} query failed for '{handle.name}' (poll {polls}), still waiting: {e}")
            continue
        logger.debug(f"  {target} '{handle.name}' still present: {status} (poll {polls})")

    if outcome == WaitOutcome.ABSENT:
        logger.info(f"✓ {target} deleted: {handle.name}")
    else:
        logger.warning(f"✗ {target} still present after {polls} polls: {handle.name}")

    if strict and outcome != WaitOutcome.ABSENT:
        raise WaitTimeoutError(handle.resource_id, outcome.value, polls)
    return outcome


# ==========================================
# Ordered Create
# ==========================================

def create_ordered(
    backend: 'ResourceBackend',
    steps: Sequence[CreateStep],
    options: Optional[WaitOptions] = None,
    registry: Optional[HandleRegistry] = None
) -> HandleRegistry:
    """
    Create every step in order, waiting for each resource to be ready.

    Steps referencing a replication_source are data-protection volumes and
    are waited on with check_replication=True.

    Args:
        backend: Resource backend
        steps: Create plan
        options: Poll settings for the readiness waits
        registry: Empty registry to fill. Passing one lets the caller keep
            the handles created before a failure.

    Returns:
        The registry, holding one handle per step in step order

    Raises:
        ValueError: If the plan is inconsistent or the registry is not empty
        ResourceCreationError: If a create call fails. Later steps are not
            attempted and nothing is rolled back.
    """
    validate_steps(steps)
    options = options or WaitOptions()
    if registry is None:
        registry = HandleRegistry()
    elif len(registry):
        raise ValueError("create_ordered requires an empty registry")

    for index, step in enumerate(steps):
        parent = registry[step.parent] if step.parent is not None else None
        source = registry[step.replication_source] if step.replication_source is not None else None

        logger.info(f"Creating {step.kind.value} ({index + 1}/{len(steps)}): {step.name}")
        try:
            handle = backend.create(step, parent, source)
        except Exception as e:
            logger.error(f"✗ Create failed for {step.kind.value} '{step.name}', aborting remaining steps")
            raise ResourceCreationError(
                step.kind.value, step.name, created=registry.handles, original_error=e
            ) from e

        registry.append(handle)
        outcome = wait_until_ready(
            backend, handle, replace(options, check_replication=source is not None)
        )
        registry.record_outcome(index, outcome)

    return registry


def resolve_ordered(backend: 'ResourceBackend', steps: Sequence[CreateStep]) -> List[ResourceHandle]:
    """
    Build the handles a plan would produce, without calling the API.

    Used to rediscover resources from configuration, e.g. for a standalone
    teardown or status check.
    """
    validate_steps(steps)
    handles: List[ResourceHandle] = []
    for step in steps:
        parent = handles[step.parent] if step.parent is not None else None
        source = handles[step.replication_source] if step.replication_source is not None else None
        handles.append(backend.resolve(step, parent, source))
    return handles


def authorize_replication(
    backend: 'ResourceBackend',
    source: ResourceHandle,
    destination: ResourceHandle,
    options: Optional[WaitOptions] = None
) -> WaitOutcome:
    """
    Authorize replication on the source volume and wait for it to settle.

    The destination must already be ready with its replication edge
    attached (see create_ordered). Authorization errors propagate.
    """
    if destination.replication_source is None:
        raise ValueError(f"Volume '{destination.name}' is not a replication destination")
    if destination.replication_source.resource_id != source.resource_id:
        raise ValueError(f"Volume '{destination.name}' does not replicate from '{source.name}'")

    options = options or WaitOptions()
    logger.info(f"Authorizing replication: {source.name} -> {destination.name}")
    backend.authorize_replication(source, destination)
    return wait_until_ready(backend, source, replace(options, check_replication=False))


# ==========================================
# Ordered Teardown
# ==========================================

def _issue_delete(call: Callable[[ResourceHandle], None], handle: ResourceHandle, target: str) -> None:
    try:
        call(handle)
    except ResourceAbsentError:
        logger.info(f"{target} already deleted: {handle.name}")
    except Exception as e:
        logger.error(f"✗ Delete failed for {target} '{handle.name}', aborting teardown")
        raise ResourceDeletionError(target, handle.resource_id, original_error=e) from e


def teardown_ordered(
    backend: 'ResourceBackend',
    handles: Sequence[ResourceHandle],
    options: Optional[WaitOptions] = None
) -> List[TeardownRecord]:
    """
    Delete resources in strict reverse creation order.

    For each handle, last created first: remove its replication edge (if it
    is a replication destination) and wait for the edge to disappear, then
    delete the resource and wait for it to be absent. The next delete is
    never issued before the previous wait returns.

    Args:
        backend: Resource backend
        handles: Handles in creation order
        options: Poll settings for the absence waits

    Returns:
        One TeardownRecord per removal/delete, in the order issued

    Raises:
        ValueError: If a handle is listed before its parent or replication source
        ResourceDeletionError: If a delete call fails. Remaining resources
            are left in place.
    """
    handles = list(handles)
    _check_containment(handles)
    options = options or WaitOptions()
    records: List[TeardownRecord] = []

    for handle in reversed(handles):
        if handle.replication_source is not None:
            logger.info(f"Removing replication from volume: {handle.name}")
            _issue_delete(backend.remove_replication, handle, "replication")
            outcome = wait_until_absent(backend, handle, replace(options, check_replication=True))
            records.append(TeardownRecord(handle, "replication", outcome))

        logger.info(f"Deleting {handle.kind.value}: {handle.name}")
        _issue_delete(backend.delete, handle, handle.kind.value)
        outcome = wait_until_absent(backend, handle, replace(options, check_replication=False))
        records.append(TeardownRecord(handle, handle.kind.value, outcome))

    return records
