import os
import sys
import json
import pytest

# Allow running the suite from a checkout without installing the package
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from crr_deployer.core.exceptions import ResourceAbsentError
from crr_deployer.core.sequencer import ResourceHandle


SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"


class FakeBackend:
    """
    In-memory ResourceBackend.

    Resources become "Succeeded" after ready_after[name] "Creating" polls
    and disappear after absent_after[name] "Deleting" polls. Deleting a
    resource that still contains another, or a volume that still has a
    replication edge, raises, so containment mistakes fail loudly.

    Every call is appended to self.calls as a (verb, name) tuple.
    """

    def __init__(self):
        self.calls = []
        self.resources = {}
        self.ready_after = {}
        self.absent_after = {}
        self.fail_create = set()

    def _id(self, step, parent):
        if parent is None:
            return f"/rg/{step.resource_group}/{step.kind.value}/{step.name}"
        return f"{parent.resource_id}/{step.kind.value}/{step.name}"

    def resolve(self, step, parent, replication_source=None):
        return ResourceHandle(
            kind=step.kind,
            resource_id=self._id(step, parent),
            name=step.name,
            parent=parent,
            replication_source=replication_source,
        )

    def create(self, step, parent, replication_source=None):
        self.calls.append(("create", step.name))
        if step.name in self.fail_create:
            raise RuntimeError(f"create rejected: {step.name}")
        if parent is not None and parent.resource_id not in self.resources:
            raise RuntimeError(f"parent missing for {step.name}")
        handle = self.resolve(step, parent, replication_source)
        self.resources[handle.resource_id] = {
            "polls": 0,
            "replication": replication_source is not None,
            "authorized": False,
        }
        return handle

    def get_status(self, handle):
        self.calls.append(("get_status", handle.name))
        resource = self.resources.get(handle.resource_id)
        if resource is None:
            raise ResourceAbsentError(handle.resource_id)
        if "deleting" in resource:
            if resource["deleting"] <= 0:
                del self.resources[handle.resource_id]
                raise ResourceAbsentError(handle.resource_id)
            resource["deleting"] -= 1
            return "Deleting"
        resource["polls"] += 1
        if resource["polls"] > self.ready_after.get(handle.name, 0):
            return "Succeeded"
        return "Creating"

    def get_replication_status(self, handle):
        self.calls.append(("get_replication_status", handle.name))
        resource = self.resources.get(handle.resource_id)
        if resource is None or not resource["replication"]:
            raise ResourceAbsentError(handle.resource_id)
        return "Mirrored"

    def delete(self, handle):
        self.calls.append(("delete", handle.name))
        resource = self.resources.get(handle.resource_id)
        if resource is None:
            raise ResourceAbsentError(handle.resource_id)
        children = [rid for rid in self.resources if rid.startswith(handle.resource_id + "/")]
        if children:
            raise RuntimeError(f"{handle.name} still contains {children}")
        if resource["replication"]:
            raise RuntimeError(f"{handle.name} still has a replication edge")
        resource["deleting"] = self.absent_after.get(handle.name, 0)

    def authorize_replication(self, source, destination):
        self.calls.append(("authorize", source.name))
        self.resources[source.resource_id]["authorized"] = True

    def remove_replication(self, handle):
        self.calls.append(("remove_replication", handle.name))
        resource = self.resources.get(handle.resource_id)
        if resource is None:
            raise ResourceAbsentError(handle.resource_id)
        resource["replication"] = False

    def verbs(self, *verbs):
        """Calls filtered to the given verbs."""
        return [call for call in self.calls if call[0] in verbs]


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture(autouse=True)
def mock_sleep(monkeypatch):
    """Skip time.sleep calls to speed up tests."""
    monkeypatch.setattr("time.sleep", lambda x: None)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of config loading."""
    for name in ("CRR_DEBUG", "CRR_POLL_INTERVAL_SECONDS", "CRR_POLL_MAX_RETRIES",
                 "CRR_AZURE_SUBSCRIPTION_ID", "AZURE_SUBSCRIPTION_ID"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(os.path.dirname(__file__))


def _subnet(rg, vnet):
    return (
        f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{rg}/providers/"
        f"Microsoft.Network/virtualNetworks/{vnet}/subnets/anf-subnet"
    )


@pytest.fixture
def raw_config():
    """A valid config.json payload."""
    return {
        "mode": "PRODUCTION",
        "primary": {
            "resource_group": "rg-primary",
            "location": "westus",
            "account_name": "account-a",
            "pool_name": "pool-p",
            "volume_name": "volume-v1",
            "subnet_id": _subnet("rg-primary", "vnet-a"),
        },
        "secondary": {
            "resource_group": "rg-secondary",
            "location": "eastus",
            "account_name": "account-b",
            "pool_name": "pool-q",
            "volume_name": "volume-v2",
            "subnet_id": _subnet("rg-secondary", "vnet-b"),
        },
        "service_level": "Premium",
        "pool_size_bytes": 4398046511104,
        "volume_size_bytes": 107374182400,
        "protocol_types": ["NFSv3"],
        "allowed_clients": "10.0.0.0/24",
        "replication_schedule": "hourly",
        "cleanup_resources": False,
        "polling": {"interval_seconds": 1, "max_retries": 5},
    }


@pytest.fixture
def project_dir(tmp_path, raw_config):
    """Project directory with config.json written from raw_config."""
    (tmp_path / "config.json").write_text(json.dumps(raw_config), encoding="utf-8")
    return tmp_path
