"""
Tests for the deploy / destroy / check commands against an in-memory backend.
"""

import json
import pytest
from unittest.mock import MagicMock, patch

from crr_deployer import deployer
from crr_deployer.core.exceptions import ConfigurationError, ResourceCreationError
from crr_deployer.core.sequencer import ResourceKind, WaitOutcome


@pytest.fixture
def context(project_dir):
    return deployer.create_context(project_dir)


class TestBuildCreatePlan:

    def test_plan_order_and_parents(self, context):
        steps = deployer.build_create_plan(context.config)

        assert [(s.kind, s.name, s.parent) for s in steps] == [
            (ResourceKind.ACCOUNT, "account-a", None),
            (ResourceKind.POOL, "pool-p", deployer.PRIMARY_ACCOUNT),
            (ResourceKind.VOLUME, "volume-v1", deployer.PRIMARY_POOL),
            (ResourceKind.ACCOUNT, "account-b", None),
            (ResourceKind.POOL, "pool-q", deployer.SECONDARY_ACCOUNT),
            (ResourceKind.VOLUME, "volume-v2", deployer.SECONDARY_POOL),
        ]

    def test_only_destination_replicates(self, context):
        steps = deployer.build_create_plan(context.config)

        sources = [s.replication_source for s in steps]
        assert sources == [None, None, None, None, None, deployer.PRIMARY_VOLUME]

    def test_destination_properties(self, context):
        destination = deployer.build_create_plan(context.config)[deployer.SECONDARY_VOLUME]

        assert destination.location == "eastus"
        assert destination.properties["remote_volume_region"] == "westus"
        assert destination.properties["replication_schedule"] == "hourly"
        assert destination.properties["subnet_id"].endswith("vnet-b/subnets/anf-subnet")

    def test_source_volume_has_no_replication_properties(self, context):
        source = deployer.build_create_plan(context.config)[deployer.PRIMARY_VOLUME]

        assert "replication_schedule" not in source.properties
        assert source.properties["size_bytes"] == 107374182400

    def test_accounts_carry_resource_groups(self, context):
        steps = deployer.build_create_plan(context.config)

        assert steps[deployer.PRIMARY_ACCOUNT].resource_group == "rg-primary"
        assert steps[deployer.SECONDARY_ACCOUNT].resource_group == "rg-secondary"


class TestDeploy:

    def test_deploy_creates_and_authorizes(self, context, fake_backend):
        result = deployer.deploy(context, backend=fake_backend)

        assert [name for _, name in fake_backend.verbs("create")] == [
            "account-a", "pool-p", "volume-v1", "account-b", "pool-q", "volume-v2"
        ]
        assert fake_backend.verbs("authorize") == [("authorize", "volume-v1")]
        assert result.confirmed is True
        assert result.teardown == []

    def test_authorize_after_destination_ready(self, context, fake_backend):
        deployer.deploy(context, backend=fake_backend)

        calls = fake_backend.calls
        last_destination_poll = max(
            i for i, call in enumerate(calls) if call == ("get_replication_status", "volume-v2")
        )
        assert calls.index(("authorize", "volume-v1")) > last_destination_poll

    def test_unready_destination_still_authorizes(self, context, fake_backend):
        fake_backend.ready_after["volume-v2"] = 100

        result = deployer.deploy(context, backend=fake_backend)

        assert result.outcomes[deployer.SECONDARY_VOLUME] == WaitOutcome.TIMED_OUT
        assert fake_backend.verbs("authorize") == [("authorize", "volume-v1")]
        assert result.confirmed is False

    def test_create_failure_aborts(self, context, fake_backend):
        fake_backend.fail_create.add("pool-q")

        with pytest.raises(ResourceCreationError) as exc_info:
            deployer.deploy(context, backend=fake_backend)

        assert [h.name for h in exc_info.value.created] == ["account-a", "pool-p", "volume-v1", "account-b"]
        assert fake_backend.verbs("authorize", "delete") == []

    def test_cleanup_tears_down_in_reverse(self, project_dir, raw_config, fake_backend):
        raw_config["cleanup_resources"] = True
        (project_dir / "config.json").write_text(json.dumps(raw_config), encoding="utf-8")
        context = deployer.create_context(project_dir)

        result = deployer.deploy(context, backend=fake_backend)

        assert fake_backend.verbs("remove_replication", "delete") == [
            ("remove_replication", "volume-v2"),
            ("delete", "volume-v2"),
            ("delete", "pool-q"),
            ("delete", "account-b"),
            ("delete", "volume-v1"),
            ("delete", "pool-p"),
            ("delete", "account-a"),
        ]
        assert all(record.outcome == WaitOutcome.ABSENT for record in result.teardown)
        assert fake_backend.resources == {}


class TestDestroy:

    def test_destroy_after_deploy(self, context, fake_backend):
        deployer.deploy(context, backend=fake_backend)

        records = deployer.destroy(context, backend=fake_backend)

        assert [r.target for r in records] == ["replication", "volume", "pool", "account",
                                               "volume", "pool", "account"]
        assert fake_backend.resources == {}

    def test_destroy_nothing_deployed(self, context, fake_backend):
        """Edge case: every resource is already gone."""
        records = deployer.destroy(context, backend=fake_backend)

        assert all(record.outcome == WaitOutcome.ABSENT for record in records)
        assert len(fake_backend.verbs("delete")) == 6


class TestInfo:

    def test_info_after_deploy(self, context, fake_backend):
        deployer.deploy(context, backend=fake_backend)

        status = deployer.info(context, backend=fake_backend)

        assert status["primary/account:account-a"] == "Succeeded"
        assert status["secondary/volume:volume-v2"] == "Succeeded"
        assert status["secondary/replication:volume-v2"] == "Mirrored"

    def test_info_keeps_both_regions_with_shared_names(self, project_dir, raw_config, fake_backend):
        for key in ("account_name", "pool_name", "volume_name"):
            raw_config["secondary"][key] = raw_config["primary"][key]
        (project_dir / "config.json").write_text(json.dumps(raw_config), encoding="utf-8")
        context = deployer.create_context(project_dir)
        deployer.deploy(context, backend=fake_backend)

        status = deployer.info(context, backend=fake_backend)

        assert len(status) == 7
        assert status["primary/volume:volume-v1"] == "Succeeded"
        assert status["secondary/volume:volume-v1"] == "Succeeded"
        assert status["secondary/replication:volume-v1"] == "Mirrored"
        assert "primary/replication:volume-v1" not in status

    def test_info_reports_absent(self, context, fake_backend):
        status = deployer.info(context, backend=fake_backend)

        assert set(status.values()) == {"absent"}
        assert len(status) == 7
        assert fake_backend.verbs("create", "delete") == []


class TestPreflight:

    def test_missing_resource_group_raises(self, context):
        context.provider = MagicMock()
        with patch(
            "crr_deployer.providers.azure.layers.layer_netapp.check_resource_group",
            side_effect=lambda provider, rg: rg == "rg-primary"
        ):
            with pytest.raises(ConfigurationError, match="rg-secondary"):
                deployer.preflight(context)

    def test_existing_resource_groups_pass(self, context):
        context.provider = MagicMock()
        with patch(
            "crr_deployer.providers.azure.layers.layer_netapp.check_resource_group",
            return_value=True
        ) as check:
            deployer.preflight(context)

        assert [c.args[1] for c in check.call_args_list] == ["rg-primary", "rg-secondary"]

    def test_preflight_without_provider_raises(self, context):
        with pytest.raises(ValueError, match="not been initialized"):
            deployer.preflight(context)


class TestInitializeProvider:

    def test_missing_subscription_is_configuration_error(self, context):
        context.credentials = {}

        with pytest.raises(ConfigurationError, match="azure_subscription_id"):
            deployer.initialize_provider(context)
