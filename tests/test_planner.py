"""Tests for the planning facade."""

import json

import pytest

from network_tools import (
    ErrorKind,
    IncompleteTopologyError,
    PlanResult,
    ResourceKind,
    plan_many,
    plan_network,
)
from network_tools.model import AzureOptions, NetworkTopology, ResourceNode


class TestPlanNetwork:
    """Tests for plan_network."""

    def test_ok(self, full_intent) -> None:
        result = plan_network(full_intent)
        assert isinstance(result, PlanResult)
        assert result.ok
        assert result.violations == ()
        assert result.address_plan is not None
        assert len(result.resources) == len(result.topology.nodes)
        assert result.contract.provider == full_intent.provider

    def test_resources_are_ordered(self, intent_factory, provider: str) -> None:
        result = plan_network(intent_factory(provider))
        position = {node.name: index for index, node in enumerate(result.resources)}
        for node in result.resources:
            for dependency in result.topology.dependencies_of(node.name):
                assert position[dependency] < position[node.name]

    def test_violations_are_returned(self, intent_factory) -> None:
        """Bad intents come back as violations, not exceptions."""
        intent = intent_factory(
            "aws",
            private_subnet_indices=frozenset({1, 7}),
            azure=AzureOptions(enable_ddos_protection=True),
        )
        result = plan_network(intent)
        assert not result.ok
        assert {violation.kind for violation in result.violations} == {
            ErrorKind.INDEX_OUT_OF_RANGE,
            ErrorKind.DISJOINTNESS_VIOLATION,
            ErrorKind.UNSUPPORTED_FEATURE,
        }
        assert result.topology is None
        assert result.resources == ()

    @pytest.mark.parametrize("provider, name", [("aws", "vpc"), ("azure", "internet"), ("gcp", "network")])
    def test_subnet_name_clash_is_a_violation(self, intent_factory, provider: str, name: str) -> None:
        result = plan_network(intent_factory(provider, subnet_names=(name, "b", "c", "d")))
        assert not result.ok
        assert [violation.kind for violation in result.violations] == [ErrorKind.INVALID_NAME]

    def test_builder_name_clash_is_a_violation(self, intent_factory, monkeypatch) -> None:
        """Clashes the validator misses still come back as violations."""
        monkeypatch.setattr("network_tools.planner.validate_intent_with_warnings", lambda intent: ([], []))
        result = plan_network(intent_factory(subnet_names=("vpc", "b", "c", "d")))
        assert not result.ok
        assert result.violations[0].kind == ErrorKind.INVALID_NAME
        assert "demo-vpc" in result.violations[0].message

    def test_warnings_include_contract_notes(self, intent_factory) -> None:
        result = plan_network(intent_factory(enable_internet_gateway=False))
        assert any("enable_internet_gateway" in warning for warning in result.warnings)
        assert any("pod_cidr" in warning for warning in result.warnings)

    def test_to_dict_is_json_serializable(self, full_intent) -> None:
        payload = json.loads(json.dumps(plan_network(full_intent).to_dict()))
        assert payload["ok"] is True
        assert payload["violations"] == []
        assert payload["resources"][0]["kind"] in ("vpc", "ddos_protection_plan")
        assert payload["contract"]["vpc_cidr"] == "10.0.0.0/16"

    def test_references_serialize(self, intent_factory) -> None:
        payload = plan_network(intent_factory("aws")).to_dict()
        subnet = next(node for node in payload["resources"] if node["name"] == "demo-subnet-0")
        assert subnet["attributes"]["vpc_id"] == {"ref": "demo-vpc", "attribute": "id"}
        assert subnet["metadata"]["role"] == "public"

    def test_broken_synthesizer_raises(self, intent_factory, monkeypatch) -> None:
        """A synthesizer that drops its VPC is an internal error, never a partial result."""
        intent = intent_factory()

        def broken(intent, address_plan):
            return NetworkTopology(
                provider=intent.provider,
                intent=intent,
                address_plan=address_plan,
                nodes=(ResourceNode(ResourceKind.SUBNET, intent.provider, "orphan", depends_on=("gone",)),),
            )

        monkeypatch.setattr("network_tools.planner.synthesize", broken)
        with pytest.raises(IncompleteTopologyError):
            plan_network(intent)


class TestPlanMany:
    """Tests for plan_many."""

    def test_independent_results(self, intent_factory) -> None:
        results = plan_many([
            intent_factory("aws"),
            intent_factory("gcp", name_prefix="edge", azure=AzureOptions(enable_ddos_protection=True)),
            intent_factory("azure", name_prefix="hub"),
        ])
        assert [result.ok for result in results] == [True, False, True]
        assert results[2].contract.vpc_name == "hub-vnet"

    def test_empty(self) -> None:
        assert plan_many([]) == []
