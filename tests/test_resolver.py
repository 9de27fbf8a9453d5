"""Tests for dependency ordering."""

import pytest

from network_tools import (
    DependencyCycleError,
    IncompleteTopologyError,
    NetworkTopology,
    Provider,
    ResourceKind,
    ResourceNode,
    order,
    plan_addresses,
    synthesize,
)
from network_tools.model import Edge, EdgeRelation, Reference
from network_tools.resolver import order_names


def topology_of(intent, nodes, edges=()):
    return NetworkTopology(
        provider=intent.provider,
        intent=intent,
        address_plan=plan_addresses(intent),
        nodes=tuple(nodes),
        edges=tuple(edges),
    )


def node(kind, name, depends_on=(), **attributes):
    return ResourceNode(
        kind=kind,
        provider=Provider.AWS,
        name=name,
        attributes=attributes,
        depends_on=tuple(depends_on),
    )


class TestSynthesizedOrder:
    """Ordering of real synthesizer output."""

    def test_dependencies_come_first(self, full_intent) -> None:
        """Every node is created after everything it depends on."""
        topology = synthesize(full_intent, plan_addresses(full_intent))
        ordered = order(topology)
        position = {resource.name: index for index, resource in enumerate(ordered)}

        assert len(ordered) == len(topology.nodes)
        for resource in topology.nodes:
            for dependency in topology.dependencies_of(resource.name):
                assert position[dependency] < position[resource.name], (dependency, resource.name)

    def test_kind_precedence(self, full_intent) -> None:
        """VPC before subnets, gateways before routing, routing before associations."""
        ordered = order(synthesize(full_intent, plan_addresses(full_intent)))
        kinds = [resource.kind for resource in ordered]

        def first(kind):
            return kinds.index(kind)

        def last(kind):
            return len(kinds) - 1 - kinds[::-1].index(kind)

        assert last(ResourceKind.VPC) < first(ResourceKind.SUBNET)
        assert last(ResourceKind.NAT_GATEWAY) < first(ResourceKind.ROUTE_TABLE)
        assert last(ResourceKind.INTERNET_GATEWAY) < first(ResourceKind.ROUTE_TABLE)
        assert last(ResourceKind.ROUTE_TABLE) < first(ResourceKind.ROUTE_ASSOCIATION)
        assert last(ResourceKind.NAT_ADDRESS) < first(ResourceKind.NAT_GATEWAY)

    def test_stable(self, full_intent) -> None:
        topology = synthesize(full_intent, plan_addresses(full_intent))
        assert order_names(topology) == order_names(topology)

    def test_vpc_first(self, intent_factory, provider: str) -> None:
        intent = intent_factory(provider)
        ordered = order(synthesize(intent, plan_addresses(intent)))
        assert ordered[0].kind == ResourceKind.VPC


class TestHandBuiltGraphs:
    """Ordering of graphs built by hand."""

    def test_ties_keep_synthesis_order(self, intent_factory) -> None:
        intent = intent_factory()
        topology = topology_of(intent, [
            node(ResourceKind.VPC, "vpc"),
            node(ResourceKind.SECURITY_GROUP, "sg-b", vpc_id=Reference("vpc")),
            node(ResourceKind.SECURITY_GROUP, "sg-a", vpc_id=Reference("vpc")),
        ])
        assert order_names(topology) == ["vpc", "sg-b", "sg-a"]

    def test_edge_orders_target_first(self, intent_factory) -> None:
        intent = intent_factory()
        topology = topology_of(
            intent,
            [node(ResourceKind.FLOW_LOG, "flow-log"), node(ResourceKind.VPC, "vpc")],
            [Edge("flow-log", "vpc", EdgeRelation.ATTACHES_TO)],
        )
        assert order_names(topology) == ["vpc", "flow-log"]

    def test_cycle(self, intent_factory) -> None:
        """A dependency cycle is reported with the nodes stuck in it."""
        intent = intent_factory()
        topology = topology_of(intent, [
            node(ResourceKind.VPC, "vpc"),
            node(ResourceKind.SECURITY_GROUP, "sg-a", depends_on=["sg-b"]),
            node(ResourceKind.SECURITY_GROUP, "sg-b", depends_on=["sg-a"]),
        ])
        with pytest.raises(DependencyCycleError) as excinfo:
            order(topology)
        assert "sg-a" in str(excinfo.value)
        assert "sg-b" in str(excinfo.value)
        assert excinfo.value.is_fatal

    def test_cycle_through_kind_rules(self, intent_factory) -> None:
        """A route table that a gateway depends on contradicts the kind rules."""
        intent = intent_factory()
        topology = topology_of(intent, [
            node(ResourceKind.ROUTE_TABLE, "rt"),
            node(ResourceKind.INTERNET_GATEWAY, "igw", depends_on=["rt"]),
        ])
        with pytest.raises(DependencyCycleError):
            order(topology)

    def test_missing_dependency(self, intent_factory) -> None:
        intent = intent_factory()
        topology = topology_of(intent, [
            node(ResourceKind.VPC, "vpc"),
            node(ResourceKind.SUBNET, "subnet", depends_on=["ghost"]),
        ])
        with pytest.raises(IncompleteTopologyError) as excinfo:
            order(topology)
        assert "ghost" in excinfo.value.message

    def test_missing_edge_endpoint(self, intent_factory) -> None:
        intent = intent_factory()
        topology = topology_of(
            intent,
            [node(ResourceKind.VPC, "vpc")],
            [Edge("flow-log", "vpc", EdgeRelation.ATTACHES_TO)],
        )
        with pytest.raises(IncompleteTopologyError):
            order(topology)
