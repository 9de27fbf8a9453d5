"""Reference and egress-semantics checks for synthesized topologies."""

from typing import Any, Dict, Iterable, List, Set

from network_tools.errors import ErrorKind, Violation
from network_tools.model import NetworkTopology, Reference, ResourceKind, SubnetRole


def _iter_references(value: Any) -> Iterable[Reference]:
    if isinstance(value, Reference):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _iter_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_references(item)


def check_graph_refs(
    topology: NetworkTopology,
    ids: Dict[str, Set[str]],
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Every dependency, edge and attribute reference must name an existing node."""
    del warnings
    seen: Set[str] = set()
    for node in topology.nodes:
        if node.name in seen:
            errors.append(
                Violation(ErrorKind.INCOMPLETE_TOPOLOGY, f"duplicate node name '{node.name}'", node.ref)
            )
        seen.add(node.name)

        for dependency in node.depends_on:
            if dependency not in ids['all']:
                errors.append(
                    Violation(
                        ErrorKind.INCOMPLETE_TOPOLOGY,
                        f"depends_on '{dependency}' does not exist",
                        node.ref,
                    )
                )
        for reference in _iter_references(dict(node.attributes)):
            if reference.target not in ids['all']:
                errors.append(
                    Violation(
                        ErrorKind.INCOMPLETE_TOPOLOGY,
                        f"attribute reference '{reference.target}' does not exist",
                        node.ref,
                    )
                )

    for edge in topology.edges:
        for end in (edge.source, edge.target):
            if end not in ids['all']:
                errors.append(
                    Violation(
                        ErrorKind.INCOMPLETE_TOPOLOGY,
                        f"{edge.relation.value} edge endpoint '{end}' does not exist",
                        f"{edge.source}->{edge.target}",
                    )
                )

    if not ids[ResourceKind.VPC.value]:
        errors.append(Violation(ErrorKind.INCOMPLETE_TOPOLOGY, "topology has no VPC node"))


def _default_targets(topology: NetworkTopology, subnet_name: str) -> List[ResourceKind]:
    kinds = []
    for routing in topology.route_tables_for(subnet_name):
        for target in routing.metadata.get("default_targets", ()) or ():
            target_node = topology.node(target)
            if target_node is not None:
                kinds.append(target_node.kind)
    return kinds


def check_egress_semantics(
    topology: NetworkTopology,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Public subnets route to the internet gateway; private ones only through NAT."""
    intent = topology.intent
    has_nat = intent.enable_nat_gateway and bool(topology.address_plan.public)

    for subnet in topology.subnet_nodes():
        targets = _default_targets(topology, subnet.name)
        role = subnet.role

        if role == SubnetRole.PUBLIC and intent.enable_internet_gateway:
            if ResourceKind.INTERNET_GATEWAY not in targets:
                errors.append(
                    Violation(
                        ErrorKind.INCOMPLETE_TOPOLOGY,
                        "public subnet has no default route to an internet gateway",
                        subnet.ref,
                    )
                )

        if role == SubnetRole.PRIVATE:
            if ResourceKind.INTERNET_GATEWAY in targets:
                errors.append(
                    Violation(
                        ErrorKind.INCOMPLETE_TOPOLOGY,
                        "private subnet routes directly to an internet gateway",
                        subnet.ref,
                    )
                )
            if has_nat and ResourceKind.NAT_GATEWAY not in targets:
                errors.append(
                    Violation(
                        ErrorKind.INCOMPLETE_TOPOLOGY,
                        "private subnet has no outbound route through NAT",
                        subnet.ref,
                    )
                )
            elif not has_nat and not targets:
                warnings.append(f"{subnet.ref}: private subnet has no outbound path")

        if role == SubnetRole.ISOLATED and targets:
            warnings.append(f"{subnet.ref}: isolated subnet has a default route")
