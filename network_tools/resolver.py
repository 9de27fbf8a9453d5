"""Creation ordering for synthesized topologies."""

from __future__ import annotations

import heapq
from typing import Dict, List, Set, Tuple

from .errors import DependencyCycleError, ErrorKind, IncompleteTopologyError, Violation
from .model import NetworkTopology, ResourceKind, ResourceNode

GATEWAY_KINDS = (
    ResourceKind.INTERNET_GATEWAY,
    ResourceKind.EGRESS_ONLY_GATEWAY,
    ResourceKind.NAT_GATEWAY,
)

# (before, after): every node of the first kind precedes every node of the second.
KIND_RULES: Tuple[Tuple[ResourceKind, ResourceKind], ...] = (
    *((gateway, ResourceKind.ROUTE_TABLE) for gateway in GATEWAY_KINDS),
    (ResourceKind.ROUTE_TABLE, ResourceKind.ROUTE_ASSOCIATION),
    (ResourceKind.VPC, ResourceKind.SUBNET),
    (ResourceKind.NAT_ADDRESS, ResourceKind.NAT_GATEWAY),
    (ResourceKind.SUBNET, ResourceKind.ROUTE_ASSOCIATION),
)


def _predecessors(topology: NetworkTopology) -> Dict[str, Set[str]]:
    names = {node.name for node in topology.nodes}
    missing: List[Violation] = []
    predecessors: Dict[str, Set[str]] = {node.name: set() for node in topology.nodes}

    for node in topology.nodes:
        for dependency in node.depends_on:
            if dependency not in names:
                missing.append(
                    Violation(ErrorKind.INCOMPLETE_TOPOLOGY, f"depends on missing node '{dependency}'", node.ref)
                )
                continue
            predecessors[node.name].add(dependency)

    for edge in topology.edges:
        if edge.source not in names or edge.target not in names:
            missing.append(
                Violation(
                    ErrorKind.INCOMPLETE_TOPOLOGY,
                    f"{edge.relation.value} edge references a missing node",
                    f"{edge.source}->{edge.target}",
                )
            )
            continue
        predecessors[edge.source].add(edge.target)

    if missing:
        raise IncompleteTopologyError(missing[0].message, field=missing[0].field, violations=missing)

    by_kind: Dict[ResourceKind, List[str]] = {}
    for node in topology.nodes:
        by_kind.setdefault(node.kind, []).append(node.name)
    for before, after in KIND_RULES:
        for later in by_kind.get(after, []):
            predecessors[later].update(by_kind.get(before, []))

    return predecessors


def order(topology: NetworkTopology) -> List[ResourceNode]:
    """
    Sort nodes so every node comes after everything it depends on.

    Dependencies are the union of each node's `depends_on`, the graph edges
    (an edge orders its target first) and the kind rules above. Among nodes
    that are ready at the same time the one synthesized first wins, so the
    result is stable for a given topology.

    Raises:
        IncompleteTopologyError: a dependency or edge names a missing node.
        DependencyCycleError: the dependencies form a cycle.
    """
    predecessors = _predecessors(topology)
    position = {node.name: index for index, node in enumerate(topology.nodes)}
    by_name = {node.name: node for node in topology.nodes}

    successors: Dict[str, List[str]] = {name: [] for name in predecessors}
    remaining = {name: len(deps) for name, deps in predecessors.items()}
    for name, deps in predecessors.items():
        for dependency in deps:
            successors[dependency].append(name)

    ready = [(position[name], name) for name, count in remaining.items() if count == 0]
    heapq.heapify(ready)

    ordered: List[ResourceNode] = []
    while ready:
        _, name = heapq.heappop(ready)
        ordered.append(by_name[name])
        for successor in successors[name]:
            remaining[successor] -= 1
            if remaining[successor] == 0:
                heapq.heappush(ready, (position[successor], successor))

    if len(ordered) != len(topology.nodes):
        stuck = sorted((name for name, count in remaining.items() if count > 0), key=position.get)
        raise DependencyCycleError(
            f"Dependency cycle among: {', '.join(stuck)}",
            violations=[
                Violation(ErrorKind.DEPENDENCY_CYCLE, "node is part of or blocked by a cycle", by_name[name].ref)
                for name in stuck
            ],
        )

    return ordered


def order_names(topology: NetworkTopology) -> List[str]:
    return [node.name for node in order(topology)]
