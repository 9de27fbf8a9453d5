"""Incremental construction of resource graphs."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from network_tools.errors import InvalidNameError
from network_tools.model import (
    AddressPlan,
    Edge,
    EdgeRelation,
    NetworkIntent,
    NetworkTopology,
    Reference,
    ResourceKind,
    ResourceNode,
)


def find_references(value: Any) -> List[Reference]:
    """Collect every `Reference` nested in an attribute value, in order."""
    found: List[Reference] = []
    if isinstance(value, Reference):
        found.append(value)
    elif isinstance(value, Mapping):
        for item in value.values():
            found.extend(find_references(item))
    elif isinstance(value, (list, tuple)):
        for item in value:
            found.extend(find_references(item))
    return found


class TopologyBuilder:
    """Collects nodes and edges for one synthesis call.

    Node dependencies are the union of explicit `depends_on` names and every
    `Reference` found in the node's attributes, kept in first-seen order so
    the same intent always yields the same graph.
    """

    def __init__(self, intent: NetworkIntent, address_plan: AddressPlan):
        self.intent = intent
        self.address_plan = address_plan
        self.provider = intent.provider
        self._nodes: Dict[str, ResourceNode] = {}
        self._edges: List[Edge] = []

    def name(self, *parts: str) -> str:
        """Deterministic resource name under the intent's prefix."""
        return "-".join([self.intent.name_prefix, *[str(part) for part in parts if part != ""]])

    def add(
        self,
        kind: ResourceKind,
        name: str,
        attributes: Optional[Mapping[str, Any]] = None,
        *,
        depends_on: Iterable[str] = (),
        virtual: bool = False,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> str:
        if name in self._nodes:
            raise InvalidNameError(f"Duplicate resource name '{name}'")

        attributes = dict(attributes or {})
        dependencies: List[str] = []
        for reference in find_references(attributes):
            if reference.target not in dependencies:
                dependencies.append(reference.target)
        for dependency in depends_on:
            if dependency not in dependencies:
                dependencies.append(dependency)

        self._nodes[name] = ResourceNode(
            kind=kind,
            provider=self.provider,
            name=name,
            attributes=attributes,
            depends_on=tuple(dependencies),
            virtual=virtual,
            metadata=dict(metadata or {}),
        )
        return name

    def attach(self, source: str, target: str) -> None:
        """Record that `source` is attached to `target`."""
        edge = Edge(source=source, target=target, relation=EdgeRelation.ATTACHES_TO)
        if edge not in self._edges:
            self._edges.append(edge)

    def get(self, name: str) -> ResourceNode:
        return self._nodes[name]

    def names_of(self, kind: ResourceKind) -> List[str]:
        return [name for name, node in self._nodes.items() if node.kind == kind]

    def build(self) -> NetworkTopology:
        return NetworkTopology(
            provider=self.provider,
            intent=self.intent,
            address_plan=self.address_plan,
            nodes=tuple(self._nodes.values()),
            edges=tuple(self._edges),
        )


def ref(name: str, attribute: str = "id") -> Reference:
    return Reference(name, attribute)


def refs(names: Sequence[str], attribute: str = "id") -> List[Reference]:
    return [Reference(name, attribute) for name in names]
