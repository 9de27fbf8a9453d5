"""ID collection helpers for resource graph reference checks."""

from typing import Dict, Set

from network_tools.model import NetworkTopology, ResourceKind


def collect_ids(topology: NetworkTopology) -> Dict[str, Set[str]]:
    """Collect node names by resource kind, plus the full name set under 'all'."""
    ids: Dict[str, Set[str]] = {kind.value: set() for kind in ResourceKind}
    ids['all'] = set()

    for node in topology.nodes:
        ids[node.kind.value].add(node.name)
        ids['all'].add(node.name)

    return ids
