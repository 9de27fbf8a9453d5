"""Validation for network intents and synthesized topologies.

- checks: concern-specific check functions
- ids: node name collection for reference checks

Usage:
    from network_tools.validators import validate_intent
    violations = validate_intent(intent)
"""

from typing import List, Optional, Tuple

from network_tools.addressing import resolve_subnet_count
from network_tools.errors import Violation
from network_tools.model import NetworkIntent, NetworkTopology

from .checks import (
    check_address_space,
    check_egress_semantics,
    check_graph_refs,
    check_index_bounds,
    check_index_disjointness,
    check_ipv6_allocation,
    check_name_prefix,
    check_nat_anchor,
    check_provider_features,
    check_subnet_names,
)
from .ids import collect_ids


def validate_intent_with_warnings(intent: NetworkIntent) -> Tuple[List[Violation], List[str]]:
    """Run every intent check, returning (errors, warnings)."""
    errors: List[Violation] = []
    warnings: List[str] = []
    subnet_count = resolve_subnet_count(intent)

    check_name_prefix(intent, errors=errors, warnings=warnings)
    check_address_space(intent, subnet_count, errors=errors, warnings=warnings)
    check_ipv6_allocation(intent, subnet_count, errors=errors, warnings=warnings)
    check_index_bounds(intent, subnet_count, errors=errors, warnings=warnings)
    check_index_disjointness(intent, errors=errors, warnings=warnings)
    check_subnet_names(intent, subnet_count, errors=errors, warnings=warnings)
    check_nat_anchor(intent, subnet_count, errors=errors, warnings=warnings)
    check_provider_features(intent, errors=errors, warnings=warnings)

    return errors, warnings


def validate_intent(intent: NetworkIntent) -> List[Violation]:
    """Collect every problem with an intent in one pass."""
    errors, _ = validate_intent_with_warnings(intent)
    return errors


def validate_topology(
    topology: NetworkTopology,
    warnings: Optional[List[str]] = None,
) -> List[Violation]:
    """Check references and egress guarantees of a synthesized topology."""
    errors: List[Violation] = []
    warnings = warnings if warnings is not None else []
    ids = collect_ids(topology)

    check_graph_refs(topology, ids, errors=errors, warnings=warnings)
    check_egress_semantics(topology, errors=errors, warnings=warnings)

    return errors


__all__ = [
    "collect_ids",
    "validate_intent",
    "validate_intent_with_warnings",
    "validate_topology",
]
