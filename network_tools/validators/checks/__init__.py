"""Validation checks grouped by concern.

- intent: name prefix, subnet index bounds/disjointness, NAT anchoring
- addressing: VPC block, explicit subnet layout, IPv6 allocation
- features: provider-exclusive features and provider option completeness
- topology: graph references and egress semantics of synthesized topologies
"""

from .addressing import check_address_space, check_ipv6_allocation
from .features import check_provider_features, unsupported_features
from .intent import (
    check_index_bounds,
    check_index_disjointness,
    check_name_prefix,
    check_nat_anchor,
    check_subnet_names,
)
from .topology import check_egress_semantics, check_graph_refs

__all__ = [
    # Intent checks
    "check_index_bounds",
    "check_index_disjointness",
    "check_name_prefix",
    "check_nat_anchor",
    "check_subnet_names",
    # Addressing checks
    "check_address_space",
    "check_ipv6_allocation",
    # Feature checks
    "check_provider_features",
    "unsupported_features",
    # Topology checks
    "check_egress_semantics",
    "check_graph_refs",
]
