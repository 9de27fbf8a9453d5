"""Shared helpers for provider synthesizers."""

from .base import (
    IPV4_ANY,
    IPV6_ANY,
    NatPlacement,
    SecurityRule,
    SynthesisContext,
    Synthesizer,
    baseline_rules,
    nat_placements,
    zone_for,
)
from .graph import TopologyBuilder, find_references, ref, refs

__all__ = [
    "IPV4_ANY",
    "IPV6_ANY",
    "NatPlacement",
    "SecurityRule",
    "SynthesisContext",
    "Synthesizer",
    "TopologyBuilder",
    "baseline_rules",
    "find_references",
    "nat_placements",
    "ref",
    "refs",
    "zone_for",
]
