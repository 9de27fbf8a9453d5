"""
Planning facade: intent in, ordered resources and output contract out.

    from network_tools import NetworkIntent, Provider, plan_network

    result = plan_network(NetworkIntent(provider=Provider.AWS, name_prefix="dev"))
    if not result.ok:
        for violation in result.violations:
            print(f"ERROR {violation}")

Intent problems (bad CIDRs, index errors, unsupported features) come back as
violations on the result. `DependencyCycleError` and
`IncompleteTopologyError` mean a synthesizer produced a broken graph; they
are raised, never folded into a partial result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .addressing import plan_addresses
from .errors import IncompleteTopologyError, NetworkError, Violation
from .model import AddressPlan, NetworkContract, NetworkIntent, NetworkTopology, ResourceNode
from .normalizer import normalize
from .resolver import order
from .synthesizers import synthesize
from .validators import validate_intent_with_warnings, validate_topology


@dataclass(frozen=True)
class PlanResult:
    intent: NetworkIntent
    violations: Tuple[Violation, ...] = ()
    warnings: Tuple[str, ...] = ()
    address_plan: Optional[AddressPlan] = None
    topology: Optional[NetworkTopology] = None
    resources: Tuple[ResourceNode, ...] = ()
    contract: Optional[NetworkContract] = None

    @property
    def ok(self) -> bool:
        return not self.violations and self.contract is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "violations": [
                {"kind": v.kind.value, "message": v.message, "field": v.field} for v in self.violations
            ],
            "warnings": list(self.warnings),
            "resources": [node.to_dict() for node in self.resources],
            "contract": self.contract.to_dict() if self.contract else None,
        }


def plan_network(intent: NetworkIntent) -> PlanResult:
    """
    Validate, partition, synthesize, order and normalize one intent.

    Raises:
        DependencyCycleError: the synthesized graph has a cycle.
        IncompleteTopologyError: the synthesized graph is missing nodes or
            breaks an egress guarantee.
    """
    errors, warnings = validate_intent_with_warnings(intent)
    if errors:
        return PlanResult(intent=intent, violations=tuple(errors), warnings=tuple(warnings))

    try:
        address_plan = plan_addresses(intent)
        topology = synthesize(intent, address_plan)
    except NetworkError as e:
        if e.is_fatal:
            raise
        return PlanResult(intent=intent, violations=tuple(e.violations), warnings=tuple(warnings))

    topology_errors = validate_topology(topology, warnings)
    if topology_errors:
        first = topology_errors[0]
        raise IncompleteTopologyError(first.message, field=first.field, violations=topology_errors)

    resources = order(topology)
    contract = normalize(topology)

    return PlanResult(
        intent=intent,
        warnings=tuple(warnings) + contract.warnings,
        address_plan=address_plan,
        topology=topology,
        resources=tuple(resources),
        contract=contract,
    )


def plan_many(intents: Iterable[NetworkIntent]) -> List[PlanResult]:
    """Plan several intents; each plan is independent of the others."""
    return [plan_network(intent) for intent in intents]
