"""Base class and shared sub-graph builders for provider synthesizers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from network_tools.errors import (
    ErrorKind,
    IntentValidationError,
    UnsupportedFeatureError,
    Violation,
)
from network_tools.model import (
    AddressPlan,
    NetworkIntent,
    NetworkTopology,
    Provider,
    SubnetPlan,
)
from network_tools.validators.checks import unsupported_features

from .graph import TopologyBuilder

IPV4_ANY = "0.0.0.0/0"
IPV6_ANY = "::/0"


@dataclass(frozen=True)
class SecurityRule:
    """Provider-neutral firewall rule used to express the security baseline."""

    name: str
    direction: str  # "ingress" | "egress"
    action: str  # "allow" | "deny"
    priority: int
    protocol: str = "all"
    cidrs: Tuple[str, ...] = (IPV4_ANY,)
    description: str = ""


@dataclass
class NatPlacement:
    """One NAT instance: the public subnet it lives in and the private subnets it serves."""

    key: str
    anchor: SubnetPlan
    served: List[SubnetPlan] = field(default_factory=list)


@dataclass
class SynthesisContext:
    """Names of the nodes built so far, shared between the build steps."""

    vpc: str = ""
    subnets: Dict[int, str] = field(default_factory=dict)
    internet_gateway: Optional[str] = None
    public_route_table: Optional[str] = None
    private_route_tables: Dict[int, str] = field(default_factory=dict)
    nat_gateways: List[str] = field(default_factory=list)
    security_group: Optional[str] = None

    def subnet_names(self, plans: Sequence[SubnetPlan]) -> List[str]:
        return [self.subnets[plan.index] for plan in plans]


def baseline_rules(explicit_ingress_deny: bool, ipv6: bool) -> List[SecurityRule]:
    """Deny-inbound / allow-outbound posture shared by every provider.

    Providers whose native default admits inbound traffic get an explicit
    deny-all ingress rule at the lowest priority.
    """
    cidrs = (IPV4_ANY, IPV6_ANY) if ipv6 else (IPV4_ANY,)
    rules = [
        SecurityRule(
            name="allow-all-egress",
            direction="egress",
            action="allow",
            priority=65534,
            cidrs=cidrs,
            description="Allow all outbound traffic",
        )
    ]
    if explicit_ingress_deny:
        rules.append(
            SecurityRule(
                name="deny-all-ingress",
                direction="ingress",
                action="deny",
                priority=65535,
                cidrs=cidrs,
                description="Deny all inbound traffic",
            )
        )
    return rules


def zone_for(intent: NetworkIntent, index: int) -> Optional[str]:
    zones = intent.availability_zones
    if not zones:
        return None
    return zones[index % len(zones)]


def nat_placements(intent: NetworkIntent, plan: AddressPlan) -> List[NatPlacement]:
    """Decide how many NATs are needed and where each one is anchored.

    Single mode anchors one NAT in the first public subnet and serves every
    private subnet. Otherwise each private subnet gets its own NAT, anchored
    in a public subnet of the same zone when there is one, else round-robin.
    """
    public = plan.public
    private = plan.private
    if not intent.enable_nat_gateway or not private or not public:
        return []

    if intent.single_nat_gateway:
        return [NatPlacement(key="", anchor=public[0], served=list(private))]

    placements = []
    for position, subnet in enumerate(private):
        zone = zone_for(intent, subnet.index)
        same_zone = [candidate for candidate in public if zone and zone_for(intent, candidate.index) == zone]
        anchor = same_zone[0] if same_zone else public[position % len(public)]
        placements.append(NatPlacement(key=subnet.name, anchor=anchor, served=[subnet]))
    return placements


class Synthesizer(ABC):
    """Turns an intent and its address plan into a provider resource graph.

    Subclasses implement one build step per sub-topology; `synthesize` runs
    them in a fixed order, each gated by the intent's toggles.
    """

    provider: Provider

    def synthesize(self, intent: NetworkIntent, address_plan: AddressPlan) -> NetworkTopology:
        """
        Build the topology for `intent`.

        Raises:
            UnsupportedFeatureError: a requested feature does not exist on this provider.
            IntentValidationError: NAT egress was requested without a public anchor subnet.
        """
        self.check_support(intent)
        if intent.enable_nat_gateway and address_plan.private and not address_plan.public:
            raise IntentValidationError([
                Violation(
                    ErrorKind.MISSING_NAT_ANCHOR,
                    "NAT gateway requires at least one public subnet to anchor in",
                    "public_subnet_indices",
                )
            ])

        builder = TopologyBuilder(intent, address_plan)
        ctx = SynthesisContext()

        self.build_hardening(builder, ctx)
        self.build_base_network(builder, ctx)
        if intent.enable_internet_gateway:
            self.build_public_routing(builder, ctx)
        self.build_private_egress(builder, ctx, nat_placements(intent, address_plan))
        self.build_security_baseline(builder, ctx)
        if intent.enable_flow_logs:
            self.build_flow_logs(builder, ctx)
        if intent.enable_service_endpoints and address_plan.private:
            self.build_service_endpoints(builder, ctx)

        return builder.build()

    def check_support(self, intent: NetworkIntent) -> None:
        if intent.provider != self.provider:
            raise UnsupportedFeatureError(
                f"{type(self).__name__} cannot synthesize provider '{intent.provider.value}'",
                field="provider",
            )

        unsupported = unsupported_features(intent)
        if unsupported:
            raise UnsupportedFeatureError(
                unsupported[0].message,
                field=unsupported[0].field,
                violations=unsupported,
            )

    def subnet_metadata(self, intent: NetworkIntent, subnet: SubnetPlan) -> Dict[str, object]:
        return {
            "index": subnet.index,
            "role": subnet.role.value,
            "tier": subnet.role.value,
            "cidr": subnet.cidr,
            "ipv6_cidr": subnet.ipv6_cidr,
            "zone": zone_for(intent, subnet.index),
        }

    def tags(
        self,
        intent: NetworkIntent,
        name: str,
        extra: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        tags = {"Name": name}
        tags.update(intent.tags)
        tags.update(extra or {})
        return tags

    def build_hardening(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        """Provider-exclusive hardening built ahead of the VPC. No-op by default."""

    @abstractmethod
    def build_base_network(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        ...

    @abstractmethod
    def build_public_routing(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        ...

    @abstractmethod
    def build_private_egress(
        self,
        builder: TopologyBuilder,
        ctx: SynthesisContext,
        placements: List[NatPlacement],
    ) -> None:
        ...

    @abstractmethod
    def build_security_baseline(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        ...

    @abstractmethod
    def build_flow_logs(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        ...

    @abstractmethod
    def build_service_endpoints(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        ...
