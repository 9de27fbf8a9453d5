"""
Synthesizer for GCP-shaped networks.

Routes are network-global and bind to instances by tag, so subnet
"associations" are virtual nodes. Cloud NAT lives on a Cloud Router,
the firewall policy admits inbound traffic unless told otherwise (hence the
explicit deny rule) and flow logs are a subnetwork setting.
"""

import re
from typing import Any, Dict, List

from network_tools.model import Provider, ResourceKind, SubnetRole

from ..common import (
    IPV4_ANY,
    IPV6_ANY,
    NatPlacement,
    SynthesisContext,
    Synthesizer,
    TopologyBuilder,
    baseline_rules,
    ref,
)

DEFAULT_INTERNET_GATEWAY = "default-internet-gateway"
ROUTE_PRIORITY = 1000


class GcpSynthesizer(Synthesizer):
    """Build GCP VPC network resource graphs."""

    provider = Provider.GCP

    def _project(self, intent) -> Dict[str, str]:
        return {"project": intent.gcp.project} if intent.gcp.project else {}

    def build_base_network(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        plan = builder.address_plan
        options = intent.gcp

        network_name = builder.name("network")
        ctx.vpc = builder.add(
            ResourceKind.VPC,
            network_name,
            {
                "name": network_name,
                **self._project(intent),
                "auto_create_subnetworks": False,
                "routing_mode": "REGIONAL",
                "delete_default_routes_on_create": True,
            },
        )

        for subnet in plan.subnets:
            name = builder.name(subnet.name)
            attributes: Dict[str, Any] = {
                "name": name,
                **self._project(intent),
                "region": options.region,
                "network": ref(ctx.vpc),
                "ip_cidr_range": subnet.cidr,
            }
            if intent.enable_service_endpoints and subnet.role == SubnetRole.PRIVATE:
                attributes["private_ip_google_access"] = True
            if subnet.ipv6_cidr:
                attributes["stack_type"] = "IPV4_IPV6"
                attributes["ipv6_access_type"] = "EXTERNAL"
            if intent.enable_flow_logs:
                attributes["log_config"] = {
                    "aggregation_interval": "INTERVAL_5_SEC",
                    "flow_sampling": options.flow_log_sampling,
                    "metadata": "INCLUDE_ALL_METADATA",
                }

            ctx.subnets[subnet.index] = builder.add(
                ResourceKind.SUBNET,
                name,
                attributes,
                metadata=self.subnet_metadata(intent, subnet),
            )

        if options.enable_vpc_service_controls:
            self._service_perimeter(builder, ctx)

    def _service_perimeter(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        options = intent.gcp
        policy = f"accessPolicies/{options.access_policy_id}"
        # Perimeter names allow only letters, digits and underscores.
        short_name = re.sub(r"[^A-Za-z0-9_]", "_", builder.name("perimeter"))

        status: Dict[str, Any] = {"restricted_services": list(options.restricted_services)}
        if options.project:
            status["resources"] = [f"projects/{options.project}"]

        perimeter = builder.add(
            ResourceKind.SERVICE_PERIMETER,
            builder.name("perimeter"),
            {
                "parent": policy,
                "name": f"{policy}/servicePerimeters/{short_name}",
                "title": short_name,
                "perimeter_type": "PERIMETER_TYPE_REGULAR",
                "status": status,
            },
        )
        builder.attach(perimeter, ctx.vpc)

    def build_public_routing(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        public = builder.address_plan.public

        ctx.internet_gateway = builder.add(
            ResourceKind.INTERNET_GATEWAY,
            builder.name(DEFAULT_INTERNET_GATEWAY),
            {"next_hop_gateway": DEFAULT_INTERNET_GATEWAY},
            depends_on=[ctx.vpc],
            virtual=True,
        )
        if not public:
            return

        tag = builder.name("public")
        route_name = builder.name("public-default")
        ctx.public_route_table = builder.add(
            ResourceKind.ROUTE_TABLE,
            route_name,
            self._route_attributes(intent, route_name, ctx, IPV4_ANY, tag),
            depends_on=[ctx.internet_gateway],
            metadata={"scope": "public", "default_targets": [ctx.internet_gateway], "tag": tag},
        )
        if builder.address_plan.ipv6_cidr:
            v6_name = builder.name("public-default-v6")
            builder.add(
                ResourceKind.ROUTE_TABLE,
                v6_name,
                self._route_attributes(intent, v6_name, ctx, IPV6_ANY, tag),
                depends_on=[ctx.internet_gateway],
                metadata={"scope": "public", "default_targets": [ctx.internet_gateway], "tag": tag},
            )

        for subnet in public:
            self._bind(builder, ctx.subnets[subnet.index], ctx.public_route_table, tag, "public-binding", subnet.name)

    def _route_attributes(self, intent, name: str, ctx: SynthesisContext, dest_range: str, tag: str) -> Dict[str, Any]:
        return {
            "name": name,
            **self._project(intent),
            "network": ref(ctx.vpc, "name"),
            "dest_range": dest_range,
            "next_hop_gateway": DEFAULT_INTERNET_GATEWAY,
            "priority": ROUTE_PRIORITY,
            "tags": [tag],
        }

    def _bind(self, builder: TopologyBuilder, subnet: str, route: str, tag: str, prefix: str, key: str) -> str:
        # Instances in the subnet carry the network tag; nothing to render.
        return builder.add(
            ResourceKind.ROUTE_ASSOCIATION,
            builder.name(prefix, key),
            {"subnetwork": ref(subnet), "tag": tag},
            depends_on=[route],
            virtual=True,
            metadata={"subnet": subnet, "route_table": route},
        )

    def build_private_egress(
        self,
        builder: TopologyBuilder,
        ctx: SynthesisContext,
        placements: List[NatPlacement],
    ) -> None:
        intent = builder.intent
        region = intent.gcp.region

        for placement in placements:
            router_name = builder.name("router", placement.key)
            router = builder.add(
                ResourceKind.NAT_ADDRESS,
                router_name,
                {
                    "name": router_name,
                    **self._project(intent),
                    "region": region,
                    "network": ref(ctx.vpc),
                },
            )

            served = ctx.subnet_names(placement.served)
            nat_name = builder.name("nat", placement.key)
            nat = builder.add(
                ResourceKind.NAT_GATEWAY,
                nat_name,
                {
                    "name": nat_name,
                    **self._project(intent),
                    "region": region,
                    "router": ref(router, "name"),
                    "nat_ip_allocate_option": "AUTO_ONLY",
                    "source_subnetwork_ip_ranges_to_nat": "LIST_OF_SUBNETWORKS",
                    "subnetwork": [
                        {"name": ref(subnet), "source_ip_ranges_to_nat": ["ALL_IP_RANGES"]}
                        for subnet in served
                    ],
                    "log_config": {"enable": intent.enable_flow_logs, "filter": "ERRORS_ONLY"},
                },
                metadata={"anchor_subnet": ctx.subnets[placement.anchor.index], "serves": served},
            )
            ctx.nat_gateways.append(nat)

            # Cloud NAT still needs a default route to leave the network.
            tag = builder.name("private", placement.key)
            route_name = builder.name("private-egress", placement.key)
            depends_on = [nat] + ([ctx.internet_gateway] if ctx.internet_gateway else [])
            route = builder.add(
                ResourceKind.ROUTE_TABLE,
                route_name,
                self._route_attributes(intent, route_name, ctx, IPV4_ANY, tag),
                depends_on=depends_on,
                metadata={"scope": "private", "default_targets": [nat], "tag": tag},
            )

            for subnet in placement.served:
                ctx.private_route_tables[subnet.index] = route
                self._bind(builder, ctx.subnets[subnet.index], route, tag, "private-binding", subnet.name)

    def build_security_baseline(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        # Inbound is admitted by default on GCP, so the deny rule is explicit.
        rules = baseline_rules(explicit_ingress_deny=True, ipv6=bool(builder.address_plan.ipv6_cidr))

        policy_name = builder.name("firewall-policy")
        ctx.security_group = builder.add(
            ResourceKind.SECURITY_GROUP,
            policy_name,
            {
                "name": policy_name,
                **self._project(intent),
                "description": "Baseline policy: deny inbound, allow outbound",
            },
            metadata={"rules": [rule.name for rule in rules], "purpose": "baseline"},
        )
        builder.attach(ctx.security_group, ctx.vpc)

        for rule in rules:
            match: Dict[str, Any] = {"layer4_configs": [{"ip_protocol": rule.protocol}]}
            if rule.direction == "egress":
                match["dest_ip_ranges"] = list(rule.cidrs)
            else:
                match["src_ip_ranges"] = list(rule.cidrs)

            builder.add(
                ResourceKind.SECURITY_RULE,
                builder.name("fw", rule.name),
                {
                    **self._project(intent),
                    "firewall_policy": ref(ctx.security_group, "name"),
                    "rule_name": rule.name,
                    "description": rule.description,
                    "priority": rule.priority,
                    "direction": rule.direction.upper(),
                    "action": rule.action,
                    "match": match,
                },
            )

        builder.add(
            ResourceKind.SECURITY_ASSOCIATION,
            builder.name("firewall-policy-assoc"),
            {
                "name": builder.name("firewall-policy-assoc"),
                **self._project(intent),
                "attachment_target": ref(ctx.vpc),
                "firewall_policy": ref(ctx.security_group, "name"),
            },
        )

    def build_flow_logs(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        """Flow logs are the subnetwork `log_config` set in the base network."""

    def build_service_endpoints(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        # Private Google Access is a subnetwork flag; the node records which subnets get it.
        private_subnets = ctx.subnet_names(builder.address_plan.private)
        endpoint = builder.add(
            ResourceKind.SERVICE_ENDPOINT,
            builder.name("private-google-access"),
            {"private_ip_google_access": True},
            virtual=True,
            metadata={"service": "private.googleapis.com", "attached_subnets": private_subnets},
        )
        for subnet in private_subnets:
            builder.attach(endpoint, subnet)
