"""
Synthesizer for Azure-shaped networks.

Azure differs from AWS in a few structural ways that shape the graph:
- the "Internet" next hop is built in, so the internet gateway is a virtual node
- NAT gateways are bound to subnets directly; the private routing node is virtual
- the NSG is associated with every subnet rather than the VNet
- flow logs hang off the NSG through a network watcher
"""

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
    zone_for,
)

NSG_EGRESS_PRIORITY = 4000
FLOW_LOG_RETENTION_DAYS = 30


class AzureSynthesizer(Synthesizer):
    """Build Azure VNet resource graphs."""

    provider = Provider.AZURE

    def _placement(self, intent) -> Dict[str, str]:
        return {
            "location": intent.azure.location,
            "resource_group_name": resource_group_name(intent),
        }

    def build_hardening(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        if not intent.azure.enable_ddos_protection:
            return

        name = builder.name("ddos-plan")
        builder.add(
            ResourceKind.DDOS_PROTECTION_PLAN,
            name,
            {"name": name, **self._placement(intent), "tags": self.tags(intent, name)},
        )

    def build_base_network(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        plan = builder.address_plan

        address_space = [plan.vpc_cidr]
        if plan.ipv6_cidr:
            address_space.append(plan.ipv6_cidr)

        vnet_name = builder.name("vnet")
        attributes: Dict[str, Any] = {
            "name": vnet_name,
            **self._placement(intent),
            "address_space": address_space,
            "tags": self.tags(intent, vnet_name),
        }
        ddos_plans = builder.names_of(ResourceKind.DDOS_PROTECTION_PLAN)
        if ddos_plans:
            attributes["ddos_protection_plan"] = {"id": ref(ddos_plans[0]), "enable": True}
        ctx.vpc = builder.add(ResourceKind.VPC, vnet_name, attributes)

        for subnet in plan.subnets:
            name = builder.name(subnet.name)
            prefixes = [subnet.cidr]
            if subnet.ipv6_cidr:
                prefixes.append(subnet.ipv6_cidr)

            subnet_attributes: Dict[str, Any] = {
                "name": name,
                "resource_group_name": resource_group_name(intent),
                "virtual_network_name": ref(ctx.vpc, "name"),
                "address_prefixes": prefixes,
            }
            if intent.enable_service_endpoints and subnet.role == SubnetRole.PRIVATE:
                subnet_attributes["service_endpoints"] = list(intent.azure.service_endpoints)

            ctx.subnets[subnet.index] = builder.add(
                ResourceKind.SUBNET,
                name,
                subnet_attributes,
                metadata=self.subnet_metadata(intent, subnet),
            )

    def build_public_routing(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        public = builder.address_plan.public

        ctx.internet_gateway = builder.add(
            ResourceKind.INTERNET_GATEWAY,
            builder.name("internet"),
            {"next_hop_type": "Internet"},
            depends_on=[ctx.vpc],
            virtual=True,
        )
        if not public:
            return

        routes = [{"name": "default-internet", "address_prefix": IPV4_ANY, "next_hop_type": "Internet"}]
        if builder.address_plan.ipv6_cidr:
            routes.append({"name": "default-internet-v6", "address_prefix": IPV6_ANY, "next_hop_type": "Internet"})

        rt_name = builder.name("public-rt")
        ctx.public_route_table = builder.add(
            ResourceKind.ROUTE_TABLE,
            rt_name,
            {
                "name": rt_name,
                **self._placement(intent),
                "route": routes,
                "tags": self.tags(intent, rt_name),
            },
            depends_on=[ctx.internet_gateway],
            metadata={"scope": "public", "default_targets": [ctx.internet_gateway]},
        )

        for subnet in public:
            subnet_node = ctx.subnets[subnet.index]
            builder.add(
                ResourceKind.ROUTE_ASSOCIATION,
                builder.name("public-rta", subnet.name),
                {"subnet_id": ref(subnet_node), "route_table_id": ref(ctx.public_route_table)},
                metadata={"subnet": subnet_node, "route_table": ctx.public_route_table},
            )

    def build_private_egress(
        self,
        builder: TopologyBuilder,
        ctx: SynthesisContext,
        placements: List[NatPlacement],
    ) -> None:
        intent = builder.intent

        for placement in placements:
            zone = zone_for(intent, placement.anchor.index)
            zones = [zone] if zone else None

            pip_name = builder.name("nat-pip", placement.key)
            pip_attributes: Dict[str, Any] = {
                "name": pip_name,
                **self._placement(intent),
                "allocation_method": "Static",
                "sku": "Standard",
                "tags": self.tags(intent, pip_name),
            }
            if zones:
                pip_attributes["zones"] = zones
            public_ip = builder.add(ResourceKind.NAT_ADDRESS, pip_name, pip_attributes)

            nat_name = builder.name("nat", placement.key)
            nat_attributes: Dict[str, Any] = {
                "name": nat_name,
                **self._placement(intent),
                "sku_name": "Standard",
                "idle_timeout_in_minutes": 10,
                "tags": self.tags(intent, nat_name),
            }
            if zones:
                nat_attributes["zones"] = zones
            nat = builder.add(
                ResourceKind.NAT_GATEWAY,
                nat_name,
                nat_attributes,
                depends_on=[public_ip],
                metadata={
                    "anchor_subnet": ctx.subnets[placement.anchor.index],
                    "serves": ctx.subnet_names(placement.served),
                },
            )
            ctx.nat_gateways.append(nat)

            builder.add(
                ResourceKind.NAT_ADDRESS_ASSOCIATION,
                builder.name("nat-pip-assoc", placement.key),
                {"nat_gateway_id": ref(nat), "public_ip_address_id": ref(public_ip)},
            )

            # Subnets bound to a NAT gateway route 0.0.0.0/0 through it implicitly.
            table = builder.add(
                ResourceKind.ROUTE_TABLE,
                builder.name("private-egress", placement.key),
                {"next_hop": "NatGateway"},
                depends_on=[nat],
                virtual=True,
                metadata={"scope": "private", "default_targets": [nat]},
            )

            for subnet in placement.served:
                subnet_node = ctx.subnets[subnet.index]
                ctx.private_route_tables[subnet.index] = table
                builder.add(
                    ResourceKind.ROUTE_ASSOCIATION,
                    builder.name("private-nat-assoc", subnet.name),
                    {"subnet_id": ref(subnet_node), "nat_gateway_id": ref(nat)},
                    depends_on=[table],
                    metadata={"subnet": subnet_node, "route_table": table},
                )

    def build_security_baseline(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        # NSG default rules already deny inbound from the internet.
        rules = baseline_rules(explicit_ingress_deny=False, ipv6=bool(builder.address_plan.ipv6_cidr))

        security_rules = []
        for offset, rule in enumerate(rules):
            security_rules.append({
                "name": rule.name,
                "description": rule.description,
                "priority": NSG_EGRESS_PRIORITY + offset,
                "direction": "Outbound" if rule.direction == "egress" else "Inbound",
                "access": rule.action.capitalize(),
                "protocol": "*",
                "source_port_range": "*",
                "destination_port_range": "*",
                "source_address_prefix": "*",
                "destination_address_prefix": "*",
            })

        nsg_name = builder.name("nsg")
        ctx.security_group = builder.add(
            ResourceKind.SECURITY_GROUP,
            nsg_name,
            {
                "name": nsg_name,
                **self._placement(intent),
                "security_rule": security_rules,
                "tags": self.tags(intent, nsg_name),
            },
            metadata={"rules": [rule.name for rule in rules], "purpose": "baseline"},
        )
        builder.attach(ctx.security_group, ctx.vpc)

        for subnet in builder.address_plan.subnets:
            subnet_node = ctx.subnets[subnet.index]
            builder.add(
                ResourceKind.SECURITY_ASSOCIATION,
                builder.name("nsg-assoc", subnet.name),
                {"subnet_id": ref(subnet_node), "network_security_group_id": ref(ctx.security_group)},
            )

    def build_flow_logs(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        options = intent.azure

        name = builder.name("nsg-flow-log")
        attributes: Dict[str, Any] = {
            "name": name,
            "network_watcher_name": network_watcher_name(intent),
            "resource_group_name": "NetworkWatcherRG",
            "network_security_group_id": ref(ctx.security_group),
            "enabled": True,
            "version": 2,
            "retention_policy": {"enabled": True, "days": FLOW_LOG_RETENTION_DAYS},
            "tags": self.tags(intent, name),
        }
        if options.flow_log_storage_account_id:
            attributes["storage_account_id"] = options.flow_log_storage_account_id

        flow_log = builder.add(ResourceKind.FLOW_LOG, name, attributes)
        builder.attach(flow_log, ctx.security_group)

    def build_service_endpoints(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        # Endpoints are subnet arguments on Azure; these nodes record them in the graph.
        private_subnets = ctx.subnet_names(builder.address_plan.private)
        for service in builder.intent.azure.service_endpoints:
            endpoint = builder.add(
                ResourceKind.SERVICE_ENDPOINT,
                builder.name("se", service.replace(".", "-").lower()),
                {"service": service},
                virtual=True,
                metadata={"service": service, "attached_subnets": private_subnets},
            )
            for subnet in private_subnets:
                builder.attach(endpoint, subnet)


def resource_group_name(intent) -> str:
    return intent.azure.resource_group_name or f"{intent.name_prefix}-rg"


def network_watcher_name(intent) -> str:
    return intent.azure.network_watcher_name or f"NetworkWatcher_{intent.azure.location}"


__all__ = ["AzureSynthesizer", "network_watcher_name", "resource_group_name"]
