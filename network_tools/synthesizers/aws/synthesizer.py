"""
Synthesizer for AWS-shaped networks.

VPC + subnets, an internet gateway with a shared public route table, NAT
gateways on Elastic IPs with private route tables, an egress-only internet
gateway for IPv6, a baseline security group, VPC flow logs to CloudWatch
and VPC endpoints for private subnets.
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
    refs,
    zone_for,
)

# Services reachable through gateway endpoints (route table entries); all
# others are interface endpoints placed in the private subnets.
GATEWAY_ENDPOINT_SERVICES = frozenset({"s3", "dynamodb"})

ELB_ROLE_TAGS = {
    SubnetRole.PUBLIC: "kubernetes.io/role/elb",
    SubnetRole.PRIVATE: "kubernetes.io/role/internal-elb",
}


class AwsSynthesizer(Synthesizer):
    """Build AWS VPC resource graphs."""

    provider = Provider.AWS

    def build_base_network(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        plan = builder.address_plan

        vpc_name = builder.name("vpc")
        vpc_attributes: Dict[str, Any] = {
            "cidr_block": plan.vpc_cidr,
            "enable_dns_support": True,
            "enable_dns_hostnames": True,
            "tags": self.tags(intent, vpc_name),
        }
        if plan.ipv6_cidr:
            vpc_attributes["ipv6_cidr_block"] = plan.ipv6_cidr
        ctx.vpc = builder.add(ResourceKind.VPC, vpc_name, vpc_attributes)

        for subnet in plan.subnets:
            name = builder.name(subnet.name)
            extra_tags = {"Tier": subnet.role.value}
            elb_tag = ELB_ROLE_TAGS.get(subnet.role)
            if elb_tag:
                extra_tags[elb_tag] = "1"
            if intent.aws.cluster_name:
                extra_tags[f"kubernetes.io/cluster/{intent.aws.cluster_name}"] = "shared"

            attributes: Dict[str, Any] = {
                "vpc_id": ref(ctx.vpc),
                "cidr_block": subnet.cidr,
                "availability_zone": zone_for(intent, subnet.index),
                "map_public_ip_on_launch": subnet.role == SubnetRole.PUBLIC,
                "tags": self.tags(intent, name, extra_tags),
            }
            if subnet.ipv6_cidr:
                attributes["ipv6_cidr_block"] = subnet.ipv6_cidr
                attributes["assign_ipv6_address_on_creation"] = True

            ctx.subnets[subnet.index] = builder.add(
                ResourceKind.SUBNET,
                name,
                attributes,
                metadata=self.subnet_metadata(intent, subnet),
            )

    def build_public_routing(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        public = builder.address_plan.public

        igw_name = builder.name("igw")
        ctx.internet_gateway = builder.add(
            ResourceKind.INTERNET_GATEWAY,
            igw_name,
            {"vpc_id": ref(ctx.vpc), "tags": self.tags(intent, igw_name)},
        )
        if not public:
            return

        routes = [{"cidr_block": IPV4_ANY, "gateway_id": ref(ctx.internet_gateway)}]
        if builder.address_plan.ipv6_cidr:
            routes.append({"ipv6_cidr_block": IPV6_ANY, "gateway_id": ref(ctx.internet_gateway)})

        rt_name = builder.name("public-rt")
        ctx.public_route_table = builder.add(
            ResourceKind.ROUTE_TABLE,
            rt_name,
            {"vpc_id": ref(ctx.vpc), "route": routes, "tags": self.tags(intent, rt_name)},
            metadata={"scope": "public", "default_targets": [ctx.internet_gateway]},
        )

        for subnet in public:
            self._associate(builder, ctx.subnets[subnet.index], ctx.public_route_table, "public-rta", subnet.name)

    def build_private_egress(
        self,
        builder: TopologyBuilder,
        ctx: SynthesisContext,
        placements: List[NatPlacement],
    ) -> None:
        intent = builder.intent
        private = builder.address_plan.private
        if not private:
            return

        egress_only = None
        if intent.enable_ipv6:
            eigw_name = builder.name("eigw")
            egress_only = builder.add(
                ResourceKind.EGRESS_ONLY_GATEWAY,
                eigw_name,
                {"vpc_id": ref(ctx.vpc), "tags": self.tags(intent, eigw_name)},
            )

        if not placements:
            # No NAT: one shared private route table, outbound IPv4 stays local.
            targets = [egress_only] if egress_only else []
            table = self._private_route_table(builder, ctx, "", None, egress_only, targets)
            for subnet in private:
                ctx.private_route_tables[subnet.index] = table
                self._associate(builder, ctx.subnets[subnet.index], table, "private-rta", subnet.name)
            return

        for placement in placements:
            eip_name = builder.name("nat-eip", placement.key)
            eip = builder.add(
                ResourceKind.NAT_ADDRESS,
                eip_name,
                {"domain": "vpc", "tags": self.tags(intent, eip_name)},
            )

            nat_name = builder.name("nat", placement.key)
            depends_on = [ctx.internet_gateway] if ctx.internet_gateway else []
            nat = builder.add(
                ResourceKind.NAT_GATEWAY,
                nat_name,
                {
                    "allocation_id": ref(eip),
                    "subnet_id": ref(ctx.subnets[placement.anchor.index]),
                    "tags": self.tags(intent, nat_name),
                },
                depends_on=depends_on,
                metadata={
                    "anchor_subnet": ctx.subnets[placement.anchor.index],
                    "serves": ctx.subnet_names(placement.served),
                },
            )
            ctx.nat_gateways.append(nat)

            targets = [nat] + ([egress_only] if egress_only else [])
            table = self._private_route_table(builder, ctx, placement.key, nat, egress_only, targets)
            for subnet in placement.served:
                ctx.private_route_tables[subnet.index] = table
                self._associate(builder, ctx.subnets[subnet.index], table, "private-rta", subnet.name)

    def _private_route_table(
        self,
        builder: TopologyBuilder,
        ctx: SynthesisContext,
        key: str,
        nat: Any,
        egress_only: Any,
        targets: List[str],
    ) -> str:
        routes = []
        if nat:
            routes.append({"cidr_block": IPV4_ANY, "nat_gateway_id": ref(nat)})
        if egress_only:
            routes.append({"ipv6_cidr_block": IPV6_ANY, "egress_only_gateway_id": ref(egress_only)})

        rt_name = builder.name("private-rt", key)
        return builder.add(
            ResourceKind.ROUTE_TABLE,
            rt_name,
            {"vpc_id": ref(ctx.vpc), "route": routes, "tags": self.tags(builder.intent, rt_name)},
            metadata={"scope": "private", "default_targets": targets},
        )

    def _associate(self, builder: TopologyBuilder, subnet: str, table: str, prefix: str, key: str) -> str:
        return builder.add(
            ResourceKind.ROUTE_ASSOCIATION,
            builder.name(prefix, key),
            {"subnet_id": ref(subnet), "route_table_id": ref(table)},
            metadata={"subnet": subnet, "route_table": table},
        )

    def build_security_baseline(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        ipv6 = bool(builder.address_plan.ipv6_cidr)
        # Security groups deny inbound unless a rule allows it.
        rules = baseline_rules(explicit_ingress_deny=False, ipv6=ipv6)

        egress = []
        for rule in rules:
            if rule.direction != "egress":
                continue
            egress.append({
                "description": rule.description,
                "from_port": 0,
                "to_port": 0,
                "protocol": "-1",
                "cidr_blocks": [cidr for cidr in rule.cidrs if ":" not in cidr],
                "ipv6_cidr_blocks": [cidr for cidr in rule.cidrs if ":" in cidr],
            })

        sg_name = builder.name("default-sg")
        ctx.security_group = builder.add(
            ResourceKind.SECURITY_GROUP,
            sg_name,
            {
                "name": sg_name,
                "description": "Baseline security group: deny inbound, allow outbound",
                "vpc_id": ref(ctx.vpc),
                "ingress": [],
                "egress": egress,
                "tags": self.tags(intent, sg_name),
            },
            metadata={"rules": [rule.name for rule in rules], "purpose": "baseline"},
        )
        builder.attach(ctx.security_group, ctx.vpc)

    def build_flow_logs(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent

        group_name = builder.name("flow-logs")
        log_group = builder.add(
            ResourceKind.LOG_SINK,
            group_name,
            {
                "name": f"/aws/vpc/{group_name}",
                "retention_in_days": intent.aws.flow_log_retention_days,
                "tags": self.tags(intent, group_name),
            },
        )

        flow_log_name = builder.name("flow-log")
        attributes: Dict[str, Any] = {
            "vpc_id": ref(ctx.vpc),
            "traffic_type": intent.aws.flow_log_traffic_type,
            "log_destination_type": "cloud-watch-logs",
            "log_destination": ref(log_group, "arn"),
            "tags": self.tags(intent, flow_log_name),
        }
        if intent.aws.flow_log_iam_role_arn:
            attributes["iam_role_arn"] = intent.aws.flow_log_iam_role_arn
        flow_log = builder.add(ResourceKind.FLOW_LOG, flow_log_name, attributes)
        builder.attach(flow_log, ctx.vpc)

    def build_service_endpoints(self, builder: TopologyBuilder, ctx: SynthesisContext) -> None:
        intent = builder.intent
        private = builder.address_plan.private
        region = intent.aws.region
        private_subnets = ctx.subnet_names(private)
        private_tables: List[str] = []
        for subnet in private:
            table = ctx.private_route_tables.get(subnet.index)
            if table and table not in private_tables:
                private_tables.append(table)

        services = list(intent.aws.vpc_endpoint_services)
        interface_services = [svc for svc in services if svc not in GATEWAY_ENDPOINT_SERVICES]

        endpoint_sg = None
        if interface_services:
            sg_name = builder.name("vpce-sg")
            endpoint_sg = builder.add(
                ResourceKind.SECURITY_GROUP,
                sg_name,
                {
                    "name": sg_name,
                    "description": "VPC endpoint security group",
                    "vpc_id": ref(ctx.vpc),
                    "ingress": [{
                        "description": "HTTPS from the VPC",
                        "from_port": 443,
                        "to_port": 443,
                        "protocol": "tcp",
                        "cidr_blocks": [builder.address_plan.vpc_cidr],
                    }],
                    "egress": [],
                    "tags": self.tags(intent, sg_name),
                },
                metadata={"purpose": "endpoint"},
            )

        for service in services:
            name = builder.name("vpce", service.replace(".", "-"))
            attributes: Dict[str, Any] = {
                "vpc_id": ref(ctx.vpc),
                "service_name": f"com.amazonaws.{region}.{service}",
                "tags": self.tags(intent, name),
            }
            if service in GATEWAY_ENDPOINT_SERVICES:
                attributes["vpc_endpoint_type"] = "Gateway"
                attributes["route_table_ids"] = refs(private_tables)
            else:
                attributes["vpc_endpoint_type"] = "Interface"
                attributes["subnet_ids"] = refs(private_subnets)
                attributes["security_group_ids"] = refs([endpoint_sg])
                attributes["private_dns_enabled"] = True

            endpoint = builder.add(
                ResourceKind.SERVICE_ENDPOINT,
                name,
                attributes,
                metadata={"service": service, "attached_subnets": private_subnets},
            )
            for subnet in private_subnets:
                builder.attach(endpoint, subnet)
