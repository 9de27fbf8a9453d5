"""Intent, address plan, resource graph and contract data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

DEFAULT_VPC_CIDR = "10.0.0.0/16"
DEFAULT_SUBNET_COUNT = 4


class Provider(str, Enum):
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


class SubnetRole(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    # In neither index set: no route to or from the internet.
    ISOLATED = "isolated"


class ResourceKind(str, Enum):
    """Provider-neutral resource categories used by the graph and the resolver."""

    VPC = "vpc"
    SUBNET = "subnet"
    INTERNET_GATEWAY = "internet_gateway"
    EGRESS_ONLY_GATEWAY = "egress_only_gateway"
    NAT_ADDRESS = "nat_address"
    NAT_ADDRESS_ASSOCIATION = "nat_address_association"
    NAT_GATEWAY = "nat_gateway"
    ROUTE_TABLE = "route_table"
    ROUTE_ASSOCIATION = "route_association"
    SECURITY_GROUP = "security_group"
    SECURITY_RULE = "security_rule"
    SECURITY_ASSOCIATION = "security_association"
    LOG_SINK = "log_sink"
    FLOW_LOG = "flow_log"
    SERVICE_ENDPOINT = "service_endpoint"
    DDOS_PROTECTION_PLAN = "ddos_protection_plan"
    SERVICE_PERIMETER = "service_perimeter"


class EdgeRelation(str, Enum):
    DEPENDS_ON = "depends_on"
    ATTACHES_TO = "attaches_to"


@dataclass(frozen=True)
class AwsOptions:
    region: str = "us-east-1"
    vpc_endpoint_services: Tuple[str, ...] = ("s3",)
    cluster_name: Optional[str] = None
    flow_log_retention_days: int = 30
    flow_log_traffic_type: str = "ALL"
    flow_log_iam_role_arn: Optional[str] = None


@dataclass(frozen=True)
class AzureOptions:
    location: str = "eastus"
    resource_group_name: Optional[str] = None
    enable_ddos_protection: bool = False
    service_endpoints: Tuple[str, ...] = ("Microsoft.Storage", "Microsoft.KeyVault")
    flow_log_storage_account_id: Optional[str] = None
    network_watcher_name: Optional[str] = None


@dataclass(frozen=True)
class GcpOptions:
    project: Optional[str] = None
    region: str = "us-central1"
    enable_vpc_service_controls: bool = False
    access_policy_id: Optional[str] = None
    restricted_services: Tuple[str, ...] = ("storage.googleapis.com",)
    flow_log_sampling: float = 0.5


@dataclass(frozen=True)
class KubernetesOptions:
    cluster_endpoint_public_access: bool = True
    cluster_endpoint_private_access: bool = True


@dataclass(frozen=True)
class NetworkIntent:
    """Declarative description of the desired network, before provider resolution."""

    provider: Provider
    name_prefix: str
    vpc_cidr: str = DEFAULT_VPC_CIDR
    subnet_cidrs: Optional[Tuple[str, ...]] = None
    subnet_names: Tuple[str, ...] = ()
    public_subnet_indices: FrozenSet[int] = frozenset({0, 1})
    private_subnet_indices: FrozenSet[int] = frozenset({2, 3})
    availability_zones: Tuple[str, ...] = ()
    enable_internet_gateway: bool = True
    enable_nat_gateway: bool = True
    single_nat_gateway: bool = False
    enable_ipv6: bool = False
    ipv6_cidr: Optional[str] = None
    enable_flow_logs: bool = False
    enable_service_endpoints: bool = False
    aws: AwsOptions = field(default_factory=AwsOptions)
    azure: AzureOptions = field(default_factory=AzureOptions)
    gcp: GcpOptions = field(default_factory=GcpOptions)
    kubernetes: KubernetesOptions = field(default_factory=KubernetesOptions)
    tags: Mapping[str, str] = field(default_factory=dict)

    def role_of(self, index: int) -> SubnetRole:
        if index in self.public_subnet_indices:
            return SubnetRole.PUBLIC
        if index in self.private_subnet_indices:
            return SubnetRole.PRIVATE
        return SubnetRole.ISOLATED

    def subnet_name(self, index: int) -> str:
        if index < len(self.subnet_names) and self.subnet_names[index]:
            return self.subnet_names[index]
        return f"subnet-{index}"


@dataclass(frozen=True)
class SubnetPlan:
    index: int
    name: str
    cidr: str
    role: SubnetRole
    ipv6_cidr: Optional[str] = None


@dataclass(frozen=True)
class AddressPlan:
    vpc_cidr: str
    subnets: Tuple[SubnetPlan, ...]
    ipv6_cidr: Optional[str] = None

    @property
    def cidrs(self) -> List[str]:
        return [subnet.cidr for subnet in self.subnets]

    @property
    def public(self) -> List[SubnetPlan]:
        return [subnet for subnet in self.subnets if subnet.role == SubnetRole.PUBLIC]

    @property
    def private(self) -> List[SubnetPlan]:
        return [subnet for subnet in self.subnets if subnet.role == SubnetRole.PRIVATE]


@dataclass(frozen=True)
class Reference:
    """Attribute value pointing at another node of the same topology."""

    target: str
    attribute: str = "id"


@dataclass(frozen=True)
class ResourceNode:
    """One resource descriptor in a synthesized topology.

    `name` is unique within a topology and is a deterministic function of the
    intent. `virtual` nodes stand for primitives the platform provides
    implicitly; they take part in ordering but are never rendered. `metadata`
    holds planning facts (subnet role and index, route scope) that are not
    provider arguments.
    """

    kind: ResourceKind
    provider: Provider
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    depends_on: Tuple[str, ...] = ()
    virtual: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ref(self) -> str:
        return f"{self.kind.value}.{self.name}"

    @property
    def role(self) -> Optional[SubnetRole]:
        role = self.metadata.get("role")
        return SubnetRole(role) if role else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "provider": self.provider.value,
            "name": self.name,
            "attributes": _plain(self.attributes),
            "depends_on": list(self.depends_on),
            "virtual": self.virtual,
            "metadata": _plain(self.metadata),
        }


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    relation: EdgeRelation = EdgeRelation.DEPENDS_ON


@dataclass(frozen=True)
class NetworkTopology:
    """A provider-tagged resource graph built by one synthesizer call."""

    provider: Provider
    intent: NetworkIntent
    address_plan: AddressPlan
    nodes: Tuple[ResourceNode, ...]
    edges: Tuple[Edge, ...] = ()

    def node(self, name: str) -> Optional[ResourceNode]:
        for candidate in self.nodes:
            if candidate.name == name:
                return candidate
        return None

    def nodes_of(self, kind: ResourceKind) -> List[ResourceNode]:
        return [node for node in self.nodes if node.kind == kind]

    def subnet_nodes(self) -> List[ResourceNode]:
        subnets = self.nodes_of(ResourceKind.SUBNET)
        return sorted(subnets, key=lambda node: node.metadata.get("index", 0))

    def dependencies_of(self, name: str) -> List[str]:
        """Names of every node `name` must be created after."""
        node = self.node(name)
        targets = list(node.depends_on) if node else []
        for edge in self.edges:
            if edge.source == name and edge.target not in targets:
                targets.append(edge.target)
        return targets

    def route_tables_for(self, subnet_name: str) -> List[ResourceNode]:
        """Routing nodes a subnet is associated with."""
        tables = []
        for association in self.nodes_of(ResourceKind.ROUTE_ASSOCIATION):
            if association.metadata.get("subnet") != subnet_name:
                continue
            routing = self.node(association.metadata.get("route_table", ""))
            if routing is not None:
                tables.append(routing)
        return tables


@dataclass(frozen=True)
class KubernetesNetworkConfig:
    vpc_id: str
    subnet_ids: Tuple[str, ...]
    public_subnets: Tuple[str, ...]
    private_subnets: Tuple[str, ...]
    pod_cidr: Optional[str]
    service_cidr: Optional[str]
    cluster_endpoint_public_access: bool
    cluster_endpoint_private_access: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vpc_id": self.vpc_id,
            "subnet_ids": list(self.subnet_ids),
            "public_subnets": list(self.public_subnets),
            "private_subnets": list(self.private_subnets),
            "pod_cidr": self.pod_cidr,
            "service_cidr": self.service_cidr,
            "cluster_endpoint_public_access": self.cluster_endpoint_public_access,
            "cluster_endpoint_private_access": self.cluster_endpoint_private_access,
        }


@dataclass(frozen=True)
class NetworkContract:
    """Provider-agnostic outputs consumed by cluster provisioning."""

    provider: Provider
    vpc_id: str
    vpc_name: str
    vpc_cidr: str
    subnet_ids: Tuple[str, ...]
    subnet_cidrs: Tuple[str, ...]
    public_subnet_ids: Tuple[str, ...]
    private_subnet_ids: Tuple[str, ...]
    k8s_network_config: KubernetesNetworkConfig
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.value,
            "vpc_id": self.vpc_id,
            "vpc_name": self.vpc_name,
            "vpc_cidr": self.vpc_cidr,
            "subnet_ids": list(self.subnet_ids),
            "subnet_cidrs": list(self.subnet_cidrs),
            "public_subnet_ids": list(self.public_subnet_ids),
            "private_subnet_ids": list(self.private_subnet_ids),
            "k8s_network_config": self.k8s_network_config.to_dict(),
        }


def _plain(value: Any) -> Any:
    """Convert attribute values into JSON-friendly structures."""
    if isinstance(value, Reference):
        return {"ref": value.target, "attribute": value.attribute}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_plain(item) for item in value]
        return sorted(items) if isinstance(value, (set, frozenset)) else items
    return value
