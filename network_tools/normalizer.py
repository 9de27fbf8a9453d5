"""Provider-agnostic output contract for synthesized topologies."""

from __future__ import annotations

import ipaddress
from typing import List, Optional, Tuple

from .addressing import carve_block
from .errors import IncompleteTopologyError, NetworkError
from .model import (
    KubernetesNetworkConfig,
    NetworkContract,
    NetworkTopology,
    ResourceKind,
    SubnetRole,
)

K8S_CIDR_NEWBITS = 8
POD_CIDR_INDEX = 16
SERVICE_CIDR_INDEX = 17


def _cluster_block(
    vpc_cidr: str,
    index: int,
    label: str,
    subnet_cidrs: Tuple[str, ...],
    warnings: List[str],
) -> Optional[str]:
    try:
        block = carve_block(vpc_cidr, K8S_CIDR_NEWBITS, index)
    except NetworkError as e:
        warnings.append(f"{label} cannot be derived from {vpc_cidr}: {e.message}")
        return None

    network = ipaddress.ip_network(block)
    for cidr in subnet_cidrs:
        if network.overlaps(ipaddress.ip_network(cidr)):
            warnings.append(f"{label} {block} overlaps subnet {cidr}")
    return block


def normalize(topology: NetworkTopology) -> NetworkContract:
    """
    Project a topology onto the contract consumed by cluster provisioning.

    Subnet lists follow subnet index order whatever the provider. The pod and
    service CIDRs are /8-narrower blocks 16 and 17 of the VPC range; when they
    cannot be carved, or collide with a subnet, the contract carries a warning
    instead of failing.

    Raises:
        IncompleteTopologyError: the topology has no VPC node.
    """
    vpcs = topology.nodes_of(ResourceKind.VPC)
    if not vpcs:
        raise IncompleteTopologyError("Topology has no VPC node to normalize")
    vpc = vpcs[0]
    vpc_cidr = topology.address_plan.vpc_cidr

    subnets = topology.subnet_nodes()
    subnet_ids = tuple(node.ref for node in subnets)
    subnet_cidrs = tuple(node.metadata.get("cidr", "") for node in subnets)
    public_ids = tuple(node.ref for node in subnets if node.role == SubnetRole.PUBLIC)
    private_ids = tuple(node.ref for node in subnets if node.role == SubnetRole.PRIVATE)

    warnings: List[str] = []
    pod_cidr = _cluster_block(vpc_cidr, POD_CIDR_INDEX, "pod_cidr", subnet_cidrs, warnings)
    service_cidr = _cluster_block(vpc_cidr, SERVICE_CIDR_INDEX, "service_cidr", subnet_cidrs, warnings)

    k8s = topology.intent.kubernetes
    k8s_config = KubernetesNetworkConfig(
        vpc_id=vpc.ref,
        subnet_ids=subnet_ids,
        public_subnets=public_ids,
        private_subnets=private_ids,
        pod_cidr=pod_cidr,
        service_cidr=service_cidr,
        cluster_endpoint_public_access=k8s.cluster_endpoint_public_access,
        cluster_endpoint_private_access=k8s.cluster_endpoint_private_access,
    )

    return NetworkContract(
        provider=topology.provider,
        vpc_id=vpc.ref,
        vpc_name=vpc.name,
        vpc_cidr=vpc_cidr,
        subnet_ids=subnet_ids,
        subnet_cidrs=subnet_cidrs,
        public_subnet_ids=public_ids,
        private_subnet_ids=private_ids,
        k8s_network_config=k8s_config,
        warnings=tuple(warnings),
    )
