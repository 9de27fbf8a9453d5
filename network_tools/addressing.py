"""CIDR partitioning for VPC address plans."""

from __future__ import annotations

import ipaddress
import math
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .errors import (
    ErrorKind,
    InsufficientAddressSpaceError,
    InvalidCidrError,
    OverlappingSubnetsError,
    Violation,
)
from .model import DEFAULT_SUBNET_COUNT, AddressPlan, NetworkIntent, SubnetPlan, SubnetRole

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

IPV6_SUBNET_PREFIX = 64
DEFAULT_IPV6_ALLOCATION = "fd00::/56"


def parse_network(cidr: str, *, field: Optional[str] = None, version: Optional[int] = None) -> IPNetwork:
    """Parse a CIDR block, rejecting host bits and the wrong address family."""
    try:
        network = ipaddress.ip_network(str(cidr).strip(), strict=True)
    except (TypeError, ValueError) as e:
        raise InvalidCidrError(f"Invalid CIDR '{cidr}': {e}", field=field)
    if version is not None and network.version != version:
        raise InvalidCidrError(
            f"Invalid CIDR '{cidr}': expected an IPv{version} block",
            field=field,
        )
    return network


def newbits_for(count: int) -> int:
    """Number of extra prefix bits needed to carve `count` equal blocks."""
    if count <= 1:
        return 0
    return int(math.ceil(math.log2(count)))


def carve_block(cidr: Union[str, IPNetwork], newbits: int, index: int) -> str:
    """Return block `index` of `cidr` extended by `newbits` prefix bits.

    Mirrors Terraform's ``cidrsubnet(prefix, newbits, netnum)``.

    Raises:
        InvalidCidrError: `cidr` is malformed.
        InsufficientAddressSpaceError: the block does not fit.
    """
    network = parse_network(cidr) if isinstance(cidr, str) else cidr
    new_prefix = network.prefixlen + newbits
    if newbits < 0 or new_prefix > network.max_prefixlen:
        raise InsufficientAddressSpaceError(
            f"Cannot extend {network} by {newbits} bits (max /{network.max_prefixlen})"
        )
    if index < 0 or index >= 2 ** newbits:
        raise InsufficientAddressSpaceError(
            f"Block index {index} does not fit in {network} with {newbits} new bits"
        )
    block_size = 2 ** (network.max_prefixlen - new_prefix)
    base = int(network.network_address) + index * block_size
    return str(type(network)((base, new_prefix)))


def find_overlaps(networks: Sequence[IPNetwork]) -> List[Tuple[int, int]]:
    """Index pairs of overlapping blocks."""
    pairs: List[Tuple[int, int]] = []
    for i, left in enumerate(networks):
        for j in range(i + 1, len(networks)):
            right = networks[j]
            if left.version == right.version and left.overlaps(right):
                pairs.append((i, j))
    return pairs


def check_explicit_cidrs(vpc: IPNetwork, cidrs: Sequence[str]) -> List[Violation]:
    """Collect every problem with an explicit subnet layout."""
    violations: List[Violation] = []
    parsed: List[Tuple[int, IPNetwork]] = []

    for index, cidr in enumerate(cidrs):
        field = f"subnet_cidrs[{index}]"
        try:
            network = parse_network(cidr, field=field, version=vpc.version)
        except InvalidCidrError as e:
            violations.extend(e.violations)
            continue
        if not network.subnet_of(vpc):
            violations.append(
                Violation(ErrorKind.OVERLAPPING_SUBNETS, f"Subnet {network} is not contained in VPC {vpc}", field)
            )
        parsed.append((index, network))

    for left, right in find_overlaps([network for _, network in parsed]):
        left_index, left_net = parsed[left]
        right_index, right_net = parsed[right]
        violations.append(
            Violation(
                ErrorKind.OVERLAPPING_SUBNETS,
                f"subnet_cidrs[{left_index}] {left_net} overlaps subnet_cidrs[{right_index}] {right_net}",
                f"subnet_cidrs[{right_index}]",
            )
        )

    return violations


def resolve_subnet_count(intent: NetworkIntent) -> int:
    """Number of subnets the intent resolves to."""
    if intent.subnet_cidrs:
        return len(intent.subnet_cidrs)
    return max(len(intent.subnet_names), DEFAULT_SUBNET_COUNT)


def _roles(count: int, public_indices: Iterable[int], private_indices: Iterable[int]) -> List[SubnetRole]:
    public = set(public_indices)
    private = set(private_indices)
    roles = []
    for index in range(count):
        if index in public:
            roles.append(SubnetRole.PUBLIC)
        elif index in private:
            roles.append(SubnetRole.PRIVATE)
        else:
            roles.append(SubnetRole.ISOLATED)
    return roles


def partition(
    vpc_cidr: str,
    explicit_cidrs: Optional[Sequence[str]] = None,
    subnet_count: int = DEFAULT_SUBNET_COUNT,
    *,
    public_indices: Iterable[int] = (),
    private_indices: Iterable[int] = (),
    ipv6_cidr: Optional[str] = None,
    subnet_names: Sequence[str] = (),
) -> AddressPlan:
    """
    Compute the subnet layout of a VPC.

    Explicit CIDRs are validated and kept in the given order. Otherwise
    `subnet_count` equal blocks are carved with
    ``newbits = ceil(log2(subnet_count))``, so a /16 split four ways gives
    four /18s. When `ipv6_cidr` is set every public subnet gets the /64 at its
    own index of that allocation.

    Raises:
        InvalidCidrError: malformed VPC, subnet or IPv6 block.
        OverlappingSubnetsError: explicit blocks overlap or leave the VPC.
        InsufficientAddressSpaceError: the blocks cannot be carved.
    """
    vpc = parse_network(vpc_cidr, field="vpc_cidr")

    if explicit_cidrs:
        violations = check_explicit_cidrs(vpc, explicit_cidrs)
        if violations:
            first = violations[0]
            error_cls = InvalidCidrError if first.kind == InvalidCidrError.kind else OverlappingSubnetsError
            raise error_cls(first.message, field=first.field, violations=violations)
        cidrs = [str(parse_network(cidr)) for cidr in explicit_cidrs]
    else:
        if subnet_count < 1:
            raise InsufficientAddressSpaceError(f"Cannot partition {vpc} into {subnet_count} subnets")
        newbits = newbits_for(subnet_count)
        if vpc.prefixlen + newbits > vpc.max_prefixlen:
            raise InsufficientAddressSpaceError(
                f"VPC {vpc} is too small for {subnet_count} subnets "
                f"(needs /{vpc.prefixlen + newbits})",
                field="vpc_cidr",
            )
        cidrs = [carve_block(vpc, newbits, index) for index in range(subnet_count)]

    roles = _roles(len(cidrs), public_indices, private_indices)

    ipv6_blocks: List[Optional[str]] = [None] * len(cidrs)
    ipv6_network = None
    if ipv6_cidr:
        ipv6_network = parse_network(ipv6_cidr, field="ipv6_cidr", version=6)
        newbits = IPV6_SUBNET_PREFIX - ipv6_network.prefixlen
        if newbits < 0:
            raise InsufficientAddressSpaceError(
                f"IPv6 allocation {ipv6_network} is smaller than a /{IPV6_SUBNET_PREFIX}",
                field="ipv6_cidr",
            )
        for index, role in enumerate(roles):
            if role == SubnetRole.PUBLIC:
                ipv6_blocks[index] = carve_block(ipv6_network, newbits, index)

    subnets = tuple(
        SubnetPlan(
            index=index,
            name=subnet_names[index] if index < len(subnet_names) and subnet_names[index] else f"subnet-{index}",
            cidr=cidr,
            role=roles[index],
            ipv6_cidr=ipv6_blocks[index],
        )
        for index, cidr in enumerate(cidrs)
    )
    return AddressPlan(
        vpc_cidr=str(vpc),
        subnets=subnets,
        ipv6_cidr=str(ipv6_network) if ipv6_network else None,
    )


def plan_addresses(intent: NetworkIntent) -> AddressPlan:
    """Partition the address space described by an intent."""
    return partition(
        intent.vpc_cidr,
        intent.subnet_cidrs,
        resolve_subnet_count(intent),
        public_indices=intent.public_subnet_indices,
        private_indices=intent.private_subnet_indices,
        ipv6_cidr=effective_ipv6_cidr(intent),
        subnet_names=intent.subnet_names,
    )


def effective_ipv6_cidr(intent: NetworkIntent) -> Optional[str]:
    """IPv6 allocation used for carving, or None when IPv6 is off."""
    if not intent.enable_ipv6:
        return None
    return intent.ipv6_cidr or DEFAULT_IPV6_ALLOCATION
