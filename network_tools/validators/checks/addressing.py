"""Address space checks: VPC block, explicit subnets and IPv6 allocation."""

from typing import List

from network_tools.addressing import (
    IPV6_SUBNET_PREFIX,
    check_explicit_cidrs,
    effective_ipv6_cidr,
    newbits_for,
    parse_network,
)
from network_tools.errors import ErrorKind, InvalidCidrError, Violation
from network_tools.model import NetworkIntent


def check_address_space(
    intent: NetworkIntent,
    subnet_count: int,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Check the VPC block and the subnet layout carved from it."""
    try:
        vpc = parse_network(intent.vpc_cidr, field="vpc_cidr")
    except InvalidCidrError as e:
        errors.extend(e.violations)
        # Subnet containment cannot be checked without a VPC block.
        return

    if vpc.version != 4:
        errors.append(
            Violation(ErrorKind.INVALID_CIDR, f"VPC block {vpc} must be IPv4", "vpc_cidr")
        )
        return

    if intent.subnet_cidrs:
        errors.extend(check_explicit_cidrs(vpc, intent.subnet_cidrs))
        return

    newbits = newbits_for(subnet_count)
    if vpc.prefixlen + newbits > vpc.max_prefixlen:
        errors.append(
            Violation(
                ErrorKind.INSUFFICIENT_ADDRESS_SPACE,
                f"VPC {vpc} cannot hold {subnet_count} subnets (needs /{vpc.prefixlen + newbits})",
                "vpc_cidr",
            )
        )
    elif vpc.prefixlen + newbits > 28:
        warnings.append(
            f"Auto-partitioned subnets of {vpc} will be /{vpc.prefixlen + newbits}; "
            "most providers reserve several addresses per subnet"
        )


def check_ipv6_allocation(
    intent: NetworkIntent,
    subnet_count: int,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """The IPv6 allocation must be a valid block with room for one /64 per subnet."""
    ipv6_cidr = effective_ipv6_cidr(intent)
    if ipv6_cidr is None:
        if intent.ipv6_cidr:
            warnings.append("ipv6_cidr is set but enable_ipv6 is false; the allocation is ignored")
        return

    try:
        network = parse_network(ipv6_cidr, field="ipv6_cidr", version=6)
    except InvalidCidrError as e:
        errors.extend(e.violations)
        return

    available_bits = IPV6_SUBNET_PREFIX - network.prefixlen
    if available_bits < 0 or 2 ** available_bits < subnet_count:
        errors.append(
            Violation(
                ErrorKind.INSUFFICIENT_ADDRESS_SPACE,
                f"IPv6 allocation {network} cannot hold {subnet_count} /{IPV6_SUBNET_PREFIX} blocks",
                "ipv6_cidr",
            )
        )
