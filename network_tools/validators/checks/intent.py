"""Subnet index and egress-anchor checks for network intents."""

from typing import List

from network_tools.errors import ErrorKind, Violation
from network_tools.model import NetworkIntent

# Names and name prefixes the synthesizers give to non-subnet resources.
RESERVED_SUBNET_NAMES = frozenset({
    "vpc", "vnet", "network", "internet", "igw", "eigw", "nat", "nat-eip", "nat-pip",
    "nat-pip-assoc", "router", "public-rt", "private-rt", "private-egress",
    "default-sg", "vpce-sg", "flow-logs", "flow-log", "nsg", "nsg-flow-log",
    "ddos-plan", "perimeter", "default-internet-gateway", "public-default",
    "public-default-v6", "firewall-policy", "firewall-policy-assoc",
    "private-google-access",
})
RESERVED_SUBNET_PREFIXES = (
    "nat-", "router-", "private-rt-", "private-egress-", "public-rta-", "private-rta-",
    "private-nat-assoc-", "nsg-assoc-", "public-binding-", "private-binding-",
    "vpce-", "se-", "fw-", "eip-", "pip-", "assoc-",
)


def check_name_prefix(
    intent: NetworkIntent,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Resource names are derived from the prefix, so it must be usable."""
    del warnings
    prefix = intent.name_prefix or ""
    if not prefix.strip():
        errors.append(
            Violation(ErrorKind.INVALID_NAME, "name_prefix must not be empty", "name_prefix")
        )


def check_index_bounds(
    intent: NetworkIntent,
    subnet_count: int,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Every role index must address one of the resolved subnets."""
    for field in ("public_subnet_indices", "private_subnet_indices"):
        for index in sorted(getattr(intent, field)):
            if index < 0 or index >= subnet_count:
                errors.append(
                    Violation(
                        ErrorKind.INDEX_OUT_OF_RANGE,
                        f"index {index} is outside the {subnet_count} resolved subnet(s)",
                        field,
                    )
                )

    if intent.subnet_cidrs and len(intent.subnet_names) > len(intent.subnet_cidrs):
        warnings.append(
            f"subnet_names has {len(intent.subnet_names)} entries but only "
            f"{len(intent.subnet_cidrs)} subnet_cidrs; extra names are ignored"
        )


def check_index_disjointness(
    intent: NetworkIntent,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """A subnet cannot be both public and private."""
    del warnings
    shared = sorted(set(intent.public_subnet_indices) & set(intent.private_subnet_indices))
    for index in shared:
        errors.append(
            Violation(
                ErrorKind.DISJOINTNESS_VIOLATION,
                f"subnet index {index} is listed as both public and private",
                "private_subnet_indices",
            )
        )


def check_nat_anchor(
    intent: NetworkIntent,
    subnet_count: int,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """NAT gateways live in a public subnet, so one must exist."""
    if not intent.enable_nat_gateway:
        return

    private = [index for index in intent.private_subnet_indices if 0 <= index < subnet_count]
    public = [index for index in intent.public_subnet_indices if 0 <= index < subnet_count]
    if not private:
        warnings.append("enable_nat_gateway is set but there are no private subnets; no NAT is created")
        return
    if not public:
        errors.append(
            Violation(
                ErrorKind.MISSING_NAT_ANCHOR,
                "NAT gateway requires at least one public subnet to anchor in",
                "public_subnet_indices",
            )
        )
    elif not intent.enable_internet_gateway:
        warnings.append(
            "enable_nat_gateway without enable_internet_gateway: private egress has no upstream gateway"
        )


def check_subnet_names(
    intent: NetworkIntent,
    subnet_count: int,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Subnet names become resource names: unique, and clear of generated names."""
    del warnings
    seen = {}
    for index in range(subnet_count):
        name = intent.subnet_name(index)
        if name in RESERVED_SUBNET_NAMES or name.startswith(RESERVED_SUBNET_PREFIXES):
            errors.append(
                Violation(
                    ErrorKind.INVALID_NAME,
                    f"subnet name '{name}' collides with a generated resource name",
                    f"subnet_names -> {index}",
                )
            )
        if name in seen:
            errors.append(
                Violation(
                    ErrorKind.INVALID_NAME,
                    f"subnet name '{name}' is used by subnets {seen[name]} and {index}",
                    "subnet_names",
                )
            )
        else:
            seen[name] = index
