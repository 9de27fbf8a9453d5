"""Provider/feature compatibility checks."""

from typing import Callable, Dict, List, Tuple

from network_tools.errors import ErrorKind, Violation
from network_tools.model import NetworkIntent, Provider

# Feature name -> (owning provider, predicate telling whether the intent asks for it).
PROVIDER_EXCLUSIVE_FEATURES: Dict[str, Tuple[Provider, Callable[[NetworkIntent], bool]]] = {
    "azure.enable_ddos_protection": (
        Provider.AZURE,
        lambda intent: intent.azure.enable_ddos_protection,
    ),
    "gcp.enable_vpc_service_controls": (
        Provider.GCP,
        lambda intent: intent.gcp.enable_vpc_service_controls,
    ),
}


def unsupported_features(intent: NetworkIntent) -> List[Violation]:
    """Features requested by the intent that its provider cannot realize."""
    violations = []
    for feature, (owner, requested) in PROVIDER_EXCLUSIVE_FEATURES.items():
        if requested(intent) and intent.provider != owner:
            violations.append(
                Violation(
                    ErrorKind.UNSUPPORTED_FEATURE,
                    f"'{feature}' is only available for provider '{owner.value}', "
                    f"not '{intent.provider.value}'; disable it or switch provider",
                    feature,
                )
            )
    return violations


def check_provider_features(
    intent: NetworkIntent,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    errors.extend(unsupported_features(intent))

    if intent.provider == Provider.GCP and intent.gcp.enable_vpc_service_controls:
        if not intent.gcp.access_policy_id:
            errors.append(
                Violation(
                    ErrorKind.UNSUPPORTED_FEATURE,
                    "VPC Service Controls require gcp.access_policy_id",
                    "gcp.access_policy_id",
                )
            )
        if not intent.gcp.project:
            warnings.append("gcp.project is not set; the service perimeter cannot name its project")

    if intent.provider == Provider.AZURE and intent.enable_flow_logs:
        if not intent.azure.flow_log_storage_account_id:
            warnings.append(
                "azure.flow_log_storage_account_id is not set; NSG flow logs need a storage account"
            )

    if intent.enable_service_endpoints and not intent.private_subnet_indices:
        warnings.append("enable_service_endpoints is set but there are no private subnets to attach to")

    if intent.enable_service_endpoints:
        check_endpoint_services(intent, errors=errors, warnings=warnings)


# Provider -> (option field, resource key derived from a service name).
ENDPOINT_SERVICE_KEYS: Dict[Provider, Tuple[str, Callable[[str], str]]] = {
    Provider.AWS: ("aws.vpc_endpoint_services", lambda service: service.replace(".", "-")),
    Provider.AZURE: ("azure.service_endpoints", lambda service: service.replace(".", "-").lower()),
}


def check_endpoint_services(
    intent: NetworkIntent,
    *,
    errors: List[Violation],
    warnings: List[str],
) -> None:
    """Each endpoint service becomes its own resource, so their keys must differ."""
    del warnings
    if intent.provider not in ENDPOINT_SERVICE_KEYS:
        return
    field, key_of = ENDPOINT_SERVICE_KEYS[intent.provider]
    services = intent.aws.vpc_endpoint_services if intent.provider == Provider.AWS else intent.azure.service_endpoints
    seen: Dict[str, str] = {}
    for service in services:
        key = key_of(service)
        if key in seen:
            errors.append(
                Violation(
                    ErrorKind.INVALID_NAME,
                    f"endpoint service '{service}' duplicates '{seen[key]}'",
                    field,
                )
            )
        else:
            seen[key] = service
