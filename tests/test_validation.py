"""Tests for intent validation."""

import pytest

from network_tools import ErrorKind, validate_intent
from network_tools.errors import violations_of
from network_tools.model import AwsOptions, AzureOptions, GcpOptions
from network_tools.validators import validate_intent_with_warnings


def kinds(violations):
    return [violation.kind for violation in violations]


class TestValidIntent:
    """A default intent is valid for every provider."""

    def test_no_violations(self, intent_factory, provider: str) -> None:
        assert validate_intent(intent_factory(provider)) == []


class TestAddressSpace:
    """Tests for VPC and subnet block checks."""

    def test_overlapping_explicit_subnets(self, intent_factory) -> None:
        """Explicit blocks that overlap are rejected."""
        intent = intent_factory(
            subnet_cidrs=("10.0.0.0/24", "10.0.0.0/25"),
            public_subnet_indices=frozenset({0}),
            private_subnet_indices=frozenset({1}),
        )
        assert kinds(validate_intent(intent)) == [ErrorKind.OVERLAPPING_SUBNETS]

    def test_invalid_vpc_cidr(self, intent_factory) -> None:
        intent = intent_factory(vpc_cidr="10.0.0.0/33")
        assert ErrorKind.INVALID_CIDR in kinds(validate_intent(intent))

    def test_ipv6_vpc_rejected(self, intent_factory) -> None:
        intent = intent_factory(vpc_cidr="fd00::/48")
        assert ErrorKind.INVALID_CIDR in kinds(validate_intent(intent))

    def test_insufficient_space(self, intent_factory) -> None:
        intent = intent_factory(vpc_cidr="10.0.0.0/31")
        assert ErrorKind.INSUFFICIENT_ADDRESS_SPACE in kinds(validate_intent(intent))

    def test_small_subnets_warn(self, intent_factory) -> None:
        """Auto-partitioned blocks narrower than /28 are allowed with a warning."""
        errors, warnings = validate_intent_with_warnings(intent_factory(vpc_cidr="10.0.0.0/28"))
        assert errors == []
        assert any("/30" in warning for warning in warnings)

    def test_ipv6_allocation_too_small(self, intent_factory) -> None:
        intent = intent_factory(enable_ipv6=True, ipv6_cidr="fd00::/63")
        assert ErrorKind.INSUFFICIENT_ADDRESS_SPACE in kinds(validate_intent(intent))

    def test_ipv6_allocation_must_be_ipv6(self, intent_factory) -> None:
        intent = intent_factory(enable_ipv6=True, ipv6_cidr="10.1.0.0/16")
        assert ErrorKind.INVALID_CIDR in kinds(validate_intent(intent))


class TestSubnetIndices:
    """Tests for role index checks."""

    def test_index_out_of_range(self, intent_factory) -> None:
        """Index 4 does not exist among four subnets."""
        intent = intent_factory(private_subnet_indices=frozenset({2, 4}))
        violations = validate_intent(intent)
        assert kinds(violations) == [ErrorKind.INDEX_OUT_OF_RANGE]
        assert violations[0].field == "private_subnet_indices"

    def test_disjointness(self, intent_factory) -> None:
        """A subnet cannot be both public and private."""
        intent = intent_factory(private_subnet_indices=frozenset({1, 2, 3}))
        violations = violations_of(ErrorKind.DISJOINTNESS_VIOLATION, validate_intent(intent))
        assert len(violations) == 1
        assert "index 1" in violations[0].message

    def test_duplicate_subnet_names(self, intent_factory) -> None:
        intent = intent_factory(subnet_names=("web", "web", "app", "db"))
        assert kinds(validate_intent(intent)) == [ErrorKind.INVALID_NAME]

    @pytest.mark.parametrize(
        "provider, name",
        [("aws", "vpc"), ("aws", "igw"), ("azure", "vnet"), ("azure", "internet"), ("gcp", "network")],
    )
    def test_subnet_named_like_a_fixed_resource(self, intent_factory, provider: str, name: str) -> None:
        intent = intent_factory(provider, subnet_names=(name, "b", "c", "d"))
        violations = validate_intent(intent)
        assert kinds(violations) == [ErrorKind.INVALID_NAME]
        assert violations[0].field == "subnet_names -> 0"

    def test_subnet_named_like_a_per_subnet_resource(self, intent_factory, provider: str) -> None:
        """'nat-subnet-2' would shadow the NAT serving subnet-2."""
        intent = intent_factory(provider, subnet_names=("a", "b", "c", "nat-subnet-2"))
        assert kinds(validate_intent(intent)) == [ErrorKind.INVALID_NAME]

    def test_ordinary_subnet_names(self, intent_factory, provider: str) -> None:
        intent = intent_factory(provider, subnet_names=("public-a", "public-b", "private-a", "private-b"))
        assert validate_intent(intent) == []

    def test_empty_prefix(self, intent_factory) -> None:
        intent = intent_factory(name_prefix="  ")
        assert kinds(validate_intent(intent)) == [ErrorKind.INVALID_NAME]


class TestNatAnchor:
    """Tests for NAT anchoring."""

    def test_missing_public_subnet(self, intent_factory) -> None:
        """NAT with private subnets but no public one cannot be anchored."""
        intent = intent_factory(public_subnet_indices=frozenset())
        assert kinds(validate_intent(intent)) == [ErrorKind.MISSING_NAT_ANCHOR]

    def test_nat_disabled(self, intent_factory) -> None:
        intent = intent_factory(public_subnet_indices=frozenset(), enable_nat_gateway=False)
        assert validate_intent(intent) == []

    def test_nat_without_private_subnets_warns(self, intent_factory) -> None:
        errors, warnings = validate_intent_with_warnings(intent_factory(private_subnet_indices=frozenset()))
        assert errors == []
        assert any("no private subnets" in warning for warning in warnings)

    def test_nat_without_internet_gateway_warns(self, intent_factory) -> None:
        errors, warnings = validate_intent_with_warnings(intent_factory(enable_internet_gateway=False))
        assert errors == []
        assert any("enable_internet_gateway" in warning for warning in warnings)


class TestProviderFeatures:
    """Tests for provider-exclusive features."""

    def test_ddos_outside_azure(self, intent_factory) -> None:
        intent = intent_factory("gcp", azure=AzureOptions(enable_ddos_protection=True))
        violations = validate_intent(intent)
        assert kinds(violations) == [ErrorKind.UNSUPPORTED_FEATURE]
        assert violations[0].field == "azure.enable_ddos_protection"

    def test_vpc_service_controls_outside_gcp(self, intent_factory) -> None:
        intent = intent_factory("aws", gcp=GcpOptions(enable_vpc_service_controls=True, access_policy_id="1"))
        assert kinds(validate_intent(intent)) == [ErrorKind.UNSUPPORTED_FEATURE]

    def test_ddos_on_azure(self, intent_factory) -> None:
        intent = intent_factory("azure", azure=AzureOptions(enable_ddos_protection=True))
        assert validate_intent(intent) == []

    def test_vpc_service_controls_need_policy(self, intent_factory) -> None:
        intent = intent_factory("gcp", gcp=GcpOptions(project="p", enable_vpc_service_controls=True))
        violations = validate_intent(intent)
        assert kinds(violations) == [ErrorKind.UNSUPPORTED_FEATURE]
        assert violations[0].field == "gcp.access_policy_id"

    def test_azure_flow_logs_without_storage_warn(self, intent_factory) -> None:
        errors, warnings = validate_intent_with_warnings(intent_factory("azure", enable_flow_logs=True))
        assert errors == []
        assert any("storage account" in warning for warning in warnings)

    def test_duplicate_endpoint_services(self, intent_factory) -> None:
        intent = intent_factory(
            enable_service_endpoints=True,
            aws=AwsOptions(vpc_endpoint_services=("s3", "ecr.api", "s3")),
        )
        violations = validate_intent(intent)
        assert kinds(violations) == [ErrorKind.INVALID_NAME]
        assert violations[0].field == "aws.vpc_endpoint_services"

    def test_azure_endpoint_services_compare_case_insensitively(self, intent_factory) -> None:
        intent = intent_factory(
            "azure",
            enable_service_endpoints=True,
            azure=AzureOptions(service_endpoints=("Microsoft.Storage", "microsoft.storage")),
        )
        assert kinds(validate_intent(intent)) == [ErrorKind.INVALID_NAME]

    def test_endpoint_services_ignored_when_disabled(self, intent_factory) -> None:
        intent = intent_factory(aws=AwsOptions(vpc_endpoint_services=("s3", "s3")))
        assert validate_intent(intent) == []


class TestCollection:
    """Every problem is reported in one pass."""

    def test_errors_are_collected_together(self, intent_factory) -> None:
        intent = intent_factory(
            "gcp",
            name_prefix="",
            vpc_cidr="10.0.0.0/16",
            public_subnet_indices=frozenset({0, 9}),
            private_subnet_indices=frozenset({0, 2}),
            subnet_names=("a", "a"),
            azure=AzureOptions(enable_ddos_protection=True),
        )
        found = set(kinds(validate_intent(intent)))
        assert found == {
            ErrorKind.INVALID_NAME,
            ErrorKind.INDEX_OUT_OF_RANGE,
            ErrorKind.DISJOINTNESS_VIOLATION,
            ErrorKind.UNSUPPORTED_FEATURE,
        }
