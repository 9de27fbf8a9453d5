"""Shared fixtures for network_tools tests."""

from dataclasses import replace
from pathlib import Path
from typing import Callable

import pytest

from network_tools import NetworkIntent, Provider
from network_tools.model import AwsOptions, AzureOptions, GcpOptions


def make_intent(provider: str = "aws", **overrides) -> NetworkIntent:
    """Default four-subnet intent (0, 1 public; 2, 3 private) under the 'demo' prefix."""
    intent = NetworkIntent(provider=Provider(provider), name_prefix="demo")
    return replace(intent, **overrides)


@pytest.fixture
def intent_factory() -> Callable[..., NetworkIntent]:
    return make_intent


@pytest.fixture(params=["aws", "azure", "gcp"])
def provider(request) -> str:
    return request.param


@pytest.fixture
def full_intent(provider: str) -> NetworkIntent:
    """Every optional feature a provider supports switched on."""
    overrides = dict(
        availability_zones=("zone-a", "zone-b"),
        enable_ipv6=True,
        enable_flow_logs=True,
        enable_service_endpoints=True,
    )
    if provider == "aws":
        overrides["aws"] = AwsOptions(vpc_endpoint_services=("s3", "ecr.api"), cluster_name="demo")
    elif provider == "azure":
        overrides["azure"] = AzureOptions(
            enable_ddos_protection=True,
            flow_log_storage_account_id="/subscriptions/0000/storageAccounts/logs",
        )
    else:
        overrides["gcp"] = GcpOptions(
            project="demo-project",
            enable_vpc_service_controls=True,
            access_policy_id="123456",
        )
    return make_intent(provider, **overrides)


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a YAML file below tmp_path and return its path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
