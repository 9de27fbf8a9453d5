"""
Multi-provider network topology synthesis.

Turns a `NetworkIntent` into an address plan, a provider resource graph for
AWS, Azure or GCP, a dependency-ordered resource list and a
provider-agnostic `NetworkContract`.
"""

from .addressing import carve_block, partition, plan_addresses
from .errors import (
    DependencyCycleError,
    ErrorKind,
    IncompleteTopologyError,
    InsufficientAddressSpaceError,
    IntentValidationError,
    InvalidCidrError,
    InvalidNameError,
    NetworkError,
    OverlappingSubnetsError,
    UnsupportedFeatureError,
    Violation,
)
from .model import (
    AddressPlan,
    AwsOptions,
    AzureOptions,
    GcpOptions,
    KubernetesNetworkConfig,
    KubernetesOptions,
    NetworkContract,
    NetworkIntent,
    NetworkTopology,
    Provider,
    ResourceKind,
    ResourceNode,
    SubnetPlan,
    SubnetRole,
)
from .normalizer import normalize
from .planner import PlanResult, plan_many, plan_network
from .resolver import order
from .synthesizers import get_synthesizer, synthesize
from .validators import validate_intent, validate_topology

__version__ = "1.0.0"

__all__ = [
    "AddressPlan",
    "AwsOptions",
    "AzureOptions",
    "DependencyCycleError",
    "ErrorKind",
    "GcpOptions",
    "IncompleteTopologyError",
    "InsufficientAddressSpaceError",
    "IntentValidationError",
    "InvalidCidrError",
    "InvalidNameError",
    "KubernetesNetworkConfig",
    "KubernetesOptions",
    "NetworkContract",
    "NetworkError",
    "NetworkIntent",
    "NetworkTopology",
    "OverlappingSubnetsError",
    "PlanResult",
    "Provider",
    "ResourceKind",
    "ResourceNode",
    "SubnetPlan",
    "SubnetRole",
    "UnsupportedFeatureError",
    "Violation",
    "carve_block",
    "get_synthesizer",
    "normalize",
    "order",
    "partition",
    "plan_addresses",
    "plan_many",
    "plan_network",
    "synthesize",
    "validate_intent",
    "validate_topology",
]
