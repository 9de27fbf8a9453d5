"""Generators turning planned networks into deployable outputs.

- terraform: Terraform configuration plus plan.json / contract.json
- common: shared base classes and utilities

Usage:
    from network_tools.generators.terraform import NetworkTerraformGenerator
    from network_tools.generators.common import Generator, GeneratorCLI
"""

from .common import Generator, GeneratorCLI, load_and_validate_intents
from .terraform import NetworkTerraformGenerator

__all__ = [
    "Generator",
    "GeneratorCLI",
    "NetworkTerraformGenerator",
    "load_and_validate_intents",
]
