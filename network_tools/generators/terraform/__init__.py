"""Terraform rendering of planned networks for AWS, Azure and GCP."""

from .cli import NetworkTerraformCLI, main
from .generator import TERRAFORM_TYPES, NetworkTerraformGenerator, terraform_type

__all__ = [
    "NetworkTerraformCLI",
    "NetworkTerraformGenerator",
    "TERRAFORM_TYPES",
    "main",
    "terraform_type",
]
