"""CLI entrypoint for network Terraform generation."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from network_tools.generators.common import GeneratorCLI, run_cli

from .generator import NetworkTerraformGenerator


class NetworkTerraformCLI(GeneratorCLI):
    """CLI for the network Terraform configuration generator."""

    description = "Generate Terraform configuration from a network intent"
    banner = "Network Terraform Generator"
    default_output = "generated/terraform-network"
    success_message = "Network Terraform generation completed successfully!"

    def add_extra_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--skip-fmt",
            action="store_true",
            help="Do not run terraform fmt on the generated files",
        )

    def create_generator(self, args: argparse.Namespace) -> NetworkTerraformGenerator:
        generator = NetworkTerraformGenerator(args.intent, args.output, args.templates, provider=args.provider)
        generator.run_fmt = not args.skip_fmt
        return generator


def build_parser() -> argparse.ArgumentParser:
    return NetworkTerraformCLI(NetworkTerraformGenerator).build_parser()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    return run_cli(NetworkTerraformCLI(NetworkTerraformGenerator), argv)


if __name__ == "__main__":
    sys.exit(main())
