"""Base classes and protocols for network generators."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from network_tools.model import NetworkIntent, Provider

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"


@runtime_checkable
class Generator(Protocol):
    """Interface shared by every generator front-end.

    A generator loads an intent document, plans it, writes its outputs and
    reports what it did.
    """

    intent_path: Path
    output_dir: Path
    intents: List[NetworkIntent]

    def load_intent(self) -> bool:
        """Load and validate the intent document.

        Returns:
            True if the intent was loaded successfully, False otherwise.
        """
        ...

    def plan(self) -> bool:
        """Plan every loaded intent.

        Returns:
            True if every intent produced a topology, False otherwise.
        """
        ...

    def generate_all(self) -> bool:
        """Generate all output files.

        Returns:
            True if all files were generated successfully, False otherwise.
        """
        ...

    def print_summary(self) -> None:
        """Print a summary of the generation results."""
        ...


class GeneratorCLI:
    """Base class for generator CLI entrypoints.

    Subclasses override the class attributes and optionally
    add_extra_arguments() / run_generator().
    """

    description: str = "Generate configuration from a network intent"
    banner: str = "Network Generator"
    default_output: str = "generated/output"
    success_message: str = "Generation completed successfully!"

    def __init__(self, generator_class: type) -> None:
        self.generator_class = generator_class

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description=self.description)
        parser.add_argument(
            "--intent",
            default="network.yaml",
            help="Path to network intent YAML file",
        )
        parser.add_argument(
            "--output",
            default=self.default_output,
            help=f"Output directory (default: {self.default_output}/)",
        )
        parser.add_argument(
            "--templates",
            default=str(DEFAULT_TEMPLATES_DIR),
            help="Directory containing Jinja2 templates",
        )
        parser.add_argument(
            "--provider",
            choices=[provider.value for provider in Provider],
            default=None,
            help="Override the provider named in the intent document",
        )
        self.add_extra_arguments(parser)
        return parser

    def add_extra_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Override to add generator-specific arguments."""
        pass

    def create_generator(self, args: argparse.Namespace) -> Generator:
        return self.generator_class(args.intent, args.output, args.templates, provider=args.provider)

    def run_generator(self, generator: Generator) -> bool:
        """Execute the generator workflow.

        Returns:
            True if generation succeeded, False otherwise.
        """
        if not generator.load_intent():
            return False

        print("\nPLAN Planning network topology...\n")

        if not generator.plan():
            print("\nERROR Planning failed")
            return False

        print("\nGEN Generating output files...\n")

        if not generator.generate_all():
            print("\nERROR Generation failed with errors")
            return False

        generator.print_summary()
        return True

    def main(self, argv: Optional[Sequence[str]] = None) -> int:
        """Main entry point for the CLI.

        Returns:
            Exit code: 0 for success, 1 for failure.
        """
        args = self.build_parser().parse_args(argv)
        generator = self.create_generator(args)

        print("=" * 70)
        print(self.banner)
        print("=" * 70)
        print()

        if not self.run_generator(generator):
            return 1

        print(f"\nOK {self.success_message}\n")
        return 0


def run_cli(cli: GeneratorCLI, argv: Optional[Sequence[str]] = None) -> int:
    """Convenience function to run a GeneratorCLI."""
    return cli.main(argv)
