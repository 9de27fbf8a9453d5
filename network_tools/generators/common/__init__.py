"""Shared helpers for network generators."""

from .base import DEFAULT_TEMPLATES_DIR, Generator, GeneratorCLI, run_cli
from .topology import load_and_validate_intents, prepare_output_directory

__all__ = [
    "DEFAULT_TEMPLATES_DIR",
    "Generator",
    "GeneratorCLI",
    "load_and_validate_intents",
    "prepare_output_directory",
    "run_cli",
]
