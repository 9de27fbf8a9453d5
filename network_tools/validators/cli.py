#!/usr/bin/env python3
"""
Validate a network intent document: JSON Schema v7 structure, intent
semantics, then a trial plan of every network.

Usage:
    network-tools-validate [--intent network.yaml] [--schema network-intent-schema.json] [--provider aws|azure|gcp] [--strict|--compat]
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from network_tools.errors import NetworkError
from network_tools.intent_loader import (
    SCHEMA_PATH,
    expand_document,
    intent_from_dict,
    load_intent_document,
    load_schema,
    validate_document,
)
from network_tools.model import NetworkIntent
from network_tools.planner import plan_network
from network_tools.validators import validate_intent_with_warnings


class IntentValidator:
    """Validate a network intent document"""

    def __init__(
        self,
        intent_path: str,
        schema_path: Optional[str] = None,
        provider: Optional[str] = None,
        strict_mode: bool = True,
    ):
        self.intent_path = Path(intent_path)
        self.schema_path = Path(schema_path) if schema_path else SCHEMA_PATH
        self.provider = provider
        self.strict_mode = strict_mode
        self.document: Optional[Dict[str, Any]] = None
        self.schema: Optional[Dict[str, Any]] = None
        self.entries: List[Dict[str, Any]] = []
        self.intents: List[NetworkIntent] = []
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def load_files(self) -> bool:
        """Load intent YAML and schema JSON"""
        try:
            self.document = load_intent_document(str(self.intent_path))
            print(f"OK Loaded intent: {self.intent_path}")
        except FileNotFoundError as e:
            self.errors.append(str(e))
            return False
        except yaml.YAMLError as e:
            self.errors.append(f"YAML parse error: {e}")
            return False
        except ValueError as e:
            self.errors.append(str(e))
            return False

        try:
            self.schema = load_schema(self.schema_path)
            print(f"OK Loaded schema: {self.schema_path}")
        except FileNotFoundError:
            self.errors.append(f"Schema file not found: {self.schema_path}")
            return False
        except ValueError as e:
            self.errors.append(f"JSON schema parse error: {e}")
            return False

        return True

    def validate_schema(self) -> bool:
        """Validate the document, then each network with defaults applied"""
        bundle = "networks" in self.document
        if bundle:
            self.errors.extend(validate_document(self.document, self.schema))
            if self.errors:
                return False

        self.entries = expand_document(self.document)
        if self.provider:
            self.entries = [{**entry, "provider": self.provider} for entry in self.entries]

        for position, entry in enumerate(self.entries):
            for error in validate_document(entry, self.schema):
                self.errors.append(f"networks[{position}]: {error}" if bundle else error)

        return not self.errors

    def check_semantics(self) -> None:
        """Address space, subnet roles, NAT anchoring, provider features"""
        self.intents = [intent_from_dict(entry) for entry in self.entries]
        for intent in self.intents:
            errors, warnings = validate_intent_with_warnings(intent)
            self.errors.extend(f"{intent.name_prefix}: {violation}" for violation in errors)
            self.warnings.extend(f"{intent.name_prefix}: {warning}" for warning in warnings)

    def check_plans(self) -> None:
        """Synthesize every valid intent and check the resulting topology"""
        for intent in self.intents:
            try:
                result = plan_network(intent)
            except NetworkError as e:
                self.errors.extend(f"{intent.name_prefix}: {violation}" for violation in e.violations)
                continue
            if not result.ok:
                self.errors.extend(f"{intent.name_prefix}: {violation}" for violation in result.violations)
                continue
            # Cluster CIDR notes are informational and never escalated.
            for warning in result.contract.warnings:
                print(f"NOTE {intent.name_prefix}: {warning}")
            print(f"OK {intent.name_prefix}: {len(result.resources)} resources planned for {intent.provider.value}")

    def print_results(self) -> None:
        """Print validation results"""
        print("\n" + "=" * 70)

        if self.errors:
            print(f"ERROR Validation FAILED - {len(self.errors)} error(s) found")
            print("=" * 70)
            print("\nErrors:")
            for i, error in enumerate(self.errors, 1):
                print(f"  {i}. {error}")
        else:
            print("OK Validation PASSED")
            print("=" * 70)
            print("\nOK Intent is valid according to JSON Schema v7")
            print("OK Address plan, subnet roles and provider features are consistent")
            print("OK Every network synthesizes to a complete topology")

        if self.warnings:
            print(f"\nWARN  {len(self.warnings)} warning(s):")
            for warning in self.warnings:
                print(f"  - {warning}")

    def validate(self) -> bool:
        """Run full validation"""
        print("=" * 70)
        print("Network Intent Validation (JSON Schema v7)")
        print("=" * 70)
        print()
        print(f"MODE Validation mode: {'strict' if self.strict_mode else 'compat'}")

        if not self.load_files():
            return False

        print("\nSTEP Step 1: Validating against JSON Schema...")
        if not self.validate_schema():
            print(f"X Schema validation failed ({len(self.errors)} errors)")
            return False
        print(f"OK Schema validation passed ({len(self.entries)} network(s))")

        print("\nNET Step 2: Checking intent semantics...")
        errors_before = len(self.errors)
        self.check_semantics()
        if len(self.errors) == errors_before:
            print("OK Intent semantics are valid")
        else:
            print(f"X Semantic validation failed ({len(self.errors) - errors_before} errors)")
            return False

        print("\nREF Step 3: Planning topologies...")
        errors_before = len(self.errors)
        self.check_plans()
        if len(self.errors) != errors_before:
            print(f"X Planning failed ({len(self.errors) - errors_before} errors)")

        if self.strict_mode and self.warnings:
            escalated = [f"[STRICT] {warning}" for warning in self.warnings]
            self.errors.extend(escalated)
            self.warnings.clear()
            print(f"\nSTRICT Strict mode enabled: escalated {len(escalated)} warning(s) to error(s)")

        return len(self.errors) == 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate a network intent document against JSON Schema v7 and planning rules"
    )
    parser.add_argument(
        "--intent",
        default="network.yaml",
        help="Path to network intent YAML file"
    )
    parser.add_argument(
        "--schema",
        default=str(SCHEMA_PATH),
        help="Path to JSON Schema file"
    )
    parser.add_argument(
        "--provider",
        choices=["aws", "azure", "gcp"],
        default=None,
        help="Override the provider named in the intent document",
    )
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--strict",
        dest="strict_mode",
        action="store_true",
        help="Run strict mode: warnings are treated as errors (default).",
    )
    mode_group.add_argument(
        "--compat",
        dest="strict_mode",
        action="store_false",
        help="Run compatibility mode: warnings stay warnings.",
    )
    parser.set_defaults(strict_mode=True)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    validator = IntentValidator(
        args.intent,
        args.schema,
        provider=args.provider,
        strict_mode=args.strict_mode,
    )
    valid = validator.validate()
    validator.print_results()

    return 0 if valid else 1


if __name__ == "__main__":
    sys.exit(main())
