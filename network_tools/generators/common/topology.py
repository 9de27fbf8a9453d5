"""Intent loading and output directory helpers for generators."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from network_tools.intent_loader import load_intents
from network_tools.model import NetworkIntent
from network_tools.validators import validate_intent_with_warnings


def load_and_validate_intents(
    intent_path: Path | str,
    provider: Optional[str] = None,
) -> Tuple[List[NetworkIntent], List[str]]:
    """
    Load every network of an intent document and collect semantic warnings.

    Raises:
        FileNotFoundError: intent file not found.
        yaml.YAMLError: invalid YAML (propagated from intent_loader).
        ValueError: schema errors, or two networks sharing a name prefix.
    """
    intents = load_intents(str(intent_path), provider)

    seen = set()
    duplicates = []
    for intent in intents:
        if intent.name_prefix in seen:
            duplicates.append(intent.name_prefix)
        seen.add(intent.name_prefix)
    if duplicates:
        raise ValueError(f"Duplicate name_prefix value(s): {', '.join(sorted(set(duplicates)))}")

    warnings: List[str] = []
    for intent in intents:
        _, intent_warnings = validate_intent_with_warnings(intent)
        warnings.extend(f"{intent.name_prefix}: {warning}" for warning in intent_warnings)

    return intents, warnings


def prepare_output_directory(output_dir: Path | str) -> bool:
    """
    Recreate output directory from scratch.

    Returns:
        bool: True if the directory existed and was cleaned, False otherwise.
    """
    output_path = Path(output_dir)
    existed = output_path.exists()
    if existed:
        shutil.rmtree(output_path)
    output_path.mkdir(parents=True, exist_ok=True)
    return existed
