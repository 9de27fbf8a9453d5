"""
Intent Loader - YAML intent documents with include directives.

A document is either one intent:

    provider: aws
    name_prefix: dev
    vpc_cidr: 10.0.0.0/16
    tags: !include tags.yaml

or a set of networks sharing defaults:

    defaults:
      vpc_cidr: 10.0.0.0/16
    networks: !include_dir_sorted networks
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from jsonschema import Draft7Validator, ValidationError

from .model import (
    AwsOptions,
    AzureOptions,
    GcpOptions,
    KubernetesOptions,
    NetworkIntent,
    Provider,
)

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "network-intent-schema.json"

OPTION_SECTIONS = {
    "aws": AwsOptions,
    "azure": AzureOptions,
    "gcp": GcpOptions,
    "kubernetes": KubernetesOptions,
}


class IncludeLoader(yaml.SafeLoader):
    """YAML loader with include directive support."""

    def __init__(self, stream):
        self._root = Path(stream.name).parent if hasattr(stream, 'name') else Path.cwd()
        super().__init__(stream)


def _load_yaml(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as file_handle:
        return yaml.load(file_handle, IncludeLoader)


def _iter_yaml_files_sorted(directory: Path) -> Iterable[Path]:
    """Yield YAML files under directory in deterministic lexicographic order."""
    files = [
        candidate
        for candidate in directory.rglob('*')
        if candidate.is_file()
        and candidate.suffix.lower() in {'.yaml', '.yml'}
        and not candidate.name.startswith('_')
    ]
    return sorted(files, key=lambda item: item.relative_to(directory).as_posix())


def include_constructor(loader: IncludeLoader, node: yaml.Node) -> Any:
    """Construct !include directive."""
    full_path = loader._root / loader.construct_scalar(node)
    if not full_path.exists():
        raise FileNotFoundError(f"Included file not found: {full_path}")
    return _load_yaml(full_path)


def include_dir_sorted_constructor(loader: IncludeLoader, node: yaml.Node) -> Any:
    """Construct !include_dir_sorted directive: one list item per file, lists flattened."""
    full_path = loader._root / loader.construct_scalar(node)
    if not full_path.exists():
        raise FileNotFoundError(f"Included directory not found: {full_path}")
    if not full_path.is_dir():
        raise NotADirectoryError(f"Expected directory for !include_dir_sorted: {full_path}")

    items = []
    for yaml_file in _iter_yaml_files_sorted(full_path):
        loaded = _load_yaml(yaml_file)
        if loaded is None:
            continue
        if isinstance(loaded, list):
            items.extend(loaded)
            continue
        items.append(loaded)
    return items


yaml.add_constructor('!include', include_constructor, IncludeLoader)
yaml.add_constructor('!include_dir_sorted', include_dir_sorted_constructor, IncludeLoader)


def load_intent_document(path: str) -> Dict[str, Any]:
    """
    Load an intent YAML document with !include support.

    Raises:
        FileNotFoundError: the document or an included file is missing.
        yaml.YAMLError: the YAML cannot be parsed.
        ValueError: the document is not a mapping.
    """
    document_file = Path(path)
    if not document_file.exists():
        raise FileNotFoundError(f"Intent file not found: {path}")

    document = _load_yaml(document_file)
    if not isinstance(document, dict):
        raise ValueError(f"Intent document must be a mapping, got {type(document).__name__}")
    return document


def load_schema(schema_path: Optional[Path] = None) -> Dict[str, Any]:
    with open(schema_path or SCHEMA_PATH, 'r', encoding='utf-8') as f:
        return json.load(f)


def format_schema_error(error: ValidationError) -> str:
    """One-line description of a schema error with its document path."""
    path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"

    if error.validator == "required":
        missing = error.message.split("'")[1::2]
        return f"Missing required field(s) at '{path}': {', '.join(missing)}"
    if error.validator == "type":
        return f"Type error at '{path}': expected {error.validator_value}, got {type(error.instance).__name__}"
    if error.validator == "pattern":
        return f"Pattern mismatch at '{path}': '{error.instance}' does not match pattern '{error.validator_value}'"
    if error.validator == "enum":
        return f"Invalid value at '{path}': '{error.instance}' not in allowed values {error.validator_value}"
    if error.validator in ("minimum", "maximum"):
        return f"Range error at '{path}': {error.instance} violates {error.validator} {error.validator_value}"
    if error.validator == "additionalProperties":
        return f"Unknown field at '{path}': {error.message}"
    return f"Validation error at '{path}': {error.message}"


def validate_document(document: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> List[str]:
    """Structural errors of a document, formatted, in a stable order."""
    validator = Draft7Validator(schema or load_schema())
    errors = sorted(validator.iter_errors(document), key=lambda e: ([str(p) for p in e.absolute_path], e.message))
    return [format_schema_error(error) for error in errors]


def _merge(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(defaults)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def expand_document(document: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Per-network intent mappings of a document, defaults applied."""
    if "networks" not in document:
        return [document]
    defaults = document.get("defaults") or {}
    return [_merge(defaults, network) for network in document["networks"]]


def _options(section: str, data: Optional[Dict[str, Any]]):
    options_cls = OPTION_SECTIONS[section]
    values = dict(data or {})
    for key, value in values.items():
        if isinstance(value, list):
            values[key] = tuple(value)
    if section == "gcp" and values.get("access_policy_id") is not None:
        values["access_policy_id"] = str(values["access_policy_id"])
    return options_cls(**values)


def intent_from_dict(data: Dict[str, Any], provider: Optional[str] = None) -> NetworkIntent:
    """
    Build a `NetworkIntent` from a document mapping.

    Missing fields take the `NetworkIntent` defaults. `provider` overrides the
    document's provider.
    """
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key in OPTION_SECTIONS:
            values[key] = _options(key, value)
        elif key in ("public_subnet_indices", "private_subnet_indices"):
            values[key] = frozenset(value or ())
        elif key == "subnet_cidrs":
            values[key] = tuple(value) if value else None
        elif key == "tags":
            values[key] = dict(value or {})
        elif isinstance(value, list):
            values[key] = tuple(value)
        else:
            values[key] = value

    values["provider"] = Provider(provider or data.get("provider"))
    return NetworkIntent(**values)


def load_intents(path: str, provider: Optional[str] = None) -> List[NetworkIntent]:
    """
    Load, validate and convert every network of an intent document.

    Raises:
        FileNotFoundError: the document or an included file is missing.
        yaml.YAMLError: the YAML cannot be parsed.
        ValueError: the document fails schema validation (all errors listed).
    """
    document = load_intent_document(path)
    schema = load_schema()

    bundle = "networks" in document
    # Single documents are checked after the provider override is applied.
    errors = validate_document(document, schema) if bundle else []
    entries = [] if errors else expand_document(document)
    if provider:
        entries = [{**entry, "provider": provider} for entry in entries]
    for position, entry in enumerate(entries):
        for error in validate_document(entry, schema):
            errors.append(f"networks[{position}]: {error}" if bundle else error)

    if errors:
        details = "\n".join(f"  - {error}" for error in errors)
        raise ValueError(f"Intent document {path} is invalid:\n{details}")

    return [intent_from_dict(entry, provider) for entry in entries]


def load_intent(path: str, provider: Optional[str] = None) -> NetworkIntent:
    """Load a single-network intent document."""
    intents = load_intents(path, provider)
    if len(intents) != 1:
        raise ValueError(f"Intent document {path} describes {len(intents)} networks; expected one")
    return intents[0]
