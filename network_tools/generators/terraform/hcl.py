"""HCL rendering of resource attributes."""

from __future__ import annotations

import json
import re
from typing import Any, Callable, List, Mapping

from network_tools.model import Reference

# Attributes written as nested blocks rather than `name = value` arguments.
BLOCK_ATTRIBUTES = frozenset({
    "ddos_protection_plan",
    "egress",
    "ingress",
    "layer4_configs",
    "log_config",
    "match",
    "retention_policy",
    "route",
    "security_rule",
    "status",
    "subnetwork",
})

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")

ReferenceResolver = Callable[[Reference], str]


def local_name(name: str) -> str:
    """Terraform local name for a resource node name."""
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"r_{cleaned}"
    return cleaned


def hcl_key(key: str) -> str:
    return key if IDENTIFIER_RE.match(key) else json.dumps(key)


def hcl_value(value: Any, resolve: ReferenceResolver) -> str:
    """Inline HCL expression for a value."""
    if isinstance(value, Reference):
        return resolve(value)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, Mapping):
        items = ", ".join(f"{hcl_key(str(k))} = {hcl_value(v, resolve)}" for k, v in value.items())
        return "{ " + items + " }" if items else "{}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(hcl_value(item, resolve) for item in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as HCL")


def _is_block(key: str, value: Any) -> bool:
    if key not in BLOCK_ATTRIBUTES:
        return False
    if isinstance(value, Mapping):
        return True
    return isinstance(value, (list, tuple)) and bool(value) and all(isinstance(v, Mapping) for v in value)


def render_body(attributes: Mapping[str, Any], resolve: ReferenceResolver, indent: int = 1) -> List[str]:
    """Lines of a resource or block body, arguments first, then nested blocks."""
    pad = "  " * indent
    lines: List[str] = []
    blocks = []

    for key, value in attributes.items():
        if value is None:
            continue
        if _is_block(key, value):
            blocks.append((key, value))
            continue
        lines.append(f"{pad}{key} = {hcl_value(value, resolve)}")

    for key, value in blocks:
        for item in ([value] if isinstance(value, Mapping) else value):
            lines.append("")
            lines.append(f"{pad}{key} {{")
            lines.extend(render_body(item, resolve, indent + 1))
            lines.append(f"{pad}}}")

    return lines
