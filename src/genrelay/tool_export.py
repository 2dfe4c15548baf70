"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Tool declaration export utilities.

This module converts `FunctionDeclaration` objects into the
`function_declarations` tool payload understood by generateContent-style
transports.
"""

from __future__ import annotations


from typing import Any, Iterable

from .types import FunctionDeclaration


def normalize_json_schema(schema: dict[str, Any] | None) -> dict[str, Any]:
    """
    Ensure schema is a safe object-parameter schema.

    Coerces invalid/malformed fields to predictable defaults so the service
    always receives a well-formed function-parameters schema.
    """
    if not isinstance(schema, dict):
        return {"type": "object", "properties": {}, "required": []}

    out = dict(schema)

    # Function parameters are always object-shaped.
    out["type"] = "object"

    properties_raw = out.get("properties")
    if not isinstance(properties_raw, dict):
        properties: dict[str, Any] = {}
    else:
        properties = {
            str(key): (value if isinstance(value, dict) else {})
            for key, value in properties_raw.items()
        }
    out["properties"] = properties

    required_raw = out.get("required")
    if isinstance(required_raw, list):
        required = [
            str(name)
            for name in required_raw
            if isinstance(name, str) and name in properties
        ]
    else:
        required = []
    out["required"] = required

    # Not part of the generateContent schema dialect.
    out.pop("additionalProperties", None)
    out.pop("title", None)

    return out


def declaration_to_dict(declaration: FunctionDeclaration) -> dict[str, Any]:
    """Convert one declaration into its wire dict."""
    row: dict[str, Any] = {
        "name": declaration.name,
        "description": declaration.description,
    }
    if declaration.parameters is not None:
        row["parameters"] = normalize_json_schema(declaration.parameters)
    return row


def to_tools_payload(declarations: Iterable[FunctionDeclaration]) -> list[dict[str, Any]]:
    """
    Wrap declarations into the tools list attached to a request.

    Returns an empty list when no declarations are given.
    """
    rows = [declaration_to_dict(item) for item in declarations]
    if not rows:
        return []
    return [{"function_declarations": rows}]
