"""Naming-policy input validation and output validation against contracts."""

from __future__ import annotations

import json
import string
from pathlib import Path

import jsonschema

from condlist.naming import TEMPLATE_PLACEHOLDERS

# Contract schemas ship inside the package: src/condlist/contracts/
_CONTRACTS_SCHEMAS = Path(__file__).resolve().parent / "contracts"
_NAMING_POLICY_SCHEMA_PATH = _CONTRACTS_SCHEMAS / "NamingPolicy.v1.json"
_POSITION_MAP_SCHEMA_PATH = _CONTRACTS_SCHEMAS / "PositionMap.v1.json"
_DOCUMENT_SCHEMA_PATH = _CONTRACTS_SCHEMAS / "Document.v1.json"


class ValidationError(Exception):
    """Raised when a naming policy is invalid or an output violates its contract."""


def _load_schema(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _placeholders(template: str) -> set[str]:
    try:
        return {
            name
            for _, name, _, _ in string.Formatter().parse(template)
            if name is not None
        }
    except ValueError as exc:
        raise ValidationError(f"malformed braces in template {template!r}: {exc}") from exc


def validate_naming_dict(data: dict) -> dict:
    """Validate an in-memory NamingPolicy dict against the contract schema and semantic rules.

    Schema-level validation (NamingPolicy.v1.json) runs first.
    Semantic rules below catch constraints that JSON Schema cannot express.

    Returns *data* unchanged on success.
    Raises ValidationError on any problem.
    """
    # 1. Schema validation against NamingPolicy.v1.json contract
    try:
        jsonschema.validate(data, _load_schema(_NAMING_POLICY_SCHEMA_PATH))
    except jsonschema.ValidationError as exc:
        raise ValidationError(f"NamingPolicy violates contract schema: {exc.message}") from exc

    # 2. Each template uses exactly the placeholders the generator fills in
    for field, allowed in TEMPLATE_PLACEHOLDERS.items():
        used = _placeholders(data[field])
        unknown = used - allowed
        if unknown:
            raise ValidationError(
                f"'{field}' uses unknown placeholder(s): {', '.join(sorted(unknown))}"
            )
        missing = allowed - used
        if missing:
            raise ValidationError(
                f"'{field}' is missing placeholder(s): {', '.join(sorted(missing))}"
            )

    # 3. Each template renders with string values for its placeholders
    for field, allowed in TEMPLATE_PLACEHOLDERS.items():
        try:
            data[field].format(**{name: "x" for name in allowed})
        except (KeyError, IndexError, ValueError) as exc:
            raise ValidationError(f"'{field}' cannot be rendered: {exc!r}") from exc

    return data


def validate_naming(path: str) -> dict:
    """Read a NamingPolicy JSON file, then validate it via validate_naming_dict.

    Returns the parsed policy dict on success.
    Raises ValidationError on any problem.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Cannot read file: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc}") from exc

    return validate_naming_dict(data)


def validate_position_map_output(position_map: dict) -> None:
    """Validate a serialised position map against the PositionMap.v1.json contract."""
    try:
        jsonschema.validate(position_map, _load_schema(_POSITION_MAP_SCHEMA_PATH))
    except jsonschema.ValidationError as exc:
        raise ValidationError(f"Position map violates contract: {exc.message}") from exc


def validate_document_output(document: dict) -> None:
    """Validate a document dump against the Document.v1.json contract."""
    try:
        jsonschema.validate(document, _load_schema(_DOCUMENT_SCHEMA_PATH))
    except jsonschema.ValidationError as exc:
        raise ValidationError(f"Document dump violates contract: {exc.message}") from exc
