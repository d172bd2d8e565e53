"""
Declarative schemas for every JSON document paritygate reads.

Documents are checked with one generic validator (JSON Schema, Draft
2020-12). Nested objects and arrays recurse through `$defs`; documents
that come in more than one accepted shape use `oneOf`/`anyOf`.
"""

from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator


# =============================================================================
# SHARED DEFINITIONS
# =============================================================================

_STATUS = {"enum": ["pending", "validated", "failed"]}

_ITEM_BASE = {
    "id": {"type": "string", "minLength": 1},
    "label": {"type": "string"},
    "status": _STATUS,
    "remediation": {"type": "string"},
}


# =============================================================================
# STRUCTURAL SUMMARY
# =============================================================================

STRUCTURE_SUMMARY_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["rowCount", "rows"],
    "properties": {
        "rowCount": {"type": "integer", "minimum": 0},
        "rows": {"type": "array", "items": {"$ref": "#/$defs/slot"}},
        "megamenu": {
            "anyOf": [
                {"type": "null"},
                {"$ref": "#/$defs/megamenu"},
            ],
        },
    },
    "$defs": {
        "slot": {
            "type": "object",
            "required": ["hasImages"],
            "properties": {
                "hasImages": {"type": "boolean"},
                "images": {"type": "array", "items": {"type": "string"}},
            },
        },
        "megamenu": {
            "type": "object",
            "required": ["columnCount", "columns"],
            "properties": {
                "columnCount": {"type": "integer", "minimum": 0},
                "columns": {"type": "array", "items": {"$ref": "#/$defs/slot"}},
            },
        },
    },
}


# =============================================================================
# STYLE MAP
# =============================================================================

_FLAT_STYLES = {
    "type": "object",
    "additionalProperties": {"type": ["string", "number"]},
}

STYLE_MAP_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "oneOf": [
        _FLAT_STYLES,
        {
            "type": "object",
            "required": ["styles"],
            "properties": {
                "component": {"type": "string"},
                "styles": _FLAT_STYLES,
            },
        },
    ],
}


# =============================================================================
# BEHAVIOR TREE
# =============================================================================

BEHAVIOR_TREE_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["triggers"],
    "properties": {
        "triggers": {"type": "array", "items": {"$ref": "#/$defs/node"}},
    },
    "$defs": {
        "node": {
            "type": "object",
            "required": ["label"],
            "properties": {
                "label": {"type": "string"},
                "elementType": {"type": "string"},
                "hover": {
                    "type": "object",
                    "properties": {
                        "hasEffect": {"type": "boolean"},
                        "affectsOther": {"type": "boolean"},
                        "description": {"type": "string"},
                    },
                },
                "click": {
                    "type": "object",
                    "properties": {
                        "navigates": {"type": "boolean"},
                        "target": {"type": ["string", "null"]},
                        "description": {"type": "string"},
                    },
                },
                "styling": {
                    "type": "object",
                    "properties": {
                        "hasMedia": {"type": "boolean"},
                        "mediaType": {"type": ["string", "null"]},
                        "mediaSrc": {"type": ["string", "null"]},
                        "elementType": {"type": "string"},
                    },
                },
                "items": {"type": "array", "items": {"$ref": "#/$defs/node"}},
                "tabs": {"type": "array", "items": {"$ref": "#/$defs/node"}},
                "featured": {"type": "array", "items": {"$ref": "#/$defs/node"}},
                "specs": {"type": "array", "items": {"$ref": "#/$defs/node"}},
            },
        },
    },
}


# =============================================================================
# REGISTER
# =============================================================================

REGISTER_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["items", "allValidated"],
    "properties": {
        "register": {"type": "string"},
        "items": {"type": "array", "items": {"$ref": "#/$defs/item"}},
        "allValidated": {"type": "boolean"},
        "summary": {"type": "object"},
    },
    "$defs": {
        "item": {
            "oneOf": [
                {"$ref": "#/$defs/structuralItem"},
                {"$ref": "#/$defs/behaviorItem"},
                {"$ref": "#/$defs/styleItem"},
            ],
        },
        "structuralItem": {
            "type": "object",
            "required": ["id", "type", "status"],
            "properties": {
                **_ITEM_BASE,
                "type": {"enum": ["row", "megamenu", "megamenu-column"]},
                "structureMatch": {"type": "boolean"},
            },
        },
        "behaviorItem": {
            "type": "object",
            "required": ["id", "type", "status"],
            "properties": {
                **_ITEM_BASE,
                "type": {
                    "enum": ["trigger", "panel-item", "tab", "featured-area", "spec-block"],
                },
                "hoverMatch": {"type": "boolean"},
                "clickMatch": {"type": "boolean"},
                "stylingMatch": {"type": "boolean"},
                "parentId": {"type": ["string", "null"]},
            },
        },
        "styleItem": {
            "type": "object",
            "required": ["id", "type", "status"],
            "properties": {
                **_ITEM_BASE,
                "type": {"const": "style-target"},
                "similarity": {"type": ["number", "null"]},
                "evidence": {
                    "anyOf": [
                        {"type": "null"},
                        {"$ref": "#/$defs/evidence"},
                    ],
                },
            },
        },
        "evidence": {
            "type": "object",
            "required": ["reportPath", "sourceRefPath", "migratedRefPath", "iterationCount"],
            "properties": {
                "reportPath": {"type": "string"},
                "sourceRefPath": {"type": "string"},
                "migratedRefPath": {"type": "string"},
                "iterationCount": {"type": "integer"},
            },
        },
    },
}


# =============================================================================
# ROLLUP
# =============================================================================

ROLLUP_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["phase", "allValidated", "registers"],
    "properties": {
        "phase": {"type": "string"},
        "allValidated": {"type": "boolean"},
        "registers": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["present", "allValidated"],
                "properties": {
                    "present": {"type": "boolean"},
                    "allValidated": {"type": "boolean"},
                    "total": {"type": "integer"},
                    "validated": {"type": "integer"},
                    "failed": {"type": "integer"},
                    "pending": {"type": "integer"},
                },
            },
        },
    },
}


SCHEMAS = {
    "structure-summary": STRUCTURE_SUMMARY_SCHEMA,
    "style-map": STYLE_MAP_SCHEMA,
    "behavior-tree": BEHAVIOR_TREE_SCHEMA,
    "register": REGISTER_SCHEMA,
    "rollup": ROLLUP_SCHEMA,
}

_VALIDATORS = {name: Draft202012Validator(schema) for name, schema in SCHEMAS.items()}


def schema_errors(data: Any, schema_name: str) -> list[str]:
    """
    Validate a document against a named schema.

    Returns:
        Human-readable error strings, ordered by document path. Empty if
        the document is valid.
    """
    validator = _VALIDATORS[schema_name]
    errors = sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
    messages = []
    for error in errors:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        messages.append(f"{location}: {error.message}")
    return messages


def is_valid(data: Any, schema_name: str) -> bool:
    return _VALIDATORS[schema_name].is_valid(data)
