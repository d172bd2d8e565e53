"""
Shared fixtures: a migration workspace that can be advanced phase by phase.
"""

import copy
import json

import pytest

from paritygate.artifacts import read_artifact_set
from paritygate.comparison.behavior import compare_behaviors
from paritygate.comparison.structure import compare_structures
from paritygate.context import WorkspaceContext
from paritygate.domain import ItemStatus, Register, StyleItem
from paritygate.evidence import CritiqueEvidence
from paritygate.gate.rollup import build_rollup


# =============================================================================
# CAPTURED DOCUMENTS
# =============================================================================

SOURCE_STRUCTURE = {
    "rowCount": 2,
    "rows": [
        {"hasImages": False},
        {"hasImages": True, "images": ["/media/logo.png"]},
    ],
    "megamenu": {
        "columnCount": 2,
        "columns": [
            {"hasImages": False},
            {"hasImages": True, "images": ["/media/promo.jpg"]},
        ],
    },
}

SOURCE_BEHAVIOR = {
    "triggers": [
        {
            "label": "Products",
            "elementType": "button",
            "hover": {
                "hasEffect": True,
                "affectsOther": False,
                "description": "underline appears under the label",
            },
            "click": {
                "navigates": False,
                "target": None,
                "description": "opens the products megamenu panel",
            },
            "styling": {"hasMedia": False},
            "items": [
                {
                    "label": "Cameras",
                    "elementType": "a",
                    "click": {
                        "navigates": True,
                        "target": "https://www.example.com/products/cameras.html",
                        "description": "navigates to the cameras page",
                    },
                },
                {
                    "label": "Lenses",
                    "elementType": "a",
                    "click": {
                        "navigates": True,
                        "target": "/products/lenses/",
                        "description": "navigates to the lenses page",
                    },
                },
            ],
            "featured": [
                {
                    "label": "New arrivals",
                    "styling": {
                        "hasMedia": True,
                        "mediaType": "image",
                        "mediaSrc": "/media/new.jpg",
                    },
                },
            ],
        },
        {
            "label": "Support",
            "elementType": "a",
            "hover": {"hasEffect": True, "description": "text turns blue"},
            "click": {
                "navigates": True,
                "target": "/support",
                "description": "navigates to the support page",
            },
        },
    ],
}

HEADER_SCRIPT = """\
export default async function decorate(block) {
  const fragment = await loadFragment('/nav');
  block.append(fragment);
}
"""


def migrated_copy(document):
    return copy.deepcopy(document)


# =============================================================================
# WORKSPACE BUILDER
# =============================================================================

class Workspace:
    """A workspace on disk, advanced one workflow phase at a time."""

    def __init__(self, root):
        self.root = root

    def path(self, relative):
        return self.root / relative

    def write_text(self, relative, text):
        path = self.path(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def write_json(self, relative, data):
        return self.write_text(relative, json.dumps(data, indent=2))

    def read_json(self, relative):
        return json.loads(self.path(relative).read_text(encoding="utf-8"))

    def context(self, session_id="test-session", audit=True):
        return WorkspaceContext.open(self.root, session_id=session_id, audit=audit)

    # --- phases -------------------------------------------------------------

    def capture_source(self):
        self.write_json("validation/source-structure.json", SOURCE_STRUCTURE)
        self.write_json("validation/source-behavior.json", SOURCE_BEHAVIOR)
        return self

    def migrate(self, structure=None, behavior=None):
        self.write_text("content/nav.md", "| Header |\n| --- |\n| [Products](/products) |\n")
        self.write_text("content/nav.plain.html", "<div><a href=\"/products\">Products</a></div>\n")
        self.write_text("blocks/header/header.js", HEADER_SCRIPT)
        self.write_text("blocks/header/header.css", ".header { display: flex; }\n")
        self.write_json(
            "validation/migrated-structure.json",
            structure if structure is not None else migrated_copy(SOURCE_STRUCTURE),
        )
        self.write_json(
            "validation/migrated-behavior.json",
            behavior if behavior is not None else migrated_copy(SOURCE_BEHAVIOR),
        )
        return self

    def validate_behavior(self):
        result = compare_behaviors(
            self.read_json("validation/source-behavior.json"),
            self.read_json("validation/migrated-behavior.json"),
        )
        self.write_json("validation/behavior-register.json", result.to_register().to_dict())
        return self

    def validate_structure(self):
        result = compare_structures(
            self.read_json("validation/source-structure.json"),
            self.read_json("validation/migrated-structure.json"),
        )
        self.write_json("validation/structural-register.json", result.to_register().to_dict())
        return self

    def critique_evidence(self, component_id="header", iteration_count=1):
        report = f"validation/style-{component_id}.json"
        source_ref = f"validation/refs/{component_id}-source.png"
        migrated_ref = f"validation/refs/{component_id}-migrated.png"
        self.write_json(report, {"componentId": component_id, "similarity": 98.5})
        self.write_text(source_ref, "png")
        self.write_text(migrated_ref, "png")
        return CritiqueEvidence(report, source_ref, migrated_ref, iteration_count)

    def validate_styles(self, evidence=None):
        evidence = evidence or self.critique_evidence()
        register = Register(name="style-register", items=[
            StyleItem(
                id="header",
                label="header",
                status=ItemStatus.VALIDATED,
                similarity=98.5,
                evidence=evidence,
            ),
        ])
        self.write_json("validation/style-register.json", register.to_dict())
        return self

    def finalize(self):
        rollup = build_rollup(read_artifact_set(self.context(audit=False)))
        self.write_json("validation/migration-summary.json", rollup)
        return self

    def complete(self):
        return (
            self.capture_source()
            .migrate()
            .validate_behavior()
            .validate_structure()
            .validate_styles()
            .finalize()
        )


@pytest.fixture
def workspace(tmp_path):
    return Workspace(tmp_path)
