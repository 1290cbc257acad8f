"""Output generators for synthesized descriptions."""

from __future__ import annotations

import json
from collections import Counter
from typing import Any

from .describe.models import (
    Declaration,
    DescriptionNode,
    Object,
    SynthesisResult,
    Text,
    node_from_json,
)


def _escape_cell(text: str) -> str:
    """Make text safe for a single markdown table cell."""
    return text.replace("|", "\\|").replace("\n", "<br>")


def artifact_keys(declarations: list[Declaration]) -> list[str]:
    """Key per declaration: its name, or its identity when the name is shared."""
    counts = Counter(decl.name for decl in declarations)
    return [decl.name if counts[decl.name] == 1 else decl.identity for decl in declarations]


def generate_json(results: list[SynthesisResult]) -> str:
    """Generate the JSON artifact: declaration name -> description or null.

    Declarations sharing a name are keyed by their identity instead.
    """
    keys = artifact_keys([result.declaration for result in results])
    payload: dict[str, Any] = {}
    for key, result in zip(keys, results):
        node = result.description
        payload[key] = node.to_json() if node is not None else None
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def load_json(text: str) -> dict[str, DescriptionNode | None]:
    """Read a JSON artifact produced by generate_json back into nodes."""
    payload = json.loads(text)
    if not isinstance(payload, dict):
        return {}
    return {str(name): node_from_json(value) for name, value in payload.items()}


def _rows(node: Object, prefix: str = "") -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    for name, child in node.members.items():
        path = f"{prefix}{name}"
        if isinstance(child, Text):
            rows.append((path, child.text))
        else:
            rows.extend(_rows(child, f"{path}."))
    return rows


def generate_markdown(results: list[SynthesisResult], title: str = "API Descriptions") -> str:
    """Generate a reference page with one section per declaration."""
    lines = [f"# {title}", ""]
    keys = artifact_keys([result.declaration for result in results])

    for key, result in zip(keys, results):
        node = result.description
        lines.extend([f"## {key}", ""])

        if node is None:
            lines.extend(["_No description._", ""])
            continue
        if isinstance(node, Text):
            lines.extend([node.text, ""])
            continue

        lines.extend(
            [
                "| Field | Description |",
                "|-------|-------------|",
            ]
        )
        for path, text in _rows(node):
            lines.append(f"| `{path}` | {_escape_cell(text)} |")
        lines.append("")

    return "\n".join(lines)
