"""Mermaid flowchart exporter for cross references."""

import re
from typing import Dict, List, Tuple

from graph.xref import CrossReference, RefLink


def to_mermaid(
    xref: CrossReference,
    orientation: str = "LR",
    group_by_file: bool = False,
    include_unresolved: bool = True,
) -> str:
    """
    Convert a cross reference to Mermaid flowchart syntax.

    Every symbol becomes a node and every use an edge from the user (a
    function, or a file for file-body uses) to its target.

    Args:
        xref: The resolved cross reference.
        orientation: Flowchart orientation (LR, TD, TB, RL, BT).
        group_by_file: If True, put each file's symbols in a subgraph.
        include_unresolved: If True, show unresolved targets as dashed nodes.

    Returns:
        Mermaid flowchart string.
    """
    lines = [f"flowchart {orientation}"]

    # anchor -> (node id, label, file)
    nodes: Dict[str, Tuple[str, str, str]] = {}
    edges: List[Tuple[str, RefLink]] = []
    unresolved_ids: Dict[str, str] = {}

    for section in xref.files:
        if section.uses:
            nodes[section.anchor] = (_sanitize_id(section.anchor), section.path, section.path)
            edges.extend((section.anchor, ref) for ref in section.uses)
        for entry in section.entries():
            nodes[entry.anchor] = (_sanitize_id(entry.anchor), entry.name, section.path)
            edges.extend((entry.anchor, ref) for ref in entry.uses)

    if include_unresolved:
        for _, ref in edges:
            if not ref.resolved and ref.label not in unresolved_ids:
                unresolved_ids[ref.label] = _sanitize_id(f"unresolved_{len(unresolved_ids)}")

    if group_by_file:
        lines.extend(_grouped_nodes(xref, nodes))
    else:
        for anchor in nodes:
            node_id, label, _ = nodes[anchor]
            lines.append(f'    {node_id}["{_escape_label(label)}"]')

    # Add unresolved node definitions (with different style)
    if unresolved_ids:
        lines.append("")
        lines.append("    %% Unresolved references")
        for label in sorted(unresolved_ids):
            node_id = unresolved_ids[label]
            lines.append(f'    {node_id}["{_escape_label(label)} [UNRESOLVED]"]')
            lines.append(f"    style {node_id} stroke:#ff0000,stroke-dasharray: 5 5")

    lines.append("")
    for source, ref in edges:
        source_id = nodes[source][0]
        if ref.resolved:
            target_id = nodes[ref.anchor][0] if ref.anchor in nodes else _sanitize_id(ref.anchor)
            lines.append(f"    {source_id} --> {target_id}")
        elif include_unresolved:
            lines.append(f"    {source_id} -.-> {unresolved_ids[ref.label]}")

    return "\n".join(lines)


def _grouped_nodes(xref: CrossReference, nodes: Dict[str, Tuple[str, str, str]]) -> List[str]:
    """Generate one subgraph per file holding that file's nodes."""
    lines = []
    for index, section in enumerate(xref.files):
        members = [n for n in nodes.values() if n[2] == section.path]
        if not members:
            continue
        lines.append(f'    subgraph file_{index}["{_escape_label(section.path)}"]')
        for node_id, label, _ in members:
            lines.append(f'        {node_id}["{_escape_label(label)}"]')
        lines.append("    end")
        lines.append("")
    return lines


def _sanitize_id(value: str) -> str:
    """Sanitize a string to be a valid Mermaid ID."""
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", value)
    # Ensure it starts with a letter
    if sanitized and not sanitized[0].isalpha():
        sanitized = "n_" + sanitized
    return sanitized or "unknown"


def _escape_label(label: str) -> str:
    """Escape characters Mermaid treats specially inside quoted labels."""
    return label.replace('"', "#quot;")
