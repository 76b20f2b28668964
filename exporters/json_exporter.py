"""JSON exporter for cross references (machine-friendly format)."""

import json
from typing import Any, Dict, List

from graph.xref import CrossReference, RefLink, SymbolEntry


def to_json(
    xref: CrossReference,
    indent: int = 2,
    include_unresolved: bool = True,
) -> str:
    """
    Convert a cross reference to JSON format.

    Args:
        xref: The resolved cross reference.
        indent: JSON indentation level.
        include_unresolved: If False, drop uses whose target was never declared.

    Returns:
        JSON string representation of the cross reference.
    """
    files: List[Dict[str, Any]] = []
    for section in xref.files:
        files.append({
            "path": section.path,
            "symbols": {
                group.category: [
                    _entry_dict(entry, include_unresolved) for entry in group.symbols
                ]
                for group in section.groups
            },
            "lexicals": [
                _entry_dict(entry, include_unresolved) for entry in section.lexicals
            ],
            "uses": _links(section.uses, include_unresolved),
        })

    data: Dict[str, Any] = {
        "files": files,
        "diagnostics": [
            {
                "kind": d.kind.value,
                "file": d.file,
                "line": d.line,
                "message": d.message,
            }
            for d in xref.diagnostics
        ],
    }

    return json.dumps(data, indent=indent)


def _entry_dict(entry: SymbolEntry, include_unresolved: bool) -> Dict[str, Any]:
    return {
        "name": entry.name,
        "kind": entry.kind.value,
        "line": entry.line,
        "uses": _links(entry.uses, include_unresolved),
        "used_by": _links(entry.used_by, include_unresolved),
    }


def _links(refs: List[RefLink], include_unresolved: bool) -> List[Dict[str, Any]]:
    result = []
    for ref in refs:
        if not ref.resolved and not include_unresolved:
            continue
        item: Dict[str, Any] = {"name": ref.label, "scope": ref.scope.value}
        if ref.resolved:
            item["file"] = ref.file
            item["line"] = ref.line
        else:
            item["unresolved"] = True
        result.append(item)
    return result
