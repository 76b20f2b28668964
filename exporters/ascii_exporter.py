"""ASCII tree-style exporter for cross references."""

from typing import List, Tuple

from graph.xref import CrossReference, RefLink, SymbolEntry


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "

UNRESOLVED_MARKER = " [UNRESOLVED]"

# (label, children)
Node = Tuple[str, list]


def to_ascii(
    xref: CrossReference,
    style: str = "tree",
    include_unresolved: bool = True,
    show_all: bool = False,
) -> str:
    """
    Convert a cross reference to an ASCII tree, one tree per file.

    Args:
        xref: The resolved cross reference.
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).
        include_unresolved: If True, show uses whose target was never declared.
        show_all: If True, include files with no directives. Default False.

    Returns:
        ASCII tree string.
    """
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)

    trees: List[Node] = []
    for section in xref.files:
        children: List[Node] = []
        for group in section.groups:
            children.append((
                group.category,
                [_entry_node(e, include_unresolved) for e in group.symbols],
            ))
        if section.lexicals:
            children.append((
                "Lexicals",
                [_entry_node(e, include_unresolved) for e in section.lexicals],
            ))
        file_uses = _link_nodes("uses", section.uses, include_unresolved)
        if file_uses:
            children.append(("File uses", file_uses))

        if children or show_all:
            trees.append((section.path, children))

    lines: List[str] = []
    for i, (label, children) in enumerate(trees):
        lines.append(label)
        _render_children(children, "", chars, lines)
        # Add blank line between file trees (except after last)
        if i < len(trees) - 1:
            lines.append("")

    return "\n".join(lines)


def _entry_node(entry: SymbolEntry, include_unresolved: bool) -> Node:
    children = _link_nodes("uses", entry.uses, include_unresolved)
    children.extend(_link_nodes("used by", entry.used_by, include_unresolved))
    return (f"{entry.name} :{entry.line}", children)


def _link_nodes(verb: str, refs: List[RefLink], include_unresolved: bool) -> List[Node]:
    nodes: List[Node] = []
    for ref in refs:
        if ref.resolved:
            location = f" ({ref.file}:{ref.line})" if ref.line else ""
            nodes.append((f"{verb} {ref.label}{location}", []))
        elif include_unresolved:
            nodes.append((f"{verb} {ref.label}{UNRESOLVED_MARKER}", []))
    return nodes


def _render_children(
    children: List[Node],
    prefix: str,
    chars: Tuple[str, str, str, str],
    lines: List[str],
) -> None:
    """
    Recursively render child nodes below a parent.

    Args:
        children: Nodes to render.
        prefix: Current line prefix for indentation.
        chars: Character set (branch, last, vertical, space).
        lines: Output lines list (modified in place).
    """
    branch, last, vertical, space = chars

    for index, (label, grandchildren) in enumerate(children):
        is_last = index == len(children) - 1
        connector = last if is_last else branch
        lines.append(f"{prefix}{connector}{label}")
        _render_children(
            grandchildren,
            prefix + (space if is_last else vertical),
            chars,
            lines,
        )
