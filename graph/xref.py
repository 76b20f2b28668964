"""Resolved, read-only cross-reference view of a symbol table.

The scan records uses with whatever was known at the time. This module
re-resolves every use against the complete table, so names declared after
their first use still become links, and produces a plain structure the
exporters render without touching the table themselves.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from scanner.resolver import Resolver
from .model import Diagnostic, Referenceable, Resolution, ScopeKind, Symbol, SymbolTable
from .names import SIGIL_CATEGORIES, Sigil


@dataclass(frozen=True)
class RefLink:
    """One end of an edge as shown in a report; ``anchor`` is None if unresolved."""

    label: str
    scope: ScopeKind
    anchor: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.anchor is not None


@dataclass
class SymbolEntry:
    name: str
    kind: ScopeKind
    sigil: Sigil
    file: str
    line: int
    anchor: str
    uses: List[RefLink] = field(default_factory=list)
    used_by: List[RefLink] = field(default_factory=list)


@dataclass
class SymbolGroup:
    category: str
    sigil: Sigil
    symbols: List[SymbolEntry]


@dataclass
class FileSection:
    path: str
    anchor: str
    groups: List[SymbolGroup] = field(default_factory=list)
    lexicals: List[SymbolEntry] = field(default_factory=list)
    uses: List[RefLink] = field(default_factory=list)  # file-body uses

    def entries(self) -> Iterator[SymbolEntry]:
        for group in self.groups:
            yield from group.symbols
        yield from self.lexicals


@dataclass
class CrossReference:
    files: List[FileSection]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def iter_entries(self) -> Iterator[SymbolEntry]:
        """Iterate over every symbol entry, file by file."""
        for section in self.files:
            yield from section.entries()

    def iter_unresolved(self) -> Iterator[Tuple[str, RefLink]]:
        """Iterate over (user label, link) for every unresolved use."""
        for section in self.files:
            for link in section.uses:
                if not link.resolved:
                    yield section.path, link
            for entry in section.entries():
                for link in entry.uses:
                    if not link.resolved:
                        yield entry.name, link

    def __repr__(self) -> str:
        entries = sum(1 for _ in self.iter_entries())
        unresolved = sum(1 for _ in self.iter_unresolved())
        return (
            f"CrossReference(files={len(self.files)}, symbols={entries}, "
            f"unresolved={unresolved}, diagnostics={len(self.diagnostics)})"
        )


class _Anchors:
    """Sequential, collision-free anchor ids keyed by record identity."""

    def __init__(self):
        self._ids: Dict[Tuple[ScopeKind, str, str], str] = {}

    @staticmethod
    def _key(scope: ScopeKind, record: Referenceable) -> Tuple[ScopeKind, str, str]:
        # Lexical names are only unique within their file
        owner = record.file if scope is ScopeKind.LEXICAL else ""
        return (scope, owner, record.name)

    def get(self, scope: ScopeKind, record: Referenceable) -> str:
        key = self._key(scope, record)
        anchor = self._ids.get(key)
        if anchor is None:
            prefix = {ScopeKind.FILE: "f", ScopeKind.PACKAGE: "p", ScopeKind.LEXICAL: "l"}[scope]
            anchor = f"{prefix}{len(self._ids)}"
            self._ids[key] = anchor
        return anchor


def build_xref(table: SymbolTable, resolver: Optional[Resolver] = None) -> CrossReference:
    """
    Resolve a complete symbol table into a CrossReference.

    Files are sorted by path. Package symbols are grouped by sigil category
    and sorted by name within a group; lexical symbols are sorted by name.

    Args:
        table: Fully scanned symbol table.
        resolver: Resolver to use (default: Resolver(table)).

    Returns:
        CrossReference ready for rendering.

    Raises:
        InternalInconsistencyError: A used-by entry names a record that
            does not exist.
    """
    if resolver is None:
        resolver = Resolver(table)

    anchors = _Anchors()
    records = table.files()

    # Assign anchors up front so ids follow report order
    for record in records:
        anchors.get(ScopeKind.FILE, record)
    for record in records:
        grouped = table.package_symbols(record.name)
        for sigil in SIGIL_CATEGORIES:
            for symbol in sorted(grouped.get(sigil, []), key=lambda s: s.name):
                anchors.get(ScopeKind.PACKAGE, symbol)
        for symbol in sorted(table.lexical_symbols(record.name), key=lambda s: s.name):
            anchors.get(ScopeKind.LEXICAL, symbol)

    def _link(resolution: Resolution) -> RefLink:
        target = resolution.symbol
        if target is None:
            return RefLink(label=resolution.key, scope=resolution.scope)
        return RefLink(
            label=target.name,
            scope=resolution.scope,
            anchor=anchors.get(resolution.scope, target),
            file=target.file,
            line=target.line,
        )

    def _entry(symbol: Symbol) -> SymbolEntry:
        return SymbolEntry(
            name=symbol.name,
            kind=symbol.kind,
            sigil=symbol.sigil,
            file=symbol.file,
            line=symbol.line,
            anchor=anchors.get(symbol.kind, symbol),
            uses=[_link(resolver.resolve(u.name, u.file, u.namespace)) for u in symbol.uses],
            used_by=[_link(resolver.resolve_user(user)) for user in symbol.used_by],
        )

    sections: List[FileSection] = []
    for record in records:
        section = FileSection(path=record.name, anchor=anchors.get(ScopeKind.FILE, record))

        grouped = table.package_symbols(record.name)
        for sigil, category in SIGIL_CATEGORIES.items():
            symbols = sorted(grouped.get(sigil, []), key=lambda s: s.name)
            if symbols:
                section.groups.append(
                    SymbolGroup(category=category, sigil=sigil, symbols=[_entry(s) for s in symbols])
                )

        section.lexicals = [
            _entry(s) for s in sorted(table.lexical_symbols(record.name), key=lambda s: s.name)
        ]
        section.uses = [
            _link(resolver.resolve(u.name, u.file, u.namespace)) for u in record.uses
        ]
        sections.append(section)

    return CrossReference(files=sections, diagnostics=list(table.diagnostics))
