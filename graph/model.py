"""Symbol table data model for directive-declared names and their uses."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .errors import InternalInconsistencyError
from .names import DEFAULT_PACKAGE, Sigil, qualify, sigil_of


logger = logging.getLogger(__name__)


class ScopeKind(str, Enum):
    """Namespace a name was resolved in."""

    LEXICAL = "lexical"
    PACKAGE = "package"
    FILE = "file"


class DiagnosticKind(str, Enum):
    CONFLICT = "conflict"
    UNKNOWN_DIRECTIVE = "unknown-directive"
    SCOPE_DEFAULTED = "scope-defaulted"
    UNKNOWN_SCOPE = "unknown-scope"


@dataclass(frozen=True)
class Use:
    """
    One ``uses`` reference as it was seen during the scan.

    ``scope`` and ``key`` are the scan-time resolution. The report phase
    re-resolves ``name`` against the complete table, so a use recorded before
    its declaration still ends up linked.
    """

    name: str
    file: str
    line: int
    namespace: str
    scope: ScopeKind
    key: str


@dataclass(frozen=True)
class UserRef:
    """
    The user end of a ``used_by`` entry.

    A user is either a function (``PACKAGE`` scope, qualified name) or a
    file body (``FILE`` scope, file path). The scope is stored rather than
    guessed from the key, since a file path may start with a sigil.
    """

    scope: ScopeKind
    key: str

    def __str__(self) -> str:
        return self.key


@dataclass
class Referenceable:
    """Anything that can appear on either end of a uses edge."""

    name: str
    file: str
    line: int
    uses: List[Use] = field(default_factory=list)
    used_by: List[UserRef] = field(default_factory=list)


@dataclass
class Symbol(Referenceable):
    """A declared package-scoped or lexical name."""

    kind: ScopeKind = ScopeKind.PACKAGE
    sigil: Sigil = Sigil.NONE


@dataclass
class FileRecord(Referenceable):
    """
    A scanned file acting as a pseudo-symbol.

    Uses that appear outside any function are attached here. The record also
    indexes the symbols the file declares, for grouping in reports.
    """

    package_symbols: Dict[Sigil, List[str]] = field(default_factory=dict)
    lexical_symbols: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a name; ``symbol`` is None when undeclared."""

    scope: ScopeKind
    key: str
    symbol: Optional[Referenceable] = None

    @property
    def resolved(self) -> bool:
        return self.symbol is not None


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    file: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}: {self.message}"


class SymbolTable:
    """
    Package, lexical and file namespaces for one scan run.

    Package symbols are keyed by qualified name and visible from every file.
    Lexical symbols are keyed by (file, name) and only visible in their file.
    Files live in their own map. All three are insert-only.

    Every use appended to a user's ``uses`` list gets a matching ``used_by``
    entry on its target. When the target is not declared yet the entry is
    kept pending and attached as soon as the declaration is inserted. A
    lexical declared after a use of the same spelling in its file takes
    over that use's entry from the package symbol it first resolved to.
    """

    def __init__(self):
        self._package: Dict[str, Symbol] = {}
        self._lexical: Dict[Tuple[str, str], Symbol] = {}
        self._files: Dict[str, FileRecord] = {}
        self._pending: List[Tuple[Use, UserRef]] = []
        self._package_edges: List[Tuple[Use, UserRef]] = []  # attached to package symbols
        self.diagnostics: List[Diagnostic] = []

    # -- declarations ---------------------------------------------------

    def declare_package_symbol(
        self,
        name: str,
        file: str,
        line: int,
        namespace: str,
    ) -> bool:
        """
        Declare a package-scoped name.

        Args:
            name: Name as written, e.g. ``@test2`` or ``&Foo::bar``.
            file: Declaring file.
            line: Declaring line (1-based).
            namespace: Package in effect, used to qualify ``name``.

        Returns:
            True if inserted, False if the qualified name was already
            declared. A conflict leaves the first declaration in place.
        """
        qualified = qualify(name, namespace)
        existing = self._package.get(qualified)
        if existing is not None:
            self.warn(
                DiagnosticKind.CONFLICT, file, line,
                f"{qualified} already declared at {existing.file}:{existing.line}",
            )
            return False

        sigil = sigil_of(qualified)
        symbol = Symbol(
            name=qualified, file=file, line=line,
            kind=ScopeKind.PACKAGE, sigil=sigil,
        )
        self._package[qualified] = symbol
        record = self.register_file(file)
        record.package_symbols.setdefault(sigil, []).append(qualified)

        self._attach_pending(
            lambda use: use.scope is ScopeKind.PACKAGE and use.key == qualified,
            symbol,
        )
        return True

    def declare_lexical_symbol(self, name: str, file: str, line: int) -> bool:
        """
        Declare a file-lexical name.

        Scoping is per file; block-level lexical scopes are not tracked.

        Returns:
            True if inserted, False if the file already declares ``name``.
        """
        existing = self._lexical.get((file, name))
        if existing is not None:
            self.warn(
                DiagnosticKind.CONFLICT, file, line,
                f"lexical {name} already declared at {existing.file}:{existing.line}",
            )
            return False

        symbol = Symbol(
            name=name, file=file, line=line,
            kind=ScopeKind.LEXICAL, sigil=sigil_of(name),
        )
        self._lexical[(file, name)] = symbol
        self.register_file(file).lexical_symbols.append(name)

        # An earlier use of the same spelling in this file is shadowed by
        # this declaration, whatever it resolved to at the time.
        self._claim_package_edges(file, name, symbol)
        self._attach_pending(
            lambda use: use.file == file and use.name == name,
            symbol,
        )
        return True

    def register_file(self, file: str) -> FileRecord:
        """Return the file record for ``file``, creating it if needed."""
        record = self._files.get(file)
        if record is None:
            record = FileRecord(name=file, file=file, line=0)
            self._files[file] = record
        return record

    # -- edges ----------------------------------------------------------

    def record_use(
        self,
        scope: ScopeKind,
        key: str,
        file: str,
        current_function: Optional[str] = None,
        *,
        name: Optional[str] = None,
        line: int = 0,
        namespace: str = DEFAULT_PACKAGE,
    ) -> Use:
        """
        Record that the current function, or the file body, uses a target.

        Args:
            scope: Namespace the target resolved to.
            key: Target key within that namespace.
            file: File the use appears in.
            current_function: Qualified name of the enclosing function, or
                None for a use in the file body.
            name: Spelling at the use site (defaults to ``key``).
            line: Line of the use.
            namespace: Package in effect at the use.

        Returns:
            The recorded Use.

        Raises:
            InternalInconsistencyError: ``current_function`` is not a
                declared package symbol.
        """
        use = Use(
            name=name if name is not None else key,
            file=file,
            line=line,
            namespace=namespace,
            scope=scope,
            key=key,
        )

        user: Referenceable
        if current_function is not None:
            user = self._package.get(current_function)
            if user is None:
                raise InternalInconsistencyError(
                    f"{file}:{line}: enclosing function {current_function} is not declared"
                )
            ref = UserRef(ScopeKind.PACKAGE, current_function)
        else:
            user = self.register_file(file)
            ref = UserRef(ScopeKind.FILE, file)

        user.uses.append(use)

        target = self.lookup(scope, key, file)
        if target is not None:
            self._attach(use, ref, target)
        else:
            self._pending.append((use, ref))
        return use

    def _attach(self, use: Use, ref: UserRef, target: Referenceable) -> None:
        target.used_by.append(ref)
        if isinstance(target, Symbol) and target.kind is ScopeKind.PACKAGE:
            self._package_edges.append((use, ref))

    def _attach_pending(self, matches: Callable[[Use], bool], target: Referenceable) -> None:
        remaining = []
        for use, ref in self._pending:
            if matches(use):
                self._attach(use, ref, target)
            else:
                remaining.append((use, ref))
        self._pending = remaining

    def _claim_package_edges(self, file: str, name: str, target: Symbol) -> None:
        # Move entries of uses now shadowed by a lexical off their package symbol
        remaining = []
        for use, ref in self._package_edges:
            if use.file == file and use.name == name:
                self._package[use.key].used_by.remove(ref)
                target.used_by.append(ref)
            else:
                remaining.append((use, ref))
        self._package_edges = remaining

    # -- lookups --------------------------------------------------------

    def lookup_package_symbol(self, qualified_name: str) -> Optional[Symbol]:
        return self._package.get(qualified_name)

    def lookup_lexical_symbol(self, file: str, name: str) -> Optional[Symbol]:
        return self._lexical.get((file, name))

    def lookup_file(self, file: str) -> Optional[FileRecord]:
        return self._files.get(file)

    def lookup(self, scope: ScopeKind, key: str, file: str) -> Optional[Referenceable]:
        """Look up a key in the namespace named by ``scope``."""
        if scope is ScopeKind.LEXICAL:
            return self.lookup_lexical_symbol(file, key)
        if scope is ScopeKind.PACKAGE:
            return self.lookup_package_symbol(key)
        return self.lookup_file(key)

    # -- report queries -------------------------------------------------

    def files(self) -> List[FileRecord]:
        """Return all file records, sorted by path."""
        return [self._files[f] for f in sorted(self._files)]

    def package_symbols(self, file: str) -> Dict[Sigil, List[Symbol]]:
        """Return the package symbols declared in ``file``, grouped by sigil."""
        record = self._files.get(file)
        if record is None:
            return {}
        grouped: Dict[Sigil, List[Symbol]] = defaultdict(list)
        for sigil, names in record.package_symbols.items():
            for name in names:
                grouped[sigil].append(self._package[name])
        return dict(grouped)

    def lexical_symbols(self, file: str) -> List[Symbol]:
        """Return the lexical symbols declared in ``file``, in declaration order."""
        record = self._files.get(file)
        if record is None:
            return []
        return [self._lexical[(file, name)] for name in record.lexical_symbols]

    def iter_symbols(self) -> Iterator[Symbol]:
        """Iterate over package symbols, then lexical symbols."""
        yield from self._package.values()
        yield from self._lexical.values()

    def pending_uses(self) -> List[Tuple[Use, str]]:
        """Return uses whose target was never declared, with their users."""
        return list(self._pending)

    # -- diagnostics ----------------------------------------------------

    def warn(self, kind: DiagnosticKind, file: str, line: int, message: str) -> Diagnostic:
        """Log a non-fatal problem and keep it for the report."""
        diagnostic = Diagnostic(kind=kind, file=file, line=line, message=message)
        self.diagnostics.append(diagnostic)
        logger.warning("%s", diagnostic)
        return diagnostic

    def __len__(self) -> int:
        """Return the number of declared symbols."""
        return len(self._package) + len(self._lexical)

    def __contains__(self, qualified_name: str) -> bool:
        """Check if a package symbol is declared."""
        return qualified_name in self._package

    def __repr__(self) -> str:
        edge_count = sum(len(s.uses) for s in self.iter_symbols())
        edge_count += sum(len(f.uses) for f in self._files.values())
        return (
            f"SymbolTable(files={len(self._files)}, package={len(self._package)}, "
            f"lexical={len(self._lexical)}, uses={edge_count}, "
            f"pending={len(self._pending)}, diagnostics={len(self.diagnostics)})"
        )
