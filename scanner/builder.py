"""Scan driver that feeds directive lines into the symbol table."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from graph.errors import ScanError
from graph.model import DiagnosticKind, SymbolTable
from graph.names import DEFAULT_PACKAGE, ensure_code_sigil, qualify
from .config import ScanConfig
from .discovery import get_relative_path, walk_files
from .parser import (
    DirectiveParser,
    FunctionDirective,
    PackageDirective,
    PlainLine,
    UnknownDirective,
    UsesDirective,
    VariableDirective,
    parse_line,
)
from .resolver import Resolver


logger = logging.getLogger(__name__)


@dataclass
class ScanState:
    """Per-file parser state."""

    namespace: str = DEFAULT_PACKAGE
    current_function: Optional[str] = None


def scan_lines(
    table: SymbolTable,
    file: str,
    lines: Iterable[str],
    parser: Optional[DirectiveParser] = None,
    default_package: str = DEFAULT_PACKAGE,
) -> ScanState:
    """
    Scan the lines of one file into the table.

    Any line that is not a directive ends the current function, so a
    ``uses`` directive after ordinary code is attributed to the file body.

    Args:
        table: Symbol table to populate.
        file: Identifier of the file the lines belong to.
        lines: Lines of text, in order.
        parser: Directive parser; defaults to ``#`` comments.
        default_package: Package in effect before any ``package`` directive.

    Returns:
        The state after the last line.
    """
    parse = parser.parse if parser is not None else parse_line
    resolver = Resolver(table)
    state = ScanState(namespace=default_package)

    table.register_file(file)

    for line_no, line in enumerate(lines, start=1):
        directive = parse(line)

        if isinstance(directive, PlainLine):
            state.current_function = None

        elif isinstance(directive, PackageDirective):
            state.namespace = directive.namespace

        elif isinstance(directive, VariableDirective):
            _declare_variable(table, directive, file, line_no, state.namespace)

        elif isinstance(directive, FunctionDirective):
            name = ensure_code_sigil(directive.name)
            table.declare_package_symbol(name, file, line_no, state.namespace)
            # Attribute following uses to this function even if the
            # declaration conflicted.
            state.current_function = qualify(name, state.namespace)

        elif isinstance(directive, UsesDirective):
            name = ensure_code_sigil(directive.name)
            resolution = resolver.resolve(name, file, state.namespace)
            table.record_use(
                resolution.scope,
                resolution.key,
                file,
                state.current_function,
                name=name,
                line=line_no,
                namespace=state.namespace,
            )

        elif isinstance(directive, UnknownDirective):
            table.warn(
                DiagnosticKind.UNKNOWN_DIRECTIVE, file, line_no,
                f"unknown directive ^{directive.keyword}",
            )

        else:
            raise TypeError(f"Unhandled directive: {directive!r}")

    return state


def _declare_variable(
    table: SymbolTable,
    directive: VariableDirective,
    file: str,
    line_no: int,
    namespace: str,
) -> None:
    scope = directive.scope
    if scope is None:
        table.warn(
            DiagnosticKind.SCOPE_DEFAULTED, file, line_no,
            f"no scope given for {directive.name}, assuming 'our'",
        )
        scope = "our"

    if scope == "our":
        table.declare_package_symbol(directive.name, file, line_no, namespace)
    elif scope == "my":
        table.declare_lexical_symbol(directive.name, file, line_no)
    else:
        table.warn(
            DiagnosticKind.UNKNOWN_SCOPE, file, line_no,
            f"unknown scope '{scope}' for {directive.name}, ignored",
        )


def scan_file(
    table: SymbolTable,
    path: Path,
    file_id: Optional[str] = None,
    parser: Optional[DirectiveParser] = None,
    default_package: str = DEFAULT_PACKAGE,
) -> ScanState:
    """
    Read a file from disk and scan it.

    Undecodable bytes are replaced rather than rejected; only a failure to
    read the file is fatal.

    Args:
        table: Symbol table to populate.
        path: File to read.
        file_id: Identifier recorded in the table (default: ``str(path)``).
        parser: Directive parser.
        default_package: Package in effect at the top of the file.

    Raises:
        ScanError: The file cannot be read.
    """
    if file_id is None:
        file_id = str(path)

    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return scan_lines(table, file_id, f, parser, default_package)
    except OSError as e:
        raise ScanError(f"Cannot read {path}: {e}") from e


def build_table(
    root: Path,
    config: Optional[ScanConfig] = None,
) -> SymbolTable:
    """
    Scan a source tree and build its symbol table.

    Files are identified by their POSIX path relative to ``root``.

    Args:
        root: Root directory to scan.
        config: Scan settings (default: ScanConfig()).

    Returns:
        SymbolTable holding every declaration and use in the tree.

    Raises:
        ScanError: A file or directory cannot be read.
    """
    if config is None:
        config = ScanConfig()

    table = SymbolTable()
    root = root.resolve()
    parser = DirectiveParser(config.comment_chars)

    def _scan(path: Path) -> None:
        file_id = get_relative_path(path, root).as_posix()
        logger.debug("scanning %s", file_id)
        scan_file(table, path, file_id, parser, config.default_package)

    try:
        count = walk_files(
            root,
            _scan,
            include_ext=config.include_ext,
            exclude_dirs=config.exclude_dirs,
            max_depth=config.max_depth,
        )
    except OSError as e:
        raise ScanError(f"Cannot walk {root}: {e}") from e

    logger.debug("scanned %d files: %r", count, table)
    return table
