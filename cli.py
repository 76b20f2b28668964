#!/usr/bin/env python3
"""
symxref CLI

Scans a source tree for directive comments (``# ^package``, ``# ^variable``,
``# ^function``, ``# ^uses``) and writes a cross-reference report of the
declared symbols and their uses.
"""

import argparse
import logging
import sys
from pathlib import Path

from graph.errors import ConfigError, ScanError
from graph.xref import build_xref
from scanner.builder import build_table
from scanner.config import ScanConfig, find_config, load_config, normalize_extensions
from exporters import to_html, to_mermaid, to_ascii, to_json


logger = logging.getLogger("symxref")


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="symxref",
        description="Build a cross-reference report from directive comments in a source tree.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Directives:
  # ^package Foo::Bar           set the current package
  # ^variable my|our @name      declare a lexical or package variable
  # ^function name              declare a function
  # ^uses @name                 record a use by the current function or file

With only ROOT given, symxref writes the HTML report to stdout and exits 0.
That is the supported default; every option is an optional extension of it.

Examples:
  symxref lib/ > xref.html           # HTML report on stdout
  symxref . -f json -o xref.json     # JSON output to file
  symxref . -f ascii --ascii-style=ascii
  symxref . -f mermaid --group-by-file
  symxref . --include-ext .pl .pm    # Only scan Perl sources
        """,
    )

    # Positional arguments
    parser.add_argument(
        "root",
        help="Root directory of the source tree",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["html", "json", "ascii", "mermaid"],
        default="html",
        help="Output format (default: html)",
    )

    parser.add_argument(
        "--title",
        type=str,
        default=None,
        help="Report title (HTML only)",
    )

    # Mermaid-specific options
    parser.add_argument(
        "--orientation",
        choices=["LR", "TD", "TB", "RL", "BT"],
        default="LR",
        help="Mermaid flowchart orientation (default: LR)",
    )

    parser.add_argument(
        "--group-by-file",
        action="store_true",
        help="Group symbols by declaring file in Mermaid output",
    )

    # ASCII-specific options
    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="ASCII output style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )

    # Scanning options
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Config file (default: .symxref.{yaml,yml,toml,json} in ROOT, if present)",
    )

    parser.add_argument(
        "--include-ext",
        nargs="+",
        default=None,
        help="File extensions to include (e.g., .pl .pm); default: all files",
    )

    parser.add_argument(
        "--exclude-dir",
        nargs="+",
        default=None,
        help="Additional directory names to exclude",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum directory depth to scan",
    )

    parser.add_argument(
        "--ignore-unresolved",
        action="store_true",
        help="Hide unresolved uses (JSON, ASCII and Mermaid output)",
    )

    # Logging options
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log each scanned file",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors (hides declaration warnings)",
    )

    return parser.parse_args(args)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested level."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def load_scan_config(parsed, root: Path) -> ScanConfig:
    """
    Build the scan settings from the config file and command line flags.

    Flags override values from the config file.

    Raises:
        ConfigError: The config file is missing or invalid.
    """
    if parsed.config:
        config_path = Path(parsed.config)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        config = load_config(config_path)
    else:
        found = find_config(root)
        config = load_config(found) if found else ScanConfig()

    if parsed.include_ext:
        config.include_ext = normalize_extensions(parsed.include_ext)
    if parsed.exclude_dir:
        config.exclude_dirs = config.exclude_dirs | set(parsed.exclude_dir)
    if parsed.max_depth is not None:
        config.max_depth = parsed.max_depth
    if parsed.title:
        config.title = parsed.title
    return config


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose, parsed.quiet)

    # Strip trailing slashes, keeping a bare "/" intact
    root_arg = parsed.root.rstrip("/") or "/"
    root = Path(root_arg).resolve()
    if not root.is_dir():
        print(f"Error: '{root_arg}' is not a directory", file=sys.stderr)
        return 1

    try:
        config = load_scan_config(parsed, root)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Build the symbol table
    try:
        table = build_table(root=root, config=config)
    except ScanError as e:
        print(f"Error scanning source tree: {e}", file=sys.stderr)
        return 1

    xref = build_xref(table)
    logger.debug("%r", xref)

    include_unresolved = not parsed.ignore_unresolved

    # Generate output
    if parsed.format == "json":
        output = to_json(xref, include_unresolved=include_unresolved)
    elif parsed.format == "ascii":
        output = to_ascii(
            xref,
            style=parsed.ascii_style,
            include_unresolved=include_unresolved,
        )
    elif parsed.format == "mermaid":
        output = to_mermaid(
            xref,
            orientation=parsed.orientation,
            group_by_file=parsed.group_by_file,
            include_unresolved=include_unresolved,
        )
    else:  # html (default)
        output = to_html(xref, title=config.title)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output, encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
