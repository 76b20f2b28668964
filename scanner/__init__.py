"""Scanner module for file discovery, directive parsing and name resolution."""

from .discovery import iter_files, walk_files
from .parser import DirectiveParser, parse_line
from .resolver import Resolver
from .config import ScanConfig, load_config, find_config
from .builder import build_table, scan_file, scan_lines

__all__ = [
    "iter_files",
    "walk_files",
    "DirectiveParser",
    "parse_line",
    "Resolver",
    "ScanConfig",
    "load_config",
    "find_config",
    "build_table",
    "scan_file",
    "scan_lines",
]
