"""Sigil handling and namespace qualification for directive names."""

from enum import Enum
from typing import Tuple


NAMESPACE_SEPARATOR = "::"
DEFAULT_PACKAGE = "main"


class Sigil(str, Enum):
    """Single-character kind marker at the front of a name."""

    SCALAR = "$"
    ARRAY = "@"
    HASH = "%"
    CODE = "&"
    GLOB = "*"
    NONE = ""


SIGIL_CHARS = {s.value for s in Sigil if s is not Sigil.NONE}

# Report grouping, in display order
SIGIL_CATEGORIES = {
    Sigil.CODE: "Functions",
    Sigil.SCALAR: "Scalars",
    Sigil.ARRAY: "Arrays",
    Sigil.HASH: "Hashes",
    Sigil.GLOB: "Globs",
    Sigil.NONE: "Other",
}


def sigil_of(name: str) -> Sigil:
    """Return the sigil of a name, or ``Sigil.NONE`` for a bare name."""
    if name and name[0] in SIGIL_CHARS:
        return Sigil(name[0])
    return Sigil.NONE


def split_name(name: str) -> Tuple[Sigil, str]:
    """Split a name into its sigil and the remainder."""
    sigil = sigil_of(name)
    if sigil is Sigil.NONE:
        return sigil, name
    return sigil, name[1:]


def ensure_code_sigil(name: str) -> str:
    """
    Give a bare name the code sigil.

    Function names are written without a sigil in directives but are stored
    with ``&`` so they share one key space with other package symbols.
    """
    if sigil_of(name) is Sigil.NONE:
        return Sigil.CODE.value + name
    return name


def qualify(name: str, namespace: str) -> str:
    """
    Qualify a sigiled name with a namespace.

    Bare names are file paths and are returned untouched, as are names that
    already carry a namespace separator.

    Examples:
        qualify("@hello", "Foo::Bar")     -> "@Foo::Bar::hello"
        qualify("$Other::x", "Foo")       -> "$Other::x"
        qualify("lib/Foo.pm", "Foo")      -> "lib/Foo.pm"
    """
    sigil, rest = split_name(name)
    if sigil is Sigil.NONE or NAMESPACE_SEPARATOR in rest:
        return name
    return f"{sigil.value}{namespace}{NAMESPACE_SEPARATOR}{rest}"


def sigil_category(sigil: Sigil) -> str:
    """Return the report grouping label for a sigil."""
    return SIGIL_CATEGORIES[sigil]
