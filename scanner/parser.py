"""Parser for directive comments (``# ^keyword value``)."""

import re
from dataclasses import dataclass
from typing import Optional, Union


DEFAULT_COMMENT_CHARS = "#"

KNOWN_SCOPES = {"my", "our"}


@dataclass(frozen=True)
class PackageDirective:
    namespace: str


@dataclass(frozen=True)
class VariableDirective:
    """``variable [my|our] NAME``; ``scope`` is None when omitted."""

    name: str
    scope: Optional[str] = None


@dataclass(frozen=True)
class FunctionDirective:
    name: str


@dataclass(frozen=True)
class UsesDirective:
    name: str


@dataclass(frozen=True)
class UnknownDirective:
    keyword: str
    value: str


@dataclass(frozen=True)
class PlainLine:
    """Any line that is not a directive."""

    pass


Directive = Union[
    PackageDirective,
    VariableDirective,
    FunctionDirective,
    UsesDirective,
    UnknownDirective,
    PlainLine,
]


class DirectiveParser:
    """
    Recognizes directive comments.

    A directive is one or more comment characters, a caret, a keyword and a
    value, with whitespace allowed around each part:

        # ^package Foo::Bar
        ## ^variable my @hello
        #^function foo
        #   ^uses @hello

    Args:
        comment_chars: Characters that start a line comment.
    """

    def __init__(self, comment_chars: str = DEFAULT_COMMENT_CHARS):
        if not comment_chars:
            raise ValueError("comment_chars must not be empty")
        self.comment_chars = comment_chars
        self._pattern = re.compile(
            r"^\s*[" + re.escape(comment_chars) + r"]+\s*\^\s*(\w+)\s+(\S.*?)\s*$"
        )

    def parse(self, line: str) -> Directive:
        """
        Classify one line of text.

        Args:
            line: A line, with or without its trailing newline.

        Returns:
            The directive found on the line, or PlainLine.
        """
        match = self._pattern.match(line)
        if match is None:
            return PlainLine()

        keyword, value = match.group(1), match.group(2)

        if keyword == "package":
            return PackageDirective(value)
        if keyword == "function":
            return FunctionDirective(value)
        if keyword == "uses":
            return UsesDirective(value)
        if keyword == "variable":
            return _parse_variable(value)
        return UnknownDirective(keyword, value)


def _parse_variable(value: str) -> VariableDirective:
    """Split ``[scope] NAME`` into its parts."""
    tokens = value.split(None, 1)
    if len(tokens) == 1:
        return VariableDirective(name=tokens[0])
    return VariableDirective(name=tokens[1].strip(), scope=tokens[0])


_default_parser = DirectiveParser()


def parse_line(line: str) -> Directive:
    """Classify a line using ``#`` as the comment character."""
    return _default_parser.parse(line)
