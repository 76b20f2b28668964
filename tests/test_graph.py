"""Tests for the symbol table, name handling and cross-reference view."""

from collections import Counter

import pytest

from graph.errors import InternalInconsistencyError
from graph.model import DiagnosticKind, ScopeKind, SymbolTable, UserRef
from graph.names import Sigil, ensure_code_sigil, qualify, sigil_of, split_name
from graph.xref import build_xref
from scanner.builder import scan_lines


class TestNames:
    """Tests for sigil handling and qualification."""

    def test_sigil_of(self):
        """Test recognizing each sigil and bare names."""
        assert sigil_of("$x") is Sigil.SCALAR
        assert sigil_of("@x") is Sigil.ARRAY
        assert sigil_of("%x") is Sigil.HASH
        assert sigil_of("&x") is Sigil.CODE
        assert sigil_of("*x") is Sigil.GLOB
        assert sigil_of("x") is Sigil.NONE
        assert sigil_of("") is Sigil.NONE

    def test_split_name(self):
        """Test splitting a name into sigil and remainder."""
        assert split_name("@hello") == (Sigil.ARRAY, "hello")
        assert split_name("lib/Foo.pm") == (Sigil.NONE, "lib/Foo.pm")

    def test_ensure_code_sigil(self):
        """Test that only bare names get the code sigil."""
        assert ensure_code_sigil("foo") == "&foo"
        assert ensure_code_sigil("Foo::foo") == "&Foo::foo"
        assert ensure_code_sigil("$foo") == "$foo"

    def test_qualify(self):
        """Test qualifying names against a namespace."""
        assert qualify("@hello", "Foo::Bar") == "@Foo::Bar::hello"
        assert qualify("&foo", "main") == "&main::foo"

    def test_qualify_is_idempotent(self):
        """Test that qualified names are left alone."""
        once = qualify("$x", "Foo")
        assert qualify(once, "Bar") == once
        assert qualify("$Other::x", "Foo") == "$Other::x"

    def test_qualify_skips_bare_names(self):
        """Test that bare names (file paths) are never qualified."""
        assert qualify("lib/Foo.pm", "Foo") == "lib/Foo.pm"


class TestSymbolTable:
    """Tests for SymbolTable declarations and edges."""

    def test_empty_table(self):
        """Test empty table initialization."""
        table = SymbolTable()
        assert len(table) == 0
        assert table.files() == []
        assert table.diagnostics == []

    def test_declare_package_symbol(self):
        """Test declaring and looking up a package symbol."""
        table = SymbolTable()

        assert table.declare_package_symbol("@test2", "a.pl", 3, "main")

        symbol = table.lookup_package_symbol("@main::test2")
        assert symbol is not None
        assert symbol.file == "a.pl"
        assert symbol.line == 3
        assert symbol.kind is ScopeKind.PACKAGE
        assert symbol.sigil is Sigil.ARRAY
        assert "@main::test2" in table

    def test_first_declaration_wins(self):
        """Test that redeclaring a package name keeps the first site."""
        table = SymbolTable()
        table.declare_package_symbol("@test2", "a.pl", 3, "main")

        assert not table.declare_package_symbol("@test2", "b.pl", 7, "main")

        symbol = table.lookup_package_symbol("@main::test2")
        assert (symbol.file, symbol.line) == ("a.pl", 3)
        assert len(table) == 1
        conflict = table.diagnostics[-1]
        assert conflict.kind is DiagnosticKind.CONFLICT
        assert (conflict.file, conflict.line) == ("b.pl", 7)
        assert "a.pl:3" in conflict.message

    def test_lexical_declared_once_per_file(self):
        """Test lexical names are unique per file, not globally."""
        table = SymbolTable()

        assert table.declare_lexical_symbol("@hello", "a.pl", 2)
        assert table.declare_lexical_symbol("@hello", "b.pl", 4)
        assert not table.declare_lexical_symbol("@hello", "a.pl", 9)

        assert table.lookup_lexical_symbol("a.pl", "@hello").line == 2
        assert table.lookup_lexical_symbol("b.pl", "@hello").line == 4
        assert table.lookup_package_symbol("@hello") is None

    def test_declarations_register_files(self):
        """Test that declaring symbols indexes them on the file record."""
        table = SymbolTable()
        table.declare_package_symbol("&foo", "a.pl", 1, "main")
        table.declare_package_symbol("$x", "a.pl", 2, "main")
        table.declare_lexical_symbol("@y", "a.pl", 3)

        record = table.lookup_file("a.pl")
        assert record.line == 0
        assert record.file == "a.pl"
        assert record.package_symbols == {Sigil.CODE: ["&main::foo"], Sigil.SCALAR: ["$main::x"]}
        assert record.lexical_symbols == ["@y"]

        grouped = table.package_symbols("a.pl")
        assert [s.name for s in grouped[Sigil.CODE]] == ["&main::foo"]
        assert [s.name for s in table.lexical_symbols("a.pl")] == ["@y"]

    def test_function_use_edges(self):
        """Test that a function use adds edges on both ends."""
        table = SymbolTable()
        table.declare_package_symbol("&foo", "a.pl", 1, "main")
        table.declare_lexical_symbol("@x", "a.pl", 2)

        table.record_use(ScopeKind.LEXICAL, "@x", "a.pl", "&main::foo", line=3)

        foo = table.lookup_package_symbol("&main::foo")
        x = table.lookup_lexical_symbol("a.pl", "@x")
        assert [u.key for u in foo.uses] == ["@x"]
        assert foo.uses[0].scope is ScopeKind.LEXICAL
        assert x.used_by == [UserRef(ScopeKind.PACKAGE, "&main::foo")]

    def test_file_body_use_edges(self):
        """Test that uses outside a function are attributed to the file."""
        table = SymbolTable()
        table.declare_package_symbol("$y", "lib.pl", 1, "main")

        table.record_use(ScopeKind.PACKAGE, "$main::y", "main.pl", None, name="$y", line=5)

        record = table.lookup_file("main.pl")
        assert record is not None
        assert [u.name for u in record.uses] == ["$y"]
        assert table.lookup_package_symbol("$main::y").used_by == [UserRef(ScopeKind.FILE, "main.pl")]

    def test_forward_reference_attached_on_declaration(self):
        """Test that a use before the declaration gets its used-by edge later."""
        table = SymbolTable()
        table.record_use(ScopeKind.PACKAGE, "&main::bar", "a.pl", None, name="&bar")
        assert len(table.pending_uses()) == 1

        table.declare_package_symbol("&bar", "b.pl", 5, "main")

        assert table.lookup_package_symbol("&main::bar").used_by == [UserRef(ScopeKind.FILE, "a.pl")]
        assert table.pending_uses() == []

    def test_later_lexical_shadows_pending_use(self):
        """Test that a later lexical declaration claims an earlier use in its file."""
        table = SymbolTable()
        table.record_use(ScopeKind.PACKAGE, "@main::z", "a.pl", None, name="@z")
        table.record_use(ScopeKind.PACKAGE, "@main::z", "b.pl", None, name="@z")

        table.declare_lexical_symbol("@z", "a.pl", 9)

        assert table.lookup_lexical_symbol("a.pl", "@z").used_by == [UserRef(ScopeKind.FILE, "a.pl")]
        remaining = table.pending_uses()
        assert [(use.file, user.key) for use, user in remaining] == [("b.pl", "b.pl")]

    def test_later_lexical_takes_over_package_use(self):
        """Test that a later lexical moves an attached use off the package symbol."""
        table = SymbolTable()
        table.declare_package_symbol("@x", "a.pl", 1, "main")
        table.declare_package_symbol("&foo", "a.pl", 2, "main")
        table.record_use(ScopeKind.PACKAGE, "@main::x", "a.pl", "&main::foo", name="@x")
        table.record_use(ScopeKind.PACKAGE, "@main::x", "b.pl", None, name="@x")

        table.declare_lexical_symbol("@x", "a.pl", 4)

        assert table.lookup_lexical_symbol("a.pl", "@x").used_by == [
            UserRef(ScopeKind.PACKAGE, "&main::foo")
        ]
        assert table.lookup_package_symbol("@main::x").used_by == [UserRef(ScopeKind.FILE, "b.pl")]

    def test_use_from_undeclared_function(self):
        """Test that an unknown enclosing function is an internal error."""
        table = SymbolTable()
        with pytest.raises(InternalInconsistencyError):
            table.record_use(ScopeKind.PACKAGE, "$main::x", "a.pl", "&main::ghost")

    def test_files_sorted(self):
        """Test that files are returned alphabetically."""
        table = SymbolTable()
        for name in ["z.pl", "a.pl", "m/b.pl"]:
            table.register_file(name)

        assert [f.name for f in table.files()] == ["a.pl", "m/b.pl", "z.pl"]

    def test_register_file_idempotent(self):
        """Test that registering a file twice returns the same record."""
        table = SymbolTable()
        assert table.register_file("a.pl") is table.register_file("a.pl")

    def test_repr(self):
        """Test string representation."""
        table = SymbolTable()
        table.declare_package_symbol("&foo", "a.pl", 1, "main")
        table.record_use(ScopeKind.PACKAGE, "$main::x", "a.pl", "&main::foo")

        assert "files=1" in repr(table)
        assert "package=1" in repr(table)
        assert "uses=1" in repr(table)
        assert "pending=1" in repr(table)


def _scenario_table():
    table = SymbolTable()
    scan_lines(table, "lib/Foo.pm", [
        "# ^package Foo::Bar\n",
        "# ^variable my @hello\n",
        "# ^function foo\n",
        "# ^uses @hello\n",
        "# ^uses &nowhere\n",
    ])
    scan_lines(table, "main.pl", [
        "# ^uses &Foo::Bar::foo\n",
    ])
    return table


class TestCrossReference:
    """Tests for the resolved cross-reference view."""

    def test_sections_and_groups(self):
        """Test files, groups and lexicals in the view."""
        xref = build_xref(_scenario_table())

        assert [s.path for s in xref.files] == ["lib/Foo.pm", "main.pl"]
        foo_section = xref.files[0]
        assert [g.category for g in foo_section.groups] == ["Functions"]
        assert [e.name for e in foo_section.groups[0].symbols] == ["&Foo::Bar::foo"]
        assert [e.name for e in foo_section.lexicals] == ["@hello"]

    def test_links_resolve_to_anchors(self):
        """Test that uses and used-by entries link to their targets."""
        xref = build_xref(_scenario_table())
        foo = xref.files[0].groups[0].symbols[0]
        hello = xref.files[0].lexicals[0]

        assert foo.uses[0].label == "@hello"
        assert foo.uses[0].anchor == hello.anchor
        assert hello.used_by[0].label == "&Foo::Bar::foo"
        assert hello.used_by[0].anchor == foo.anchor
        assert foo.used_by[0].label == "main.pl"
        assert foo.used_by[0].anchor == xref.files[1].anchor

    def test_unresolved_use(self):
        """Test that an undeclared target is reported, not raised."""
        xref = build_xref(_scenario_table())
        foo = xref.files[0].groups[0].symbols[0]

        missing = foo.uses[1]
        assert not missing.resolved
        assert missing.label == "&Foo::Bar::nowhere"
        assert list(xref.iter_unresolved()) == [("&Foo::Bar::foo", missing)]

    def test_anchors_unique(self):
        """Test that every anchor is distinct."""
        table = _scenario_table()
        scan_lines(table, "other.pl", ["# ^variable my @hello\n"])
        xref = build_xref(table)

        anchors = [s.anchor for s in xref.files] + [e.anchor for e in xref.iter_entries()]
        assert len(anchors) == len(set(anchors))

    def test_dangling_used_by_raises(self):
        """Test that a used-by entry with no record is a hard failure."""
        table = _scenario_table()
        table.lookup_lexical_symbol("lib/Foo.pm", "@hello").used_by.append(
            UserRef(ScopeKind.PACKAGE, "&ghost::fn")
        )

        with pytest.raises(InternalInconsistencyError):
            build_xref(table)

    def test_repr(self):
        """Test string representation."""
        xref = build_xref(_scenario_table())

        assert "files=2" in repr(xref)
        assert "symbols=2" in repr(xref)
        assert "unresolved=1" in repr(xref)

    def test_later_lexical_shadows_resolved_use(self):
        """Test both ends of a use that a later lexical declaration shadows."""
        table = SymbolTable()
        scan_lines(table, "a.pl", [
            "# ^variable our @x\n",
            "# ^function foo\n",
            "# ^uses @x\n",
            "# ^variable my @x\n",
        ])
        xref = build_xref(table)

        section = xref.files[0]
        foo, package_x = [e for g in section.groups for e in g.symbols]
        assert (foo.name, package_x.name) == ("&main::foo", "@main::x")
        lexical_x = section.lexicals[0]
        assert foo.uses[0].scope is ScopeKind.LEXICAL
        assert foo.uses[0].anchor == lexical_x.anchor
        assert [link.anchor for link in lexical_x.used_by] == [foo.anchor]
        assert package_x.used_by == []

    def test_uses_and_used_by_agree(self):
        """Test that every resolved use is mirrored by exactly one used-by link."""
        table = SymbolTable()
        scan_lines(table, "a.pl", [
            "# ^variable our @x\n",
            "# ^function foo\n",
            "# ^uses @x\n",
            "# ^uses bar\n",
            "# ^uses $y\n",
            "foo();\n",
            "# ^uses @x\n",
            "# ^variable my @x\n",
            "# ^variable my $y\n",
            "# ^function baz\n",
            "# ^uses Lib::helper\n",
            "# ^uses @x\n",
            "# ^function bar\n",
        ])
        scan_lines(table, "lib/Lib.pm", [
            "# ^package Lib\n",
            "# ^function helper\n",
            "# ^uses @main::x\n",
            "# ^uses &main::foo\n",
            "# ^uses %missing\n",
        ])
        scan_lines(table, "main.pl", [
            "# ^uses &main::bar\n",
            "# ^uses &Lib::helper\n",
            "# ^uses ghost\n",
            "# ^function foo\n",
            "# ^uses @x\n",
        ])
        xref = build_xref(table)

        uses, used_by = Counter(), Counter()
        for section in xref.files:
            for link in section.uses:
                if link.resolved:
                    uses[(section.anchor, link.anchor)] += 1
            for entry in section.entries():
                for link in entry.uses:
                    if link.resolved:
                        uses[(entry.anchor, link.anchor)] += 1
                for link in entry.used_by:
                    assert link.resolved
                    used_by[(link.anchor, entry.anchor)] += 1

        assert uses
        assert uses == used_by
        assert [link.label for _, link in xref.iter_unresolved()] == ["%Lib::missing", "&main::ghost"]
