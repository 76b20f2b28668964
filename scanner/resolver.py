"""Name resolution against the symbol table."""

from graph.errors import InternalInconsistencyError
from graph.model import Resolution, ScopeKind, SymbolTable, UserRef
from graph.names import DEFAULT_PACKAGE, Sigil, qualify, sigil_of


class Resolver:
    """
    Resolves names seen in directives to symbol table records.

    Resolution order for a sigiled name:
    1. Lexical declaration of the same spelling in the same file.
    2. Package symbol, after qualifying against the current namespace.

    A bare name is a file path and is looked up among the file records.

    Missing names are not errors: the result simply has no symbol. During
    the scan that covers forward references; once the scan is complete it
    means the name was never declared.
    """

    def __init__(self, table: SymbolTable):
        self.table = table

    def resolve(self, name: str, file: str, namespace: str = DEFAULT_PACKAGE) -> Resolution:
        """
        Resolve a name in the context of a file and package.

        Args:
            name: Sigil-normalized name, e.g. ``@hello`` or ``&Foo::bar``.
            file: File the name appears in.
            namespace: Package in effect at that point.

        Returns:
            Resolution with the scope, the key used for lookup, and the
            symbol if one is declared.
        """
        if sigil_of(name) is Sigil.NONE:
            return Resolution(ScopeKind.FILE, name, self.table.lookup_file(name))

        lexical = self.table.lookup_lexical_symbol(file, name)
        if lexical is not None:
            return Resolution(ScopeKind.LEXICAL, name, lexical)

        qualified = qualify(name, namespace)
        return Resolution(
            ScopeKind.PACKAGE, qualified, self.table.lookup_package_symbol(qualified)
        )

    def resolve_user(self, user: UserRef) -> Resolution:
        """
        Resolve a ``used_by`` entry.

        These are either functions or file bodies, both of which must exist
        once a use has been recorded against them.

        Raises:
            InternalInconsistencyError: No record exists for ``user``.
        """
        if user.scope is ScopeKind.FILE:
            symbol = self.table.lookup_file(user.key)
        elif user.scope is ScopeKind.PACKAGE:
            symbol = self.table.lookup_package_symbol(user.key)
        else:
            raise InternalInconsistencyError(
                f"used-by entry {user.key!r} has unexpected scope {user.scope.value}"
            )
        if symbol is None:
            raise InternalInconsistencyError(
                f"used-by entry {user.key!r} has no matching record"
            )
        return Resolution(user.scope, user.key, symbol)
