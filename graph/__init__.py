"""Symbol table, name handling and the resolved cross-reference view."""
