"""
proofview — lazy tree viewer for S-expression proof terms.

Parses S-expression documents, resolves let/let-proof bindings into shared
nodes, and shows the resulting trees in a Textual TUI that materializes
children only when a node is expanded.
"""

__version__ = "0.1.0"
