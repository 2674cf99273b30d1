"""
ProofSession — text → parsed expressions → display trees.

Owns the BindingEnvironment and decides its lifetime: by default every
document starts with an empty environment (all top-level expressions of one
document still share it); with ``shared_bindings`` the environment lives for
the whole session, so names bound in one document resolve in later ones.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from .config import ViewerConfig
from .loader import load_text
from .sexpr import SExpr, parse_all
from .tree import BindingEnvironment, TreeConverter, TreeNode, count_nodes, reset_binding_environment

logger = logging.getLogger(__name__)


@dataclass
class Document:
    source: str
    expressions: list[SExpr] = field(default_factory=list)
    roots: list[TreeNode] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.roots)

    def summary(self) -> str:
        n = len(self.roots)
        return f"{self.source} ({n} S-expression{'' if n == 1 else 's'})"


class ProofSession:
    """Parses and converts documents against one binding environment."""

    def __init__(self, config: ViewerConfig | None = None):
        self.config = config or ViewerConfig()
        self.env = BindingEnvironment()
        self.documents_loaded = 0
        self._lock = threading.Lock()

    def build(self, text: str, source: str = "<text>") -> Document:
        """Parse ``text`` and convert every top-level expression.

        Any ParseError or ConversionError aborts the whole document. Builds are
        serialized since they all write to the same environment.
        """
        with self._lock:
            return self._build(text, source)

    def _build(self, text: str, source: str) -> Document:
        if not self.config.shared_bindings:
            reset_binding_environment(self.env)

        expressions = parse_all(text, max_depth=self.config.max_depth)
        logger.info("Parsed %d S-expression(s) from %s", len(expressions), source)

        converter = TreeConverter(self.env, max_depth=self.config.max_depth)
        roots = [converter.convert(expr) for expr in expressions]

        distinct, shared = count_nodes(roots)
        logger.info("Converted %s: %d nodes, %d shared, %d binding(s)",
                    source, distinct, shared, len(self.env))
        self.documents_loaded += 1
        return Document(source=source, expressions=expressions, roots=roots)

    def load(self, source: str) -> Document:
        """Read or fetch ``source`` and build it."""
        text = load_text(
            source,
            use_proxy=self.config.use_proxy,
            timeout=self.config.timeout,
            encoding=self.config.encoding,
            proxy_template=self.config.proxy_template,
        )
        return self.build(text, source=source.strip())
