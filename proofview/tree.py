"""
S-expression → display tree conversion.

Conventions:
  (f a b)                 node "f" with children a, b
  ()                      leaf "()"
  (f :key v :opts (a b))  keyword/value pairs become named child groups
  (let ((x V) ...) BODY)  binds x to a node wrapping V; later atoms "x"
  (let-proof ...)         resolve to that same node object

Because bindings are shared by identity, the result is a DAG rather than a
strict tree. The BindingEnvironment is passed in by the caller, who decides
how long it lives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .errors import BindingNameError, ConversionDepthError, MalformedBindingError
from .sexpr import DEFAULT_MAX_DEPTH, SExpr

LET_FORMS = ("let", "let-proof")
EMPTY_LIST_NAME = "()"


@dataclass(eq=False)
class TreeNode:
    """A display node. Compared by identity; shared nodes are the same object."""
    name: str | None = None
    children: list[TreeNode] = field(default_factory=list)

    def __repr__(self):
        return f"TreeNode({self.name!r}, {len(self.children)} children)"

    @property
    def is_leaf(self) -> bool:
        return not self.children


class BindingEnvironment:
    """Mutable name → TreeNode table for let/let-proof resolution."""

    def __init__(self):
        self._bindings: dict[str, TreeNode] = {}

    def lookup(self, name: str) -> TreeNode | None:
        return self._bindings.get(name)

    def bind(self, name: str, node: TreeNode) -> None:
        """Install ``node`` under ``name``, shadowing any earlier binding."""
        self._bindings[name] = node

    def reset(self) -> None:
        self._bindings.clear()

    def names(self) -> list[str]:
        return list(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)


def reset_binding_environment(env: BindingEnvironment) -> None:
    env.reset()


def is_keyword(expr: SExpr) -> bool:
    return isinstance(expr, str) and expr.startswith(":")


def label(expr: SExpr) -> str:
    """Plain text for a node name: atoms as-is, lists parenthesized."""
    if isinstance(expr, str):
        return expr
    return "(" + " ".join(label(e) for e in expr) + ")"


# ============================================================
# Conversion
# ============================================================

class TreeConverter:
    """Converts parsed expressions against one binding environment."""

    def __init__(self, env: BindingEnvironment,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        self.env = env
        self.max_depth = max_depth
        self._depth = 0

    def convert(self, expr: SExpr) -> TreeNode:
        if isinstance(expr, str):
            mapped = self.env.lookup(expr)
            if mapped is not None:
                return mapped
            return TreeNode(expr)

        if not isinstance(expr, list):
            return TreeNode()

        if not expr:
            return TreeNode(EMPTY_LIST_NAME)

        if self._depth >= self.max_depth:
            raise ConversionDepthError(
                f"Expression nesting deeper than {self.max_depth} levels")
        self._depth += 1
        try:
            if len(expr) == 3 and expr[0] in LET_FORMS:
                return self._convert_let(expr[0], expr[1], expr[2])
            return self._convert_node(expr)
        finally:
            self._depth -= 1

    def _convert_let(self, form: str, bindings: SExpr, body: SExpr) -> TreeNode:
        if not isinstance(bindings, list):
            raise MalformedBindingError(
                f"Expected list of bindings for {form}, got atom {bindings!r}")
        for binding in bindings:
            if not isinstance(binding, list) or len(binding) != 2:
                raise MalformedBindingError(
                    f"Expected (name value) pair in {form} bindings, "
                    f"got {label(binding)}")
            name, value = binding
            if not isinstance(name, str):
                raise BindingNameError(
                    f"Expected atom for {form} binding name, got {label(name)}")
            self.env.bind(name, TreeNode(name, [self.convert(value)]))
        return self.convert(body)

    def _convert_node(self, expr: list[SExpr]) -> TreeNode:
        first = expr[0]
        name = first if isinstance(first, str) else label(first)

        children: list[TreeNode] = []
        i = 1
        while i < len(expr):
            item = expr[i]
            if (i + 1 < len(expr) and is_keyword(item)
                    and not is_keyword(expr[i + 1])):
                children.append(TreeNode(item, self._expand(expr[i + 1])))
                i += 2
            else:
                children.append(self.convert(item))
                i += 1
        return TreeNode(name, children)

    def _expand(self, value: SExpr) -> list[TreeNode]:
        # keyword values: an atom stays a plain leaf, a list is spliced in
        if isinstance(value, str):
            return [TreeNode(value)]
        return [self.convert(e) for e in value]


def convert(expr: SExpr, env: BindingEnvironment,
            max_depth: int = DEFAULT_MAX_DEPTH) -> TreeNode:
    """Convert one expression, reading and updating ``env``."""
    return TreeConverter(env, max_depth).convert(expr)


def count_nodes(roots: list[TreeNode]) -> tuple[int, int]:
    """Return (distinct nodes, nodes reached from more than one parent edge)."""
    seen: set[int] = set()
    shared: set[int] = set()
    stack = list(roots)
    while stack:
        node = stack.pop()
        if id(node) in seen:
            shared.add(id(node))
            continue
        seen.add(id(node))
        stack.extend(node.children)
    return len(seen), len(shared)
