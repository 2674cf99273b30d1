"""
Conversion tests: node naming, keyword groups, let/let-proof sharing,
binding environment lifetime and structural errors.
"""

from __future__ import annotations

import pytest

from proofview.errors import (
    BindingNameError,
    ConversionDepthError,
    ConversionError,
    MalformedBindingError,
)
from proofview.sexpr import parse_one
from proofview.tree import (
    BindingEnvironment,
    TreeNode,
    convert,
    count_nodes,
    label,
    reset_binding_environment,
)


def _convert(text: str, env: BindingEnvironment | None = None) -> TreeNode:
    return convert(parse_one(text), env if env is not None else BindingEnvironment())


def _names(nodes: list[TreeNode]) -> list[str | None]:
    return [n.name for n in nodes]


def test_atom_becomes_leaf():
    node = _convert("x")
    assert node.name == "x"
    assert node.children == []


def test_list_head_names_node():
    node = _convert("(f a (g b))")
    assert node.name == "f"
    assert _names(node.children) == ["a", "g"]
    assert _names(node.children[1].children) == ["b"]


def test_empty_list():
    node = _convert("()")
    assert node.name == "()"
    assert node.is_leaf
    assert _names(_convert("(f ())").children) == ["()"]


def test_list_head_is_rendered_as_label():
    node = _convert("((g a (b c)) d)")
    assert node.name == "(g a (b c))"
    assert _names(node.children) == ["d"]
    assert label(["a", ["b", "c"], []]) == "(a (b c) ())"


def test_keyword_pairs():
    node = _convert("(f :key v :other (a b))")
    assert node.name == "f"
    key, other = node.children
    assert key.name == ":key"
    assert _names(key.children) == ["v"]
    assert other.name == ":other"
    assert _names(other.children) == ["a", "b"]


def test_keyword_followed_by_keyword_is_plain():
    node = _convert("(f :a :b c x :last)")
    assert _names(node.children) == [":a", ":b", "x", ":last"]
    assert node.children[0].is_leaf
    assert _names(node.children[1].children) == ["c"]
    assert node.children[3].is_leaf


def test_let_shares_bound_node():
    env = BindingEnvironment()
    root = _convert("(let ((x 1)) (f x x))", env)
    assert root.name == "f"
    first, second = root.children
    assert first is second
    assert first.name == "x"
    assert _names(first.children) == ["1"]
    assert env.lookup("x") is first


def test_let_proof_and_sequential_bindings():
    env = BindingEnvironment()
    root = _convert("(let-proof ((a (p q)) (b (r a))) (s b))", env)
    b = root.children[0]
    assert b is env.lookup("b")
    r = b.children[0]
    assert r.name == "r"
    assert r.children[0] is env.lookup("a")
    assert _names(env.lookup("a").children) == ["p"]


def test_rebinding_shadows_for_later_lookups_only():
    env = BindingEnvironment()
    root = _convert("(let ((x 1) (x (g x))) x)", env)
    assert root is env.lookup("x")
    g = root.children[0]
    inner = g.children[0]
    assert inner.name == "x"
    assert inner is not root
    assert _names(inner.children) == ["1"]


def test_earlier_trees_keep_old_binding():
    env = BindingEnvironment()
    first = _convert("(let ((x 1)) (f x))", env)
    old = first.children[0]
    _convert("(let ((x 2)) x)", env)
    assert first.children[0] is old
    assert _names(old.children) == ["1"]
    assert _names(env.lookup("x").children) == ["2"]


def test_keyword_atom_value_is_not_resolved():
    env = BindingEnvironment()
    root = _convert("(let ((v 1)) (f :key v :list (v)))", env)
    key, lst = root.children
    assert key.children[0] is not env.lookup("v")
    assert key.children[0].is_leaf
    assert lst.children[0] is env.lookup("v")


def test_environment_persists_until_reset():
    env = BindingEnvironment()
    _convert("(let ((y 2)) y)", env)
    later = _convert("(h y)", env)
    assert later.children[0] is env.lookup("y")

    reset_binding_environment(env)
    assert len(env) == 0
    fresh = _convert("(h y)", env)
    assert fresh.children[0].is_leaf


def test_two_element_let_is_ordinary_node():
    root = _convert("(let ((x 1)))")
    assert root.name == "let"
    assert _names(root.children) == ["(x 1)"]


@pytest.mark.parametrize("text", [
    "(let x body)",
    "(let ((x)) body)",
    "(let ((x 1 2)) body)",
    "(let (x) body)",
    "(let-proof (()) body)",
])
def test_malformed_bindings(text):
    with pytest.raises(MalformedBindingError):
        _convert(text)


def test_binding_name_must_be_atom():
    with pytest.raises(BindingNameError):
        _convert("(let (((a) 1)) body)")
    assert issubclass(BindingNameError, ConversionError)
    assert issubclass(ConversionError, ValueError)


def test_depth_limit():
    expr = parse_one("(a (b (c (d))))")
    with pytest.raises(ConversionDepthError):
        convert(expr, BindingEnvironment(), max_depth=2)
    assert convert(expr, BindingEnvironment(), max_depth=4).name == "a"


def test_unknown_shape_falls_back_to_unnamed_node():
    node = convert(42, BindingEnvironment())  # type: ignore[arg-type]
    assert node.name is None
    assert node.children == []


def test_count_nodes_sees_sharing():
    root = _convert("(let ((x 1)) (f x x))")
    assert count_nodes([root]) == (3, 1)
