"""
Textual TUI viewer for S-expression proof terms.

Loads a document from a file or URL, converts it, and shows one tree per
top-level expression. Children are only added to the widget the first time
their parent is expanded, so arbitrarily large proofs open instantly.

Usage:
    uv run python -m proofview.viewer proof.sexpr
    uv run python -m proofview.viewer https://example.com/proof.sexpr --proxy
    uv run python -m proofview.viewer proof.sexpr --dump --depth 4
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from typing import TextIO

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Button, Checkbox, Footer, Input, Static, Tree
from textual.widgets.tree import TreeNode as WidgetNode
from textual.worker import Worker, get_current_worker

from .config import (
    DEFAULT_DUMP_DEPTH, DEFAULT_ENCODING, DEFAULT_PROXY_TEMPLATE, DEFAULT_TIMEOUT, ViewerConfig,
)
from .errors import LoadError, ProofViewError
from .logging_config import setup_logging
from .materializer import LazyTree, Occurrence
from .session import Document, ProofSession
from .sexpr import DEFAULT_MAX_DEPTH
from .tree import TreeNode

logger = logging.getLogger(__name__)

UNNAMED = "(unnamed)"


def node_label(node: TreeNode) -> Text:
    """Widget label: the node name plus its child count."""
    text = Text(node.name) if node.name else Text(UNNAMED, style="dim italic")
    if node.children:
        text.append(f"  ({len(node.children)})", style="dim")
    return text


def root_label(node: TreeNode, index: int, total: int) -> Text:
    if total == 1:
        text = Text(node.name or "Root", style="bold")
    else:
        text = Text(f"S-expression {index + 1}", style="bold")
        if node.name:
            text.append(f": {node.name}")
    if node.children:
        text.append(f"  ({len(node.children)})", style="dim")
    return text


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

VIEWER_CSS = """
#source-bar {
    height: auto;
    padding: 0 1;
}

#source-input { width: 1fr; }
#proxy-box    { width: auto; }
#load-button  { width: auto; }

#status {
    height: auto;
    padding: 0 1;
}

#status.error {
    color: $error;
}

#proof-tree {
    border: solid $accent;
    height: 1fr;
}

#error-details {
    border: solid $error;
    height: auto;
    max-height: 40%;
    overflow-y: auto;
    padding: 0 1;
}
"""


# ---------------------------------------------------------------------------
# Main viewer app
# ---------------------------------------------------------------------------

class ProofViewer(App):
    """Lazy tree browser for S-expression documents."""

    CSS = VIEWER_CSS
    TITLE = "proofview"

    BINDINGS = [
        Binding("ctrl+o", "focus_source", "Open"),
        Binding("ctrl+d", "toggle_details", "Error details"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, session: ProofSession | None = None,
                 initial_source: str | None = None):
        super().__init__()
        self.session = session or ProofSession()
        self.initial_source = initial_source
        self.document: Document | None = None
        self.lazy: LazyTree | None = None
        self.status_text = ""
        self._widget_nodes: dict[Occurrence, WidgetNode] = {}

    def compose(self) -> ComposeResult:
        with Horizontal(id="source-bar"):
            yield Input(placeholder="File path or https:// URL", id="source-input")
            yield Checkbox("Fetch via proxy", self.session.config.use_proxy,
                           id="proxy-box")
            yield Button("Load", id="load-button", variant="primary")
        yield Static("", id="status")
        tree: Tree[Occurrence] = Tree("Documents", id="proof-tree")
        tree.show_root = False
        yield tree
        yield Static("", id="error-details")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#error-details", Static).display = False
        if self.initial_source:
            self.query_one("#source-input", Input).value = self.initial_source
            self.load_source(self.initial_source)
        else:
            self._set_status("Enter a file path or URL to load.")

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._start_load(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "load-button":
            self._start_load(self.query_one("#source-input", Input).value)

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        self.session.config.use_proxy = event.value

    def _start_load(self, source: str) -> None:
        source = source.strip()
        if not source:
            self._set_status("Please enter a file path or URL.", error=True)
            return
        self.load_source(source)

    @work(thread=True, exclusive=True)
    def load_source(self, source: str) -> None:
        """Acquire, parse and convert in a background thread."""
        worker = get_current_worker()
        self.call_from_thread(self._set_status, f"Loading {source}...")
        try:
            document = self.session.load(source)
        except (ProofViewError, RecursionError) as e:
            logger.error("Failed to load %s: %s", source, e)
            self.call_from_thread(self._finish_load, worker, source, e)
            return
        self.call_from_thread(self._finish_load, worker, source, document)

    def _finish_load(self, worker: Worker, source: str,
                     result: Document | BaseException) -> None:
        # Runs on the app thread, where a newer load cancels this worker
        if worker.is_cancelled:
            logger.info("Discarding superseded load of %s", source)
            return
        if isinstance(result, BaseException):
            self._report_error(source, result)
        else:
            self.show_document(result)

    # -------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------

    def show_document(self, document: Document) -> None:
        """Replace the tree with ``document``'s roots, all collapsed."""
        self.document = document
        self.lazy = LazyTree(document.roots, on_materialize=self._add_children)
        self._widget_nodes.clear()
        self._hide_details()

        tree = self.query_one("#proof-tree", Tree)
        tree.clear()
        if not document.roots:
            tree.root.add_leaf(Text("No S-expressions found", style="dim italic"))
            self._set_status(f"Loaded {document.source}: no S-expressions found.")
            return

        roots = self.lazy.roots()
        for occ in roots:
            node = self.lazy.node(occ)
            label = root_label(node, occ.path[0], len(roots))
            self._add_widget_node(tree.root, occ, label)
        tree.root.expand()
        self._set_status(f"Loaded {document.summary()}")

    def _add_widget_node(self, parent: WidgetNode, occ: Occurrence,
                         label: Text) -> None:
        if self.lazy.has_children(occ):
            self._widget_nodes[occ] = parent.add(label, data=occ, allow_expand=True)
        else:
            parent.add_leaf(label, data=occ)

    def _add_children(self, occ: Occurrence, children: list[Occurrence]) -> None:
        parent = self._widget_nodes[occ]
        for child in children:
            self._add_widget_node(parent, child, node_label(self.lazy.node(child)))

    def on_tree_node_expanded(self, event: Tree.NodeExpanded[Occurrence]) -> None:
        occ = event.node.data
        if occ is None or self.lazy is None:
            return
        self.lazy.expand(occ)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed[Occurrence]) -> None:
        occ = event.node.data
        if occ is None or self.lazy is None:
            return
        self.lazy.collapse(occ)

    # -------------------------------------------------------------------
    # Status / errors
    # -------------------------------------------------------------------

    def _set_status(self, message: str, error: bool = False) -> None:
        self.status_text = message
        status = self.query_one("#status", Static)
        status.update(Text(message))
        status.set_class(error, "error")

    def _report_error(self, source: str, err: BaseException) -> None:
        message = f"Failed to load {source}: {err}"
        hint = getattr(err, "hint", None)
        if hint:
            message += f"\nTip: {hint}"
        self._set_status(message, error=True)

        details = [f"Error: {type(err).__name__}", f"Message: {err}"]
        if isinstance(err, LoadError) and err.source:
            details.append(f"Source: {err.source}")
        details.append("")
        details.append("".join(traceback.format_exception(
            type(err), err, err.__traceback__)))
        panel = self.query_one("#error-details", Static)
        panel.update(Text("\n".join(details)))
        panel.display = True

    def _hide_details(self) -> None:
        panel = self.query_one("#error-details", Static)
        panel.update("")
        panel.display = False

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------

    def action_focus_source(self) -> None:
        self.query_one("#source-input", Input).focus()

    def action_toggle_details(self) -> None:
        panel = self.query_one("#error-details", Static)
        panel.display = not panel.display


# ---------------------------------------------------------------------------
# Text dump
# ---------------------------------------------------------------------------

def dump_document(document: Document, depth: int, out: TextIO | None = None) -> None:
    """Print each tree as indented text, expanding at most ``depth`` levels."""
    if out is None:
        out = sys.stdout
    lazy = LazyTree(document.roots)
    for level, occ in lazy.walk(depth):
        node = lazy.node(occ)
        line = "  " * level + (node.name if node.name is not None else UNNAMED)
        if node.children and level >= depth:
            line += f" ... ({len(node.children)})"
        print(line, file=out)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse S-expression proof terms as a lazy tree",
        prog="proofview",
    )
    parser.add_argument("source", nargs="?", help="File path or http(s) URL")
    parser.add_argument("--proxy", action="store_true",
                        help="Fetch URLs through the proxy service")
    parser.add_argument("--proxy-template", default=DEFAULT_PROXY_TEMPLATE,
                        help="Proxy URL with a {url} placeholder")
    parser.add_argument("--shared-bindings", action="store_true",
                        help="Keep let bindings alive across loaded documents")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help="Maximum expression nesting depth")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="Network timeout in seconds")
    parser.add_argument("--encoding", default=DEFAULT_ENCODING,
                        help="Text encoding for local files")
    parser.add_argument("--dump", action="store_true",
                        help="Print the trees as text instead of opening the TUI")
    parser.add_argument("--depth", type=int, default=DEFAULT_DUMP_DEPTH,
                        help="Levels to expand with --dump")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More log output (-vv for debug)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.max_depth < 1:
        parser.error("--max-depth must be at least 1")

    config = ViewerConfig.from_args(args)
    level = max(logging.DEBUG, logging.WARNING - 10 * args.verbose)
    sys.setrecursionlimit(max(sys.getrecursionlimit(), config.recursion_limit()))
    session = ProofSession(config)

    if args.dump:
        if not args.source:
            parser.error("--dump needs a SOURCE")
        setup_logging(level, args.log_file)
        try:
            document = session.load(args.source)
        except LoadError as e:
            print(f"Error: {e}", file=sys.stderr)
            if e.hint:
                print(f"Tip: {e.hint}", file=sys.stderr)
            sys.exit(1)
        except ProofViewError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        dump_document(document, config.dump_depth)
        return

    setup_logging(level, args.log_file, console=False)
    app = ProofViewer(session, initial_source=args.source)
    app.run()


if __name__ == "__main__":
    main()
