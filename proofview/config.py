"""
Viewer configuration.

Defaults live here as module constants; ViewerConfig.from_args() overlays the
command-line options parsed in proofview.viewer.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass

from .sexpr import DEFAULT_MAX_DEPTH

DEFAULT_PROXY_TEMPLATE = "https://api.allorigins.win/raw?url={url}"
DEFAULT_TIMEOUT = 30.0
DEFAULT_ENCODING = "utf-8"
DEFAULT_DUMP_DEPTH = 6
USER_AGENT = "proofview/0.1"


@dataclass
class ViewerConfig:
    use_proxy: bool = False
    proxy_template: str = DEFAULT_PROXY_TEMPLATE
    timeout: float = DEFAULT_TIMEOUT
    encoding: str = DEFAULT_ENCODING
    shared_bindings: bool = False   # keep let bindings alive across documents
    max_depth: int = DEFAULT_MAX_DEPTH
    dump_depth: int = DEFAULT_DUMP_DEPTH

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> ViewerConfig:
        return cls(
            use_proxy=args.proxy,
            proxy_template=args.proxy_template,
            timeout=args.timeout,
            encoding=args.encoding,
            shared_bindings=args.shared_bindings,
            max_depth=args.max_depth,
            dump_depth=args.depth,
        )

    def recursion_limit(self) -> int:
        """Interpreter recursion limit needed to parse and convert max_depth levels."""
        return self.max_depth * 4 + 200
