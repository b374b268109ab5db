"""
bangumicard - Bangumi profile cards for markdown

Renders ::bangumi{user="..."} directives into placeholder cards that fetch
and fill in the profile in the browser.
"""

__version__ = "1.0.0"

from .parser import Parser, ASTNode, TextSegment
from .compiler import Compiler
from .directives import DirectiveRegistry
from .bangumi import bangumi_card
from .context import RenderContext
from .markdown_ext import BangumiExtension
from .log import LOG, state_connectToLogger

__all__ = [
    "Parser",
    "ASTNode",
    "TextSegment",
    "Compiler",
    "DirectiveRegistry",
    "bangumi_card",
    "RenderContext",
    "BangumiExtension",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
