"""
bangumicard - Bangumi profile cards for markdown

Renders ::bangumi{user="..."} directives into placeholder cards that fetch
and fill in the profile in the browser.
"""

__version__ = "1.0.0"

from .lib import (
    Parser,
    Compiler,
    DirectiveRegistry,
    bangumi_card,
    RenderContext,
    BangumiExtension,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "Parser",
    "Compiler",
    "DirectiveRegistry",
    "bangumi_card",
    "RenderContext",
    "BangumiExtension",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
