"""
Per-pass render context handed to directive handlers
"""

from dataclasses import dataclass, field
from typing import Optional

from ..config import appsettings, AppSettings
from .identifiers import IdAllocator


@dataclass
class RenderContext:
    """
    Shared state for one render pass over a document

    Attributes:
        settings: Effective configuration for this pass
        allocator: Issues card instance ids; one per pass keeps them unique
        layout: Card layout variant ("grouped" or "stacked")
        card_count: Cards successfully rendered so far
        error_count: Hidden error nodes emitted so far
    """
    settings: AppSettings = field(default_factory=lambda: appsettings)
    allocator: Optional[IdAllocator] = None
    layout: Optional[str] = None
    card_count: int = 0
    error_count: int = 0

    def __post_init__(self) -> None:
        if self.allocator is None:
            self.allocator = IdAllocator(
                prefix=self.settings.id_prefix,
                scheme=self.settings.id_scheme,
                width=self.settings.id_width,
            )
        if self.layout is None:
            self.layout = self.settings.layout


_process_context: Optional[RenderContext] = None


def context_default() -> RenderContext:
    """
    Process-wide context for handlers invoked without one

    Hosts that call a handler as handler(properties, children) still get
    ids that are unique across the whole build process.
    """
    global _process_context
    if _process_context is None:
        _process_context = RenderContext()
    return _process_context
