"""
Directive specification and metadata models

Defines the shape and handler of each registered directive for
validation, documentation and registry management.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List


class DirectiveKind(Enum):
    """
    Syntactic forms of a generic directive

    Used by the parser to decide how much source a directive consumes.
    """
    TEXT = "text"              # :name[label]{attrs}
    LEAF = "leaf"              # ::name{attrs}
    CONTAINER = "container"    # :::name{attrs} ... :::


@dataclass
class DirectiveSpec:
    """
    Specification for a directive component

    Attributes:
        name: Directive name (without leading colons)
        description: Human-readable description
        handler: Render function (properties, children, context) -> Element
        kinds: Syntactic forms the parser recognises for this name. A
               component may still reject a form it was invoked with
               (e.g., a leaf-only card receiving children).
        examples: Example usage strings
        aliases: Alternative names for the directive
    """
    name: str
    description: str
    handler: Callable
    kinds: List[DirectiveKind] = field(
        default_factory=lambda: [DirectiveKind.LEAF, DirectiveKind.CONTAINER]
    )
    examples: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
