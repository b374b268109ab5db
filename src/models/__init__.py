"""
Models package for bangumicard

Contains data structures and type definitions for the render pipeline.
"""

from .state import ProgramState, pipeline
from .directives import DirectiveSpec, DirectiveKind
from .parser import DirectiveMatch, ParsedAttributes
from .node import Element, Text, Node, h
from .card import CardInstance, CardView, LoadState

__all__ = [
    "ProgramState",
    "pipeline",
    "DirectiveSpec",
    "DirectiveKind",
    "DirectiveMatch",
    "ParsedAttributes",
    "Element",
    "Text",
    "Node",
    "h",
    "CardInstance",
    "CardView",
    "LoadState",
]
