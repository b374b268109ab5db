"""
Parser-specific data models

Type-safe structures for parser operations and return values.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .directives import DirectiveKind


@dataclass
class DirectiveMatch:
    """
    Result of recognising a directive opener in a source line

    Returned by Parser.directive_match() when a line (or inline span)
    opens a registered directive.

    Attributes:
        name: The directive name (e.g., "bangumi")
        kind: Which syntactic form matched
        attributes: Raw text between the braces, None when absent
        label: Raw text between the brackets (text directives only)
        fence: Colon run that opened a container (e.g., ":::")
        start: Character offset of the match within its line
        end: Character offset just past the match

    Example:
        For the line '::bangumi{user="sai"}':
        DirectiveMatch(name="bangumi", kind=DirectiveKind.LEAF,
                       attributes='user="sai"', ...)
    """
    name: str
    kind: DirectiveKind
    attributes: Optional[str] = None
    label: Optional[str] = None
    fence: str = ""
    start: int = 0
    end: int = 0


@dataclass
class ParsedAttributes:
    """
    Result of parsing a `{...}` attribute list

    `#id` lands in properties['id'] and `.class` tokens are joined into
    properties['class'], so handlers only ever see one flat mapping.

    Example:
        Input: '#me .wide user="sai" hidden'
        Result: ParsedAttributes(properties={
            "id": "me", "class": "wide", "user": "sai", "hidden": ""
        })
    """
    properties: Dict[str, str] = field(default_factory=dict)
    classes: List[str] = field(default_factory=list)
