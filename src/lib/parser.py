"""
Parser for generic directive syntax embedded in markdown

Splits a markdown document into an ordered list of segments: runs of plain
text, and directive nodes for every registered directive found.

Recognised forms:
    ::name[label]{attrs}         leaf, alone on its line
    :::name[label]{attrs}        container, closed by a line holding
    ...                          the same run of colons
    :::
    :name[label]{attrs}          text, inline within a line

Key features:
- Only directive names known to the DirectiveRegistry are parsed
- Fenced code blocks (``` and ~~~) are never scanned
- A leading backslash (\\::name{...}) emits the directive literally
- Nested containers use a longer colon run than their parent
- Line number tracking for error reporting

Example:
    >>> segments = Parser('Hi\\n::bangumi{user="sai"}\\n').parse()
    >>> segments[1].directive, segments[1].properties
    ('bangumi', {'user': 'sai'})
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..models.directives import DirectiveKind
from ..models.node import Node, Text
from ..models.parser import DirectiveMatch, ParsedAttributes
from .log import LOG

NAME = r'[A-Za-z][\w-]*'
LABEL = r'\[(?P<label>[^\]\n]*)\]'
ATTRS = r'\{(?P<attrs>(?:"[^"\n]*"|\'[^\'\n]*\'|[^}"\'\n])*)\}'

BLOCK_OPENER = re.compile(
    rf'^[ \t]{{0,3}}(?P<fence>:{{2,}})(?P<name>{NAME})(?:{LABEL})?(?:{ATTRS})?[ \t]*$'
)
CONTAINER_CLOSER = re.compile(r'^[ \t]{0,3}(?P<fence>:{3,})[ \t]*$')
TEXT_DIRECTIVE = re.compile(
    rf'(?<![:\w\\]):(?P<name>{NAME})(?=[\[{{])(?:{LABEL})?(?:{ATTRS})?'
)
ESCAPED_DIRECTIVE = re.compile(rf'\\(?=:+{NAME}[\[{{])')
FENCE_OPENER = re.compile(r'^[ \t]{0,3}(?P<fence>`{3,}|~{3,})')

ATTRIBUTE_TOKEN = re.compile(
    r"""
    \#(?P<id>[^\s\#.}"'=]+)
    | \.(?P<cls>[^\s\#.}"'=]+)
    | (?P<key>[A-Za-z_:][\w:.-]*)
      (?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'=<>`}]+)))?
    """,
    re.VERBOSE,
)


@dataclass
class TextSegment:
    """
    A run of source text containing no parsed directive

    Attributes:
        text: Source text, newlines preserved (escape backslashes removed)
        line_number: Line where the run starts
    """
    text: str
    line_number: int


@dataclass
class ASTNode:
    """
    A directive occurrence

    Attributes:
        directive: Directive name as written (may be an alias)
        kind: Syntactic form used at this occurrence
        properties: Parsed attribute mapping (the handler's `properties`)
        children: Content nodes (the handler's `children`); the label of a
                  leaf/text directive or the body of a container
        line_number: Source line of the opener
        source: Exact source text the node replaces
    """
    directive: str
    kind: DirectiveKind
    properties: Dict[str, str]
    children: List[Node] = field(default_factory=list)
    line_number: int = 1
    source: str = ""


Segment = Union[TextSegment, ASTNode]


def attributes_parse(raw: Optional[str]) -> ParsedAttributes:
    """
    Parse the inside of a `{...}` attribute list

    Raises:
        ValueError: If the list holds something that is not an attribute

    Example:
        >>> attributes_parse('#me .a .b user="sai" hidden').properties
        {'id': 'me', 'class': 'a b', 'user': 'sai', 'hidden': ''}
    """
    result = ParsedAttributes()
    if not raw:
        return result

    pos = 0
    while pos < len(raw):
        if raw[pos].isspace():
            pos += 1
            continue
        match = ATTRIBUTE_TOKEN.match(raw, pos)
        if not match:
            raise ValueError(f"Unexpected attribute text at column {pos}: {raw[pos:]!r}")
        if match.group('id') is not None:
            result.properties['id'] = match.group('id')
        elif match.group('cls') is not None:
            result.classes.append(match.group('cls'))
        else:
            value = next(
                (v for v in match.group('dq', 'sq', 'bare') if v is not None),
                '',
            )
            result.properties[match.group('key')] = value
        pos = match.end()

    if result.classes:
        result.properties['class'] = ' '.join(result.classes)
    return result


class Parser:
    """
    Parser for directive syntax in markdown source

    Handles:
    - Leaf, container and text directives
    - Attribute lists with quoting, #id and .class shorthand
    - Fenced code protection and backslash escaping
    - Error reporting with line numbers
    """

    def __init__(self, source: str, debug: bool = False, registry=None):
        """
        Initialize parser with source text

        Args:
            source: Markdown source
            debug: Log every recognised directive
            registry: Optional DirectiveRegistry deciding which names parse
        """
        self.source = source
        self.debug = debug
        self.lines = source.splitlines(keepends=True)
        self.line_number = 1

        if registry is None:
            from .directives import DirectiveRegistry
            registry = DirectiveRegistry()
        self.registry = registry

    def parse(self) -> List[Segment]:
        """
        Parse source into text segments and directive nodes

        Returns:
            Segments in source order; concatenating the `text` of text
            segments and the `source` of nodes restores the input (minus
            escape backslashes).

        Raises:
            SyntaxError: If a container directive is never closed
        """
        segments: List[Segment] = []
        index = 0
        fence: Optional[str] = None

        while index < len(self.lines):
            line = self.lines[index]
            self.line_number = index + 1

            if fence is not None:
                self.text_append(segments, line, escapes=False)
                if line.lstrip(' \t').startswith(fence):
                    fence = None
                index += 1
                continue

            fence_match = FENCE_OPENER.match(line)
            if fence_match:
                fence = fence_match.group('fence')
                self.text_append(segments, line, escapes=False)
                index += 1
                continue

            match = self.directive_match(line)
            if match is not None and match.kind is DirectiveKind.LEAF:
                segments.append(self.node_make(match, line.rstrip('\r\n'), []))
                self.text_append(segments, line[len(line.rstrip('\r\n')):])
                index += 1
                continue

            if match is not None and match.kind is DirectiveKind.CONTAINER:
                close_index = self.container_findClosing(index, match.fence)
                body = ''.join(self.lines[index + 1:close_index])
                closing = self.lines[close_index]
                source = line + body + closing.rstrip('\r\n')
                children: List[Node] = [Text(body)] if body.strip() else []
                segments.append(self.node_make(match, source, children))
                self.text_append(segments, closing[len(closing.rstrip('\r\n')):])
                index = close_index + 1
                continue

            self.inline_parse(segments, line)
            index += 1

        return segments

    def directive_match(self, line: str) -> Optional[DirectiveMatch]:
        """
        Recognise a leaf or container opener occupying a whole line

        Returns None for unregistered names, for forms the directive does
        not accept, and for malformed attribute lists.
        """
        match = BLOCK_OPENER.match(line.rstrip('\r\n'))
        if not match:
            return None

        fence = match.group('fence')
        kind = DirectiveKind.LEAF if len(fence) == 2 else DirectiveKind.CONTAINER
        name = match.group('name')
        if not self.kind_accepted(name, kind):
            return None
        if not self.attributes_check(name, match.group('attrs')):
            return None

        return DirectiveMatch(
            name=name,
            kind=kind,
            attributes=match.group('attrs'),
            label=match.group('label'),
            fence=fence,
            start=match.start(),
            end=match.end(),
        )

    def kind_accepted(self, name: str, kind: DirectiveKind) -> bool:
        spec = self.registry.spec_get(name)
        return spec is not None and kind in spec.kinds

    def container_findClosing(self, open_index: int, fence: str) -> int:
        """
        Find the line closing a container

        Openers with the same colon run nest; a longer run belongs to an
        enclosing container and is not a match.

        Raises:
            SyntaxError: If EOF is reached first
        """
        depth = 1
        for index in range(open_index + 1, len(self.lines)):
            stripped = self.lines[index].rstrip('\r\n')
            closer = CONTAINER_CLOSER.match(stripped)
            if closer and closer.group('fence') == fence:
                depth -= 1
                if depth == 0:
                    return index
                continue
            opener = BLOCK_OPENER.match(stripped)
            if opener and opener.group('fence') == fence:
                depth += 1

        self.line_number = open_index + 1
        self.error(f"Unclosed container directive (expected a closing '{fence}' line)")
        return -1  # unreachable; error() raises

    def inline_parse(self, segments: List[Segment], line: str) -> None:
        """Split a line into text and text-directive nodes"""
        pos = 0
        for match in TEXT_DIRECTIVE.finditer(line):
            name = match.group('name')
            if match.group('label') is None and match.group('attrs') is None:
                continue
            if not self.kind_accepted(name, DirectiveKind.TEXT):
                continue
            if not self.attributes_check(name, match.group('attrs')):
                continue
            directive = DirectiveMatch(
                name=name,
                kind=DirectiveKind.TEXT,
                attributes=match.group('attrs'),
                label=match.group('label'),
                start=match.start(),
                end=match.end(),
            )
            label = directive.label
            self.text_append(segments, line[pos:match.start()])
            segments.append(self.node_make(directive, match.group(0), [Text(label)] if label else []))
            pos = match.end()
        self.text_append(segments, line[pos:])

    def attributes_check(self, name: str, raw: Optional[str]) -> bool:
        """Malformed attribute lists leave the directive as plain text"""
        try:
            attributes_parse(raw)
        except ValueError as e:
            LOG(f"Line {self.line_number}: ignoring '{name}' directive: {e}", level=1)
            return False
        return True

    def node_make(self, match: DirectiveMatch, source: str, children: List[Node]) -> ASTNode:
        """
        Build an ASTNode from a recognised opener

        Leaf directives carry their label as children.
        """
        attributes = attributes_parse(match.attributes)

        if match.kind is DirectiveKind.LEAF and match.label:
            children = [Text(match.label)]

        if self.debug:
            LOG(f"Line {self.line_number}: {match.kind.value} directive '{match.name}'", level=3)

        return ASTNode(
            directive=match.name,
            kind=match.kind,
            properties=attributes.properties,
            children=children,
            line_number=self.line_number,
            source=source,
        )

    def text_append(self, segments: List[Segment], text: str, escapes: bool = True) -> None:
        """Append text, merging with a preceding text segment"""
        if not text:
            return
        if escapes:
            text = self.escapes_strip(text)
        if segments and isinstance(segments[-1], TextSegment):
            segments[-1].text += text
        else:
            segments.append(TextSegment(text=text, line_number=self.line_number))

    def escapes_strip(self, text: str) -> str:
        r"""Drop the backslash in front of an escaped directive (\::name → ::name)"""
        return ESCAPED_DIRECTIVE.sub('', text)

    def error(self, message: str) -> None:
        """
        Report parser error with source context

        Raises:
            SyntaxError: Always (this is an error reporting function)
        """
        index = self.line_number - 1
        context = self.lines[index].rstrip('\r\n') if 0 <= index < len(self.lines) else ''
        raise SyntaxError(
            f"\n{message}\n"
            f"Line {self.line_number}\n"
            f"Context: {context}"
        )
