"""
Virtual markup node model

A minimal hast-like tree: directive handlers build Element/Text nodes and
hand them to the host document, which serialises them with html_render().

Example:
    >>> card = h('a#BC000001-card.card-bangumi', {'href': '/u'}, ['hi'])
    >>> card.html_render()
    '<a id="BC000001-card" class="card-bangumi" href="/u">hi</a>'
"""

import html
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

# Elements whose content is emitted without entity escaping
RAW_TEXT_TAGS = {'script', 'style'}

VOID_TAGS = {'area', 'br', 'col', 'embed', 'hr', 'img', 'input', 'link', 'meta', 'source', 'wbr'}

SELECTOR_TOKEN = re.compile(r'([#.])([^#.]+)')


@dataclass
class Text:
    """A text leaf"""
    value: str

    def html_render(self, raw: bool = False) -> str:
        if raw:
            return self.value
        return html.escape(self.value, quote=False)


@dataclass
class Element:
    """
    A markup element

    Attributes:
        tag: Tag name (e.g., "div", "a", "script")
        properties: Attribute mapping. `class` may be a list of names;
                    True renders a bare attribute, False/None are dropped.
        children: Ordered child nodes
    """
    tag: str
    properties: Dict[str, Any] = field(default_factory=dict)
    children: List['Node'] = field(default_factory=list)

    @property
    def classes(self) -> List[str]:
        value = self.properties.get('class')
        if value is None:
            return []
        if isinstance(value, str):
            return value.split()
        return list(value)

    def iter(self) -> Iterator['Element']:
        """Yield this element and every descendant element, document order"""
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter()

    def find_byId(self, identifier: str) -> Optional['Element']:
        for element in self.iter():
            if element.properties.get('id') == identifier:
                return element
        return None

    def find_byClass(self, class_name: str) -> Optional['Element']:
        for element in self.iter():
            if class_name in element.classes:
                return element
        return None

    def text_get(self) -> str:
        """Concatenated text content of this subtree"""
        parts = []
        for child in self.children:
            if isinstance(child, Text):
                parts.append(child.value)
            else:
                parts.append(child.text_get())
        return ''.join(parts)

    def attributes_render(self) -> str:
        rendered = []
        for name, value in self.properties.items():
            if value is None or value is False:
                continue
            if value is True:
                rendered.append(f' {name}')
                continue
            if name == 'class' and not isinstance(value, str):
                value = ' '.join(value)
            rendered.append(f' {name}="{html.escape(str(value), quote=True)}"')
        return ''.join(rendered)

    def html_render(self, raw: bool = False) -> str:
        opening = f'<{self.tag}{self.attributes_render()}>'
        if self.tag in VOID_TAGS:
            return opening
        raw_children = self.tag in RAW_TEXT_TAGS
        inner = ''.join(child.html_render(raw=raw_children) for child in self.children)
        return f'{opening}{inner}</{self.tag}>'


Node = Union[Element, Text]


def selector_parse(selector: str) -> tuple[str, Optional[str], List[str]]:
    """
    Split a `tag#id.class` selector into its parts

    The tag defaults to "div" when the selector starts with # or .
    """
    match = re.match(r'^[A-Za-z][A-Za-z0-9-]*', selector)
    tag = match.group(0) if match else 'div'
    rest = selector[match.end():] if match else selector

    identifier = None
    classes: List[str] = []
    for marker, value in SELECTOR_TOKEN.findall(rest):
        if marker == '#':
            identifier = value
        else:
            classes.append(value)
    return tag, identifier, classes


def h(
    selector: str,
    properties: Optional[Dict[str, Any]] = None,
    children: Union[None, str, 'Node', Sequence[Union[str, 'Node']]] = None,
) -> Element:
    """
    Build an Element from a selector, properties and children

    Strings among the children become Text nodes. An id in the selector
    is placed first in the attribute order; selector classes are merged
    ahead of any `class` property.
    """
    tag, identifier, selector_classes = selector_parse(selector)

    props: Dict[str, Any] = {}
    if identifier:
        props['id'] = identifier

    given = dict(properties or {})
    given_class = given.pop('class', None)
    if isinstance(given_class, str):
        given_class = given_class.split()
    classes = selector_classes + list(given_class or [])
    if classes:
        props['class'] = ' '.join(classes)
    props.update(given)

    if children is None:
        items: Sequence[Union[str, Node]] = []
    elif isinstance(children, (str, Element, Text)):
        items = [children]
    else:
        items = children

    nodes: List[Node] = [Text(item) if isinstance(item, str) else item for item in items]
    return Element(tag=tag, properties=props, children=nodes)
