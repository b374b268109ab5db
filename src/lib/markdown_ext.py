"""
Python-Markdown integration for bangumi cards

BangumiExtension renders `::bangumi{user="..."}` directives inside the
Markdown pipeline:

- DirectivePreprocessor parses the source with the directive Parser and
  stores each rendered card in the html stash
- BlockUnwrapPostprocessor lifts block cards out of the <p> that Markdown
  wraps around a stashed placeholder

One extension instance is one render pass: ids stay unique across every
card of a document, and Markdown.reset() starts a fresh pass.

Usage:
    md = markdown.Markdown(extensions=[BangumiExtension(layout="stacked")])
    html = md.convert(source)
"""

from typing import Any, List, Optional, Set

from markdown import Markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor
from markdown.preprocessors import Preprocessor

from ..config import appsettings
from ..models.directives import DirectiveKind
from .context import RenderContext
from .directives import DirectiveRegistry
from .identifiers import IdAllocator
from .log import LOG
from .parser import Parser, TextSegment


class DirectivePreprocessor(Preprocessor):
    """Replace directive occurrences with stashed raw HTML"""

    def __init__(self, md: Markdown, extension: 'BangumiExtension') -> None:
        super().__init__(md)
        self.extension = extension

    def run(self, lines: List[str]) -> List[str]:
        registry = self.extension.registry
        segments = Parser("\n".join(lines), registry=registry).parse()

        output: List[str] = []
        for segment in segments:
            if isinstance(segment, TextSegment):
                output.append(segment.text)
                continue

            handler = registry.get(segment.directive)
            element = handler(segment.properties, segment.children, self.extension.context)
            placeholder = self.md.htmlStash.store(element.html_render())
            if segment.kind is DirectiveKind.TEXT:
                output.append(placeholder)
            else:
                # Block output must stand alone as a paragraph
                self.extension.block_placeholders.add(placeholder)
                output.append(f"\n{placeholder}\n")

        return "".join(output).split("\n")


class BlockUnwrapPostprocessor(Postprocessor):
    """
    Lift block-level cards out of their paragraph

    Cards are rooted at an inline <a>, which the raw HTML postprocessor
    would otherwise leave inside <p>.
    """

    def __init__(self, md: Markdown, extension: 'BangumiExtension') -> None:
        super().__init__(md)
        self.extension = extension

    def run(self, text: str) -> str:
        for placeholder in self.extension.block_placeholders:
            text = text.replace(f"<p>{placeholder}</p>", placeholder)
        return text


class BangumiExtension(Extension):
    """
    Markdown extension registering the card directive processors

    Args:
        context: Render context to share with the caller. When given it
                 survives Markdown.reset(), so several documents can draw
                 ids from one allocator.
        registry: Directive registry; defaults to the built-in one
        **kwargs: Extension config (layout, id_scheme, id_prefix)
    """

    def __init__(
        self,
        context: Optional[RenderContext] = None,
        registry: Optional[DirectiveRegistry] = None,
        **kwargs: Any,
    ) -> None:
        self.config = {
            "layout": [appsettings.layout, "Card layout variant: 'grouped' or 'stacked'"],
            "id_scheme": [appsettings.id_scheme, "Instance id scheme: 'counter', 'hash' or 'random'"],
            "id_prefix": [appsettings.id_prefix, "Literal tag prepended to instance ids"],
        }
        super().__init__(**kwargs)
        self.registry = registry or DirectiveRegistry()
        self.shared_context = context
        self.context = context or self.context_make()
        self.block_placeholders: Set[str] = set()

    def context_make(self) -> RenderContext:
        """Fresh render context built from the extension config"""
        allocator = IdAllocator(
            prefix=self.getConfig("id_prefix"),
            scheme=self.getConfig("id_scheme"),
            width=appsettings.id_width,
        )
        return RenderContext(allocator=allocator, layout=self.getConfig("layout"))

    def extendMarkdown(self, md: Markdown) -> None:
        md.registerExtension(self)
        md.preprocessors.register(DirectivePreprocessor(md, self), "bangumicard_directives", 27)
        md.postprocessors.register(BlockUnwrapPostprocessor(md, self), "bangumicard_unwrap", 35)

    def reset(self) -> None:
        """Start a new render pass unless the caller owns the context"""
        self.block_placeholders.clear()
        if self.shared_context is None:
            self.context = self.context_make()
            LOG("Reset bangumi card context for a new document", level=3)


def makeExtension(**kwargs: Any) -> BangumiExtension:
    """Entry point used by markdown.Markdown(extensions=[...]) string lookup"""
    return BangumiExtension(**kwargs)
