"""
Compiler for parsed markdown segments

Runs one render pass over a document: every directive node is handed to
its registered handler with a shared RenderContext and replaced by the
rendered markup. The result is written either as markdown (raw HTML in
place of each directive) or as a standalone HTML page converted by
Python-Markdown.
"""

import html
from pathlib import Path
from typing import Any, Dict, List, Optional

import markdown

from ..config import appsettings, AppSettings
from .context import RenderContext
from .directives import DirectiveRegistry
from .identifiers import IdAllocator
from .log import LOG
from .markdown_ext import BangumiExtension
from .parser import ASTNode, Segment, TextSegment

OUTPUT_FORMATS = ('markdown', 'html')

HTML_DOCUMENT = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""


class Compiler:
    """
    Compiles parsed segments into a rendered document

    Responsibilities:
    - Dispatch directive nodes to their handlers
    - Share one RenderContext (and so one id allocator) across the pass
    - Assemble and write the output file
    """

    def __init__(
        self,
        segments: List[Segment],
        output_dir: str,
        output_format: str = "html",
        settings: Optional[AppSettings] = None,
        layout: Optional[str] = None,
        id_scheme: Optional[str] = None,
        source_name: str = "index.md",
        source_text: Optional[str] = None,
        registry: Optional[DirectiveRegistry] = None,
    ) -> None:
        """
        Initialize compiler

        Args:
            segments: Parsed document, rendered as-is for markdown output.
                      Html output re-parses source_text inside the
                      Python-Markdown pipeline instead.
            output_dir: Directory for rendered output
            output_format: "markdown" or "html"
            settings: Configuration; defaults to appsettings
            layout: Card layout override
            id_scheme: Instance id scheme override
            source_name: Input filename, used to name the output file
            source_text: Original source; required for html output, which
                         re-parses inside the Python-Markdown pipeline
            registry: Directive registry; defaults to the built-in one
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format '{output_format}' (expected one of {', '.join(OUTPUT_FORMATS)})")

        self.segments = segments
        self.output_dir = Path(output_dir)
        self.output_format = output_format
        self.settings = settings or appsettings
        self.source_name = source_name
        self.source_text = source_text
        self.directives = registry or DirectiveRegistry()

        allocator = IdAllocator(
            prefix=self.settings.id_prefix,
            scheme=id_scheme or self.settings.id_scheme,
            width=self.settings.id_width,
        )
        self.context = RenderContext(settings=self.settings, allocator=allocator, layout=layout)

    def compile(self) -> Dict[str, Any]:
        """
        Render the document and write it to the output directory

        Returns:
            dict with compilation results and statistics
        """
        LOG("Starting compilation...", level=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if self.output_format == 'markdown':
            rendered = self.segments_compile(self.segments)
            output_file = self.output_dir / Path(self.source_name).with_suffix('.md').name
        else:
            rendered = self.htmlDocument_build(self.markdown_convert())
            output_file = self.output_dir / Path(self.source_name).with_suffix('.html').name

        output_file.write_text(rendered, encoding='utf-8')
        LOG(f"Wrote {output_file}", level=2)

        return {
            'status': True,
            'output_file': str(output_file),
            'card_count': self.context.card_count,
            'error_count': self.context.error_count,
        }

    def segments_compile(self, segments: List[Segment]) -> str:
        """Concatenate text segments with the rendered form of each directive"""
        parts = []
        for segment in segments:
            if isinstance(segment, TextSegment):
                parts.append(segment.text)
            else:
                parts.append(self.node_compile(segment))
        return ''.join(parts)

    def node_compile(self, node: ASTNode) -> str:
        """
        Render one directive node to HTML

        Directives without a handler are left exactly as written.
        """
        handler = self.directives.get(node.directive)
        if handler is None:
            LOG(f"Warning: Unknown directive '{node.directive}' at line {node.line_number}", level=2)
            return node.source

        LOG(f"Line {node.line_number}: rendering '{node.directive}'", level=3)
        element = handler(node.properties, node.children, self.context)
        return element.html_render()

    def markdown_convert(self) -> str:
        """Convert the source through Python-Markdown with the card extension"""
        if self.source_text is None:
            raise ValueError("HTML output needs the original source text")
        extension = BangumiExtension(context=self.context, registry=self.directives)
        md = markdown.Markdown(extensions=[extension])
        return md.convert(self.source_text)

    def htmlDocument_build(self, content: str) -> str:
        """Wrap rendered body content in a minimal HTML page"""
        title = html.escape(Path(self.source_name).stem)
        return HTML_DOCUMENT.format(title=title, body=content)
