"""Content renderers for Syllabus.

Each renderer turns one type of source file into HTML. Markdown lessons are
rendered by a mistune renderer that sends every styled element kind through
an ElementStyleMap, so headings, paragraphs, lists, code, links, images and
tables come out wrapped in their fixed style descriptors.

Key classes:
- StyledHTMLRenderer: mistune HTML renderer backed by the element styling rules.
- MarkdownRenderer: Renders Markdown lessons to HTML and collects headings.
- HTMLRenderer: Passes plain HTML through.
- JinjaContentRenderer: Marks Jinja pages for rendering by the TemplateEngine.
- RendererRegistry: Picks the renderer for a source file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import mistune
from markupsafe import Markup, escape
from mistune.plugins import import_plugin
from mistune.util import striptags
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .elements import ElementKind, ElementStyleMap, default_element_map
from .nodes import Node
from .protocols import ContentRenderer, ElementRenderer
from .utils import is_html, is_markdown, is_template

DEFAULT_PLUGINS = ("strikethrough", "footnotes", "table", "url")


@dataclass
class Heading:
    """A heading collected while rendering, used for the table of contents.

    Attributes:
        id: Anchor ID of the heading.
        text: Rendered heading content.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def _generate_heading_id(text: str) -> str:
    """Generate an anchor ID from heading text (tags are ignored)."""
    slug = striptags(text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


def _rewrite_image_path(src: str, folder: str) -> str:
    """Point relative image sources at ``/assets/images/<folder>/``.

    Absolute, protocol-relative and templated sources are left alone.
    """
    if src.startswith(("http://", "https://", "//", "/", "data:")) or "{{" in src:
        return src
    prefix = Path(folder) if folder else Path()
    return f"/assets/images/{(prefix / src).as_posix()}"


class StyledHTMLRenderer(mistune.HTMLRenderer):
    """mistune renderer that styles elements through an ElementStyleMap.

    Children handed to the rules are already rendered by mistune and are
    passed as ``Markup`` so they are not escaped a second time. Elements the
    map does not cover (emphasis, thematic breaks, table rows) keep mistune's
    default output.

    Attributes:
        folder: Folder of the page being rendered, for image paths.
        elements: Styling rules.
        headings: Headings seen so far, in document order.
    """

    def __init__(self, folder: str, elements: ElementRenderer | None = None):
        super().__init__(escape=False)
        self.folder = folder
        self.elements = elements if elements is not None else default_element_map
        self.headings: list[Heading] = []
        self._heading_id_counts: dict[str, int] = {}

    def _node(self, kind: ElementKind, children=(), **attrs) -> Node:
        return self.elements.render(kind, children, **attrs)

    def _block(self, kind: ElementKind, children=(), **attrs) -> str:
        return f"{self._node(kind, children, **attrs)}\n"

    def _unique_heading_id(self, text: str) -> str:
        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            return f"{base_id}-{self._heading_id_counts[base_id]}"
        self._heading_id_counts[base_id] = 0
        return base_id

    def heading(self, text: str, level: int, **attrs) -> str:
        heading_id = self._unique_heading_id(text)
        self.headings.append(Heading(id=heading_id, text=text, level=level))
        node = self._node(ElementKind.heading(level), Markup(text))
        return f"{node.with_attrs(id=heading_id)}\n"

    def paragraph(self, text: str) -> str:
        return self._block(ElementKind.P, Markup(text))

    def list(self, text: str, ordered: bool, **attrs) -> str:
        kind = ElementKind.OL if ordered else ElementKind.UL
        return self._block(kind, Markup("\n" + text))

    def list_item(self, text: str) -> str:
        return self._block(ElementKind.LI, Markup(text))

    def block_quote(self, text: str) -> str:
        return self._block(ElementKind.BLOCKQUOTE, Markup("\n" + text))

    def codespan(self, text: str) -> str:
        return str(self._node(ElementKind.CODE, escape(text)))

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Info string of the fence; its first word is the language.

        Returns:
            The ``pre`` element wrapping a ``code`` element.
        """
        lang = info.split(None, 1)[0] if info and info.strip() else ""
        return self._block(ElementKind.PRE, self._code_node(code, lang))

    def _code_node(self, code: str, lang: str) -> Node:
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                highlighted = highlight(code, lexer, HtmlFormatter(nowrap=True))
                return Node(
                    "code",
                    children=(Markup(highlighted),),
                    style=f"highlight language-{lang}",
                )
            return Node("code", children=(code,), style=f"language-{lang}")
        return Node("code", children=(code,))

    def link(self, text: str, url: str, title: str | None = None) -> str:
        return str(self._node(ElementKind.A, Markup(text), href=url))

    def image(self, text: str, url: str, title: str | None = None) -> str:
        src = _rewrite_image_path(url or "", self.folder)
        alt = Markup(striptags(text)).unescape()
        return str(self._node(ElementKind.IMG, src=src, alt=alt))

    def table(self, text: str) -> str:
        return self._block(ElementKind.TABLE, Markup("\n" + text))

    def table_cell(
        self, text: str, align: str | None = None, head: bool = False
    ) -> str:
        kind = ElementKind.TH if head else ElementKind.TD
        return f"  {self._block(kind, Markup(text))}"


def check_plugins(plugins: Iterable[str]) -> list[str]:
    """Resolve Markdown plugin names up front.

    Args:
        plugins: mistune plugin names or dotted import paths.

    Returns:
        The plugin names as a list.

    Raises:
        ValueError: If a plugin cannot be imported.
    """
    names = [str(name) for name in plugins]
    for name in names:
        try:
            import_plugin(name)
        except (ValueError, ImportError, AttributeError) as exc:
            raise ValueError(f"Unknown Markdown plugin '{name}'") from exc
    return names


class MarkdownRenderer:
    """Renders Markdown lessons to styled HTML."""

    def __init__(
        self,
        plugins: Iterable[str] | None = None,
        elements: ElementStyleMap | None = None,
    ):
        """Initialize the renderer.

        Args:
            plugins: mistune plugins to enable. Defaults to DEFAULT_PLUGINS.
            elements: Styling rules. Defaults to the built-in map.

        Raises:
            ValueError: If a plugin cannot be imported.
        """
        self.plugins = check_plugins(DEFAULT_PLUGINS if plugins is None else plugins)
        self.elements = elements if elements is not None else default_element_map

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str, folder: str) -> tuple[str, list[Heading]]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source.
            folder: Folder containing the page.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        renderer = StyledHTMLRenderer(folder, self.elements)
        markdown = mistune.create_markdown(renderer=renderer, plugins=self.plugins)
        html = markdown(content)
        return str(html), renderer.headings


class HTMLRenderer:
    """Passes plain HTML pages through unchanged."""

    @property
    def source_type(self) -> str:
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str, folder: str) -> tuple[str, list[Heading]]:
        return content, []


class JinjaContentRenderer:
    """Identifies Jinja pages.

    The content is returned untouched; the TemplateEngine renders it later
    with the full site context.
    """

    @property
    def source_type(self) -> str:
        return "jinja"

    def can_render(self, path: Path) -> bool:
        return is_template(path)

    def render(self, content: str, folder: str) -> tuple[str, list[Heading]]:
        return content, []


class RendererRegistry:
    """Ordered list of renderers; the first that accepts a file wins."""

    def __init__(self, markdown: MarkdownRenderer | None = None):
        """Initialize the registry with the default renderers.

        Args:
            markdown: Markdown renderer to use instead of the default one.
        """
        self._renderers: list[ContentRenderer] = []
        self.register(markdown or MarkdownRenderer())
        self.register(JinjaContentRenderer())
        self.register(HTMLRenderer())

    def register(self, renderer: ContentRenderer) -> None:
        self._renderers.append(renderer)

    def get_renderer(self, path: Path) -> ContentRenderer | None:
        """Return the first renderer that can handle ``path``, or None."""
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


def create_renderer_registry(
    plugins: Iterable[str] | None = None, elements: ElementStyleMap | None = None
) -> RendererRegistry:
    """Create a registry whose Markdown renderer uses the given configuration."""
    return RendererRegistry(MarkdownRenderer(plugins=plugins, elements=elements))


default_renderer_registry = RendererRegistry()
