"""Template rendering engine for Syllabus.

Renders lesson pages and navigation route pages inside Jinja2 layouts.

Key items:
- TemplateEngine: Jinja2 environment with the site context installed.
- render_toc: Nested table of contents for a page.

Template globals:
- data: Site data from ``data/*.yaml``.
- pages: All pages as a PageCollection.
- registry: The content registry (``registry.block_1`` is a group).
- link_list: The list navigator, usable as ``{{ link_list(registry.blocks) }}``.
- url_for, render_toc, pygments_css.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup, escape
from pygments.formatters import HtmlFormatter

from .collections import PageCollection
from .content import Heading, Page
from .html_utils import join_root_url
from .navigator import NavigationRoute, link_list
from .registry import ContentRegistry
from .utils import titleize

__all__ = ["TemplateEngine", "render_toc"]


def render_toc(page: Page) -> Markup:
    """Render a page's headings as nested ``<ul>`` lists.

    Args:
        page: Page whose ``toc`` is rendered.

    Returns:
        Markup of the nested list, empty when the page has no headings.
    """
    if not page.toc:
        return Markup("")
    return _render_toc_from_headings(page.toc)


def _render_toc_from_headings(headings: list[Heading]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        text = Markup(heading.text).striptags()
        html_parts.append(f'<li><a href="#{escape(heading.id)}">{escape(text)}</a>')

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


class TemplateEngine:
    """Jinja2 rendering for pages and navigation routes.

    Attributes:
        site_dir: Directory containing templates.
        data: Global site data.
        registry: Content registry exposed to templates.
        env: Jinja2 environment.
        pages: All pages.
    """

    def __init__(
        self,
        site_dir: Path,
        data: dict[str, Any],
        registry: ContentRegistry | None = None,
        root_url: str | None = None,
    ):
        """Initialize the template engine.

        Args:
            site_dir: Directory with templates.
            data: Global site data.
            registry: Content registry. Defaults to an empty one.
            root_url: Optional base URL for links.
        """
        self.site_dir = site_dir
        self.data = data
        self.registry = registry if registry is not None else ContentRegistry()
        self.root_url = (
            root_url or (data.get("root_url") if isinstance(data, dict) else "")
        ) or ""
        self.env = Environment(
            loader=FileSystemLoader(
                [
                    site_dir / "_layouts",
                    site_dir / "_partials",
                    site_dir,
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self.pages = PageCollection([])
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["data"] = self.data
        self.env.globals["pages"] = self.pages
        self.env.globals["registry"] = self.registry
        self.env.globals["link_list"] = link_list
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.globals["render_toc"] = render_toc

    @staticmethod
    def _pygments_css() -> str:
        """CSS for the ``.highlight`` class used by highlighted code blocks."""
        return HtmlFormatter().get_style_defs(".highlight")

    def update_collections(self, pages: Iterable[Page]) -> None:
        self.pages = PageCollection(pages)
        self.env.globals["pages"] = self.pages

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying the root URL if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        base = self.root_url or (
            self.data.get("url", "") if isinstance(self.data, dict) else ""
        )
        normalized = path if path.startswith("/") else f"/{path}"
        if base:
            return join_root_url(base, normalized)
        return normalized

    def _base_context(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "pages": self.pages,
            "registry": self.registry,
            "url_for": self._url_for,
        }

    def render_page(self, page: Page) -> str:
        """Render a lesson page inside its layout.

        Args:
            page: Page to render.

        Returns:
            Rendered HTML string.
        """
        context = {
            **self._base_context(),
            "title": page.title,
            "current_page": page,
            "frontmatter": page.frontmatter,
        }
        body_html = self._render_body(page, context)
        return self._render_layout(page.layout, body_html, context)

    def render_route(self, route: NavigationRoute) -> str:
        """Render a navigation route page: the link list of its group.

        The ``navigator`` layout is used when present, then ``default``.

        Args:
            route: Route to render.

        Returns:
            Rendered HTML string.
        """
        context = {
            **self._base_context(),
            "title": titleize(route.group.key),
            "current_page": None,
            "group": route.group,
            "route": route,
        }
        body_html = Markup(link_list(route.group))
        return self._render_layout("navigator", body_html, context)

    def _render_layout(self, layout: str, body_html: str, context: dict[str, Any]) -> str:
        template = self._resolve_layout_template(layout)
        try:
            return template.render(page_content=Markup(body_html), **context)
        except TemplateNotFound as exc:
            print(f"Template not found during render ({exc}); rendering body only.")
            return str(body_html)

    def _render_body(self, page: Page, context: dict[str, Any]) -> str:
        if page.source_type == "jinja":
            template = self.env.from_string(page.content)
            return template.render(**context)
        return page.content

    def _resolve_layout_template(self, layout: str):
        candidates = [f"{layout}.html.jinja", f"{layout}.jinja", f"{layout}.html"]
        if layout != "default":
            candidates.extend(["default.html.jinja", "default.jinja", "default.html"])
        for name in candidates:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        return self.env.from_string("{{ page_content }}")

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string with the given context."""
        return self.env.from_string(template).render(**context)
