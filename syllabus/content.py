"""Content processing for Syllabus.

Lesson pages live under ``site/``. This module discovers page files, extracts
their metadata, renders them through the matching renderer and produces
Page objects for the build.

Key classes:
- Page: A rendered lesson page with its metadata.
- FileContentLoader: Finds page files, skipping internal folders and drafts.
- LayoutResolver: Picks the layout template for a page.
- UrlDeriver: Maps a source path to its URL.
- DefaultPageBuilder: Builds a Page from a source file.
- ContentProcessor: Loads every page of a site.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .extractors import default_metadata_extractor
from .protocols import ContentLoader, MetadataExtractor, PageBuilder
from .renderers import (
    Heading,
    RendererRegistry,
    _rewrite_image_path,
    default_renderer_registry,
)
from .utils import has_page_extension, slugify, titleize

IMAGE_SRC_RE = re.compile(r'<img\s+[^>]*src="([^"]+)"', re.IGNORECASE)

DEFAULT_PAGE_EXTENSIONS = ("md", "html", "jinja")

__all__ = [
    "ContentProcessor",
    "DefaultPageBuilder",
    "FileContentLoader",
    "Heading",
    "LayoutResolver",
    "Page",
    "UrlDeriver",
]


@dataclass
class Page:
    """A site page built from a source file.

    Attributes:
        title: Human-readable title.
        body: Source text without frontmatter.
        content: Rendered HTML (Jinja source for jinja pages).
        description: Short plain-text summary.
        url: URL path of the page.
        slug: URL-friendly slug.
        draft: Whether the source file is a draft (``_`` prefix).
        layout: Layout template name.
        group: First folder of the page (its curriculum block).
        path: Source file path.
        folder: Folder relative to the site directory.
        filename: Source file name.
        source_type: "markdown", "html" or "jinja".
        frontmatter: Parsed YAML frontmatter.
        toc: Headings for the table of contents.
    """

    title: str
    body: str
    content: str
    description: str
    url: str
    slug: str
    draft: bool
    layout: str
    group: str
    path: Path
    folder: str
    filename: str
    source_type: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    toc: list[Heading] = field(default_factory=list)


class FileContentLoader:
    """Finds page files in a site directory.

    Directories starting with ``_`` are internal (layouts, partials) and
    skipped. Files starting with ``_`` are drafts.
    """

    def __init__(self, site_dir: Path, extensions: Iterable[str] | None = None):
        """Initialize the loader.

        Args:
            site_dir: Path to the site content directory.
            extensions: Page file extensions without dots.
        """
        self.site_dir = site_dir
        self.extensions = list(
            DEFAULT_PAGE_EXTENSIONS if extensions is None else extensions
        )

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        files: list[Path] = []
        for path in sorted(self.site_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            if any(part.startswith("_") for part in rel.parts[:-1]):
                continue
            if rel.name.startswith("_") and not include_drafts:
                continue
            if has_page_extension(path, self.extensions):
                files.append(path)
        return files


class LayoutResolver:
    """Resolves the layout template for a page.

    Candidates, most specific first:
    1. ``{folder}/{name}``
    2. ``{group}`` (the block folder)
    3. ``default``
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir
        self.layout_dir = site_dir / "_layouts"

    def resolve(self, path: Path, folder: str) -> str:
        name = path.name.split(".", 1)[0]
        candidates: list[str] = []
        if folder:
            candidates.append(f"{folder}/{name}")
            candidates.append(self.group_from_folder(folder))
        else:
            candidates.append(name)
        for candidate in candidates:
            for suffix in (".html.jinja", ".jinja", ".html"):
                if (self.layout_dir / f"{candidate}{suffix}").exists():
                    return candidate
        return "default"

    @staticmethod
    def group_from_folder(folder: str) -> str:
        if not folder:
            return ""
        return Path(folder).parts[0]


class UrlDeriver:
    """Derives page URLs: ``block-one/git.md`` -> ``/block-one/git/``."""

    def derive(self, rel: Path, slug: str) -> str:
        segments = [p for p in rel.parent.parts if p and p != "."]
        url_parts = segments if slug == "index" else segments + [slug]
        path = "/".join(url_parts)
        return f"/{path}/" if path else "/"


class DefaultPageBuilder:
    """Builds Page objects from source files.

    Attributes:
        site_dir: Site content directory.
        renderer_registry: Renderers by source type.
        metadata_extractor: Extracts title, description and frontmatter.
        layout_resolver: Picks layouts.
        url_deriver: Derives URLs.
    """

    def __init__(
        self,
        site_dir: Path,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: MetadataExtractor | None = None,
    ):
        self.site_dir = site_dir
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.layout_resolver = LayoutResolver(site_dir)
        self.url_deriver = UrlDeriver()

    def build(self, path: Path, draft: bool = False) -> Page:
        """Build a Page from a source file.

        Args:
            path: Path to the source file.
            draft: Whether this is a draft page.

        Returns:
            Page object.
        """
        rel = path.relative_to(self.site_dir)
        folder = rel.parent.as_posix() if rel.parent != Path(".") else ""
        raw = path.read_text(encoding="utf-8")

        metadata = self.metadata_extractor.extract(raw, path)
        frontmatter = metadata.get("frontmatter", {})
        body = metadata.get("body", raw)

        renderer = self.renderer_registry.get_renderer(path)
        if renderer:
            source_type = renderer.source_type
            content, toc = renderer.render(body, folder)
        else:
            source_type = "unknown"
            content, toc = body, []

        stem = path.name.split(".", 1)[0]
        slug = slugify(stem.lstrip("_"))
        layout = str(frontmatter.get("layout") or self.layout_resolver.resolve(path, folder))

        return Page(
            title=metadata.get("title", titleize(path.name)),
            body=body,
            content=self._rewrite_inline_images(content, folder),
            description=metadata.get("description", ""),
            url=self.url_deriver.derive(rel, slug),
            slug=slug,
            draft=draft,
            layout=layout,
            group=self.layout_resolver.group_from_folder(folder),
            path=path,
            folder=folder,
            filename=path.name,
            source_type=source_type,
            frontmatter=frontmatter,
            toc=toc,
        )

    def _rewrite_inline_images(self, html: str, folder: str) -> str:
        """Rewrite relative ``<img src>`` values written as raw HTML."""

        def repl(match: re.Match) -> str:
            src = match.group(1)
            return match.group(0).replace(src, _rewrite_image_path(src, folder))

        return IMAGE_SRC_RE.sub(repl, html)


class ContentProcessor:
    """Loads every page of a site.

    Attributes:
        site_dir: Site content directory.
    """

    def __init__(
        self,
        site_dir: Path,
        content_loader: ContentLoader | None = None,
        page_builder: PageBuilder | None = None,
    ):
        self.site_dir = site_dir
        self._content_loader = content_loader or FileContentLoader(site_dir)
        self._page_builder = page_builder or DefaultPageBuilder(site_dir)

    def load(self, include_drafts: bool = False) -> list[Page]:
        """Load all page files and build Page objects.

        Args:
            include_drafts: Whether to include draft pages.

        Returns:
            Pages in path order.
        """
        pages: list[Page] = []
        for path in self._content_loader.iter_files(include_drafts):
            pages.append(self._page_builder.build(path, draft=path.name.startswith("_")))
        return pages
