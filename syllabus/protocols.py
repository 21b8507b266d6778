"""Protocol definitions for Syllabus.

These interfaces describe the seams between the content pipeline pieces so
alternative implementations (custom renderers, extractors or loaders) can be
passed in without changing the callers.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Heading, Page
    from .nodes import Node


@runtime_checkable
class ContentRenderer(Protocol):
    """Renders one type of source file to HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file."""
        ...

    @abstractmethod
    def render(self, content: str, folder: str) -> tuple[str, list[Heading]]:
        """Render content to HTML.

        Args:
            content: Source content to render.
            folder: Folder containing the page (for relative path resolution).

        Returns:
            Tuple of (rendered HTML, list of headings for the TOC).
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier ('markdown', 'html', 'jinja')."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Extracts one kind of metadata from source content."""

    @abstractmethod
    def extract(self, content: str, path: Path) -> dict[str, Any]:
        ...


@runtime_checkable
class ElementRenderer(Protocol):
    """Renders a parsed Markdown element through the styling rules."""

    @abstractmethod
    def render(self, kind: Any, children: Any = (), **attrs: Any) -> Node:
        """Render one element.

        Args:
            kind: Element kind (an ElementKind or its tag name).
            children: Already-rendered children.
            **attrs: Attributes forwarded to the rule (href, src, alt).

        Returns:
            The styled node.
        """
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Discovers content files."""

    @abstractmethod
    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        ...


@runtime_checkable
class PageBuilder(Protocol):
    """Builds Page objects from source files."""

    @abstractmethod
    def build(self, path: Path, draft: bool = False) -> Page:
        ...
