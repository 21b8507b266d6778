"""Utility functions for Syllabus.

String and path helpers shared by the content, build and CLI modules.

Key functions:
    slugify: Convert a filename stem to a URL slug.
    titleize: Convert a filename or key to a human-readable title.
    first_paragraph: Plain-text summary of the first paragraph.
    ensure_clean_dir: Ensure a directory exists and is empty.
    is_markdown, is_template, is_html: Source type checks.
    has_page_extension: Check a file against the configured page extensions.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from pathlib import Path

_NUMBER_PREFIX_RE = re.compile(r"^\d+[-_]")


def slugify(name: str) -> str:
    """Convert a filename stem to a slug.

    Drops a leading ordering number (``01-git`` -> ``git``).

    Args:
        name: Filename stem.

    Returns:
        URL-friendly slug, ``index`` when nothing usable remains.
    """
    cleaned = _NUMBER_PREFIX_RE.sub("", name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(name: str) -> str:
    """Convert a filename or registry key to a human-readable title.

    Examples:
        >>> titleize("01-html-basics.md")
        'Html Basics'

        >>> titleize("block_1")
        'Block 1'
    """
    base = Path(name).stem if "." in name else name
    base = _NUMBER_PREFIX_RE.sub("", base)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract the first paragraph as plain text.

    Strips heading markers, HTML tags and Jinja syntax, collapses whitespace
    and truncates to ``limit`` characters.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    if not paragraphs:
        return ""
    para = paragraphs[0].lstrip("# ").strip()
    para = re.sub(r"<[^>]+>", "", para)
    para = re.sub(r"\{[%#{].*?[%#}]\}", "", para)
    collapsed = " ".join(para.split())
    return collapsed[:limit]


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() == ".md"


def is_template(path: Path) -> bool:
    """Check if a path is a Jinja template (``.jinja`` or ``.html.jinja``)."""
    return path.suffix == ".jinja"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file (not a Jinja template)."""
    return path.suffix.lower() == ".html"


def has_page_extension(path: Path, extensions: Iterable[str]) -> bool:
    """Check whether the final extension of ``path`` is a page extension.

    Args:
        path: File to check.
        extensions: Extensions without the leading dot (e.g. ``["md", "jinja"]``).

    Returns:
        True if the file should be treated as a page.
    """
    allowed = {ext.lower().lstrip(".") for ext in extensions}
    return path.suffix.lower().lstrip(".") in allowed
