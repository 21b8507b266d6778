"""Metadata extractors for Syllabus.

Each extractor pulls one kind of metadata out of a lesson source file.
The composite runs them in order and merges the results, so later
extractors can build on (or override) earlier ones.

Key classes:
- FrontmatterExtractor: YAML frontmatter and remaining body.
- TitleExtractor: Title from frontmatter, first heading or filename.
- DescriptionExtractor: Plain-text summary of the first paragraph.
- CompositeMetadataExtractor: Runs a list of extractors.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .protocols import MetadataExtractor
from .utils import first_paragraph, titleize

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Invalid or
        non-mapping frontmatter is left in the content untouched.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


class FrontmatterExtractor:
    def extract(self, content: str, path: Path) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content)
        return {"frontmatter": frontmatter, "body": body}


class TitleExtractor:
    """Extracts the page title.

    Order: frontmatter ``title``, first level-1 heading, then the filename.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content)
        title = frontmatter.get("title")
        if title:
            return {"title": str(title)}
        for line in body.splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        return {"title": titleize(path.name)}


class DescriptionExtractor:
    """Extracts a short description.

    Uses frontmatter ``description`` when present, otherwise the first
    paragraph of the body that is not a heading.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content)
        if frontmatter.get("description"):
            return {"description": str(frontmatter["description"])}
        paragraphs = [p for p in body.split("\n\n") if p.strip()]
        for para in paragraphs:
            if para.lstrip().startswith(("#", "```", "![")):
                continue
            return {"description": first_paragraph(para)}
        return {"description": ""}


class CompositeMetadataExtractor:
    """Runs several extractors and merges their results."""

    def __init__(self, extractors: list[MetadataExtractor] | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: MetadataExtractor implementations. Defaults to
                frontmatter, title and description extraction.
        """
        if extractors is None:
            self._extractors = [
                FrontmatterExtractor(),
                TitleExtractor(),
                DescriptionExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor: MetadataExtractor) -> None:
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(content, path))
        return result


default_metadata_extractor = CompositeMetadataExtractor()
