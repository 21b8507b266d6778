from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .content import Page


class PageCollection(Sequence[Page]):
    """Lightweight helper for working with lists of Pages in templates and code."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def group(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.group == name)

    def drafts(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.draft)

    def published(self) -> PageCollection:
        return PageCollection(p for p in self._pages if not p.draft)

    def by_url(self, url: str) -> Page | None:
        for page in self._pages:
            if page.url == url:
                return page
        return None

    def ordered(self) -> PageCollection:
        """Sort by frontmatter ``order`` (pages without one last), then filename."""

        def sort_key(p: Page):
            order = p.frontmatter.get("order")
            has_order = isinstance(order, (int, float))
            return (0 if has_order else 1, order if has_order else 0, p.filename.lower())

        return PageCollection(sorted(self._pages, key=sort_key))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"
