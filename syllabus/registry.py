"""Content registry for Syllabus.

The registry is the table of navigation entries grouped by curriculum block.
It is read once from a YAML file (``data/content.yaml`` by default) into an
immutable value and only ever read afterwards.

File format::

    blocks:
      - name: Block 1
        href: /block-one
    block_1:
      - name: Git
        href: /block-one/git

Key classes:
- NavigationEntry: One (name, href) destination.
- NavigationGroup: Ordered, immutable sequence of entries under a key.
- ContentRegistry: Read-only mapping of group key to NavigationGroup.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


class RegistryError(ValueError):
    """Raised when registry data does not have the expected shape."""


@dataclass(frozen=True)
class NavigationEntry:
    """A clickable destination.

    Attributes:
        name: Display label, expected to be unique within its group.
        href: Absolute path the entry links to.
    """

    name: str
    href: str


class NavigationGroup(Sequence[NavigationEntry]):
    """Ordered collection of entries for one curriculum block."""

    def __init__(self, key: str, entries: Iterable[NavigationEntry] = ()):
        self._key = key
        self._entries = tuple(entries)

    @property
    def key(self) -> str:
        return self._key

    def __iter__(self) -> Iterator[NavigationEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, item):
        return self._entries[item]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NavigationGroup):
            return NotImplemented
        return self.key == other.key and self._entries == other._entries

    def __hash__(self) -> int:
        return hash((self.key, self._entries))

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"NavigationGroup({self.key!r}, {len(self._entries)} entries)"


class ContentRegistry(Mapping[str, NavigationGroup]):
    """Read-only mapping of group key to NavigationGroup.

    Groups keep the order in which they were declared.
    """

    def __init__(self, groups: Iterable[NavigationGroup] = ()):
        self._groups = {group.key: group for group in groups}

    @classmethod
    def from_mapping(cls, payload: Any) -> ContentRegistry:
        """Build a registry from parsed YAML data.

        Args:
            payload: Mapping of group key to a list of ``{name, href}``
                mappings. ``None`` is treated as an empty registry.

        Returns:
            A new ContentRegistry.

        Raises:
            RegistryError: If the data is not shaped like a registry.
        """
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise RegistryError(
                f"Expected a mapping of group names, got {type(payload).__name__}"
            )
        groups = []
        for key, items in payload.items():
            if items is None:
                items = []
            if not isinstance(items, list):
                raise RegistryError(f"Group '{key}' must be a list of entries")
            entries = [_parse_entry(key, index, item) for index, item in enumerate(items)]
            groups.append(NavigationGroup(str(key), entries))
        return cls(groups)

    def __getitem__(self, key: str) -> NavigationGroup:
        return self._groups[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ContentRegistry({len(self._groups)} groups)"


def _parse_entry(group: Any, index: int, item: Any) -> NavigationEntry:
    if not isinstance(item, Mapping):
        raise RegistryError(f"Entry {index} in group '{group}' must be a mapping")
    name = item.get("name")
    href = item.get("href")
    if not isinstance(name, str) or not isinstance(href, str):
        raise RegistryError(
            f"Entry {index} in group '{group}' needs string 'name' and 'href' values"
        )
    return NavigationEntry(name=name, href=href)


def load_registry(path: Path) -> ContentRegistry:
    """Load the content registry from a YAML file.

    Args:
        path: Path to the registry file. A missing file gives an empty registry.

    Returns:
        The loaded ContentRegistry.

    Raises:
        RegistryError: If the file cannot be parsed or is malformed.
    """
    if not path.exists():
        return ContentRegistry()
    with open(path, encoding="utf-8") as f:
        try:
            payload = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise RegistryError(f"Invalid YAML: {exc}") from exc
    return ContentRegistry.from_mapping(payload)


def append_entry(path: Path, group: str, entry: NavigationEntry) -> None:
    """Append an entry to a group in the registry file, creating it if needed.

    Comments in the file are not preserved.
    """
    payload: dict[str, Any] = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
    # Malformed files are rejected, not rewritten.
    ContentRegistry.from_mapping(payload)
    items = payload.get(group) or []
    items.append({"name": entry.name, "href": entry.href})
    payload[group] = items
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(payload, f, sort_keys=False, allow_unicode=True)


def duplicate_names(group: Iterable[NavigationEntry]) -> list[str]:
    """Return entry names that appear more than once, in first-seen order."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for entry in group:
        if entry.name in seen and entry.name not in duplicates:
            duplicates.append(entry.name)
        seen.add(entry.name)
    return duplicates
