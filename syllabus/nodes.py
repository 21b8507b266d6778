"""Displayable nodes for Syllabus.

A Node is the output of every presentation function in the project: the
element styling rules and the link list navigator. Nodes are immutable
values that serialize to HTML through the MarkupSafe ``__html__`` protocol,
so Jinja2 templates can emit them directly with autoescaping enabled.

Key class:
- Node: Frozen element description (tag, children, style, attributes, key).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Union

from markupsafe import Markup, escape

VOID_TAGS = frozenset({"img", "br", "hr"})

Child = Union[str, "Node"]


def as_children(children: Child | Iterable[Child] | None) -> tuple[Child, ...]:
    """Normalize a children argument into a tuple.

    A single string or Node becomes a one-element tuple; ``None`` becomes
    an empty tuple. Values are never copied or transformed.
    """
    if children is None:
        return ()
    if isinstance(children, (str, Node)):
        return (children,)
    return tuple(children)


@dataclass(frozen=True)
class Node:
    """An HTML element with a fixed style descriptor.

    Attributes:
        tag: Element tag name (e.g. "h2", "a").
        children: Child strings and nodes. Plain strings are escaped on
            output; ``Markup`` strings and nodes are emitted as-is.
        style: Class string applied to the element.
        attrs: Extra attributes as (name, value) pairs. ``None`` values
            are omitted from the output.
        key: Rendering identity of the node within its parent.
    """

    tag: str
    children: tuple[Child, ...] = ()
    style: str = ""
    attrs: tuple[tuple[str, str | None], ...] = ()
    key: str | None = None

    def attr(self, name: str) -> str | None:
        for attr_name, value in self.attrs:
            if attr_name == name:
                return value
        return None

    def with_attrs(self, **attrs: str | None) -> Node:
        """Return a copy with additional attributes appended."""
        return replace(self, attrs=self.attrs + tuple(attrs.items()))

    def __html__(self) -> Markup:
        parts = [self.tag]
        for name, value in self.attrs:
            if value is None:
                continue
            parts.append(f'{name}="{escape(value)}"')
        if self.style:
            parts.append(f'class="{escape(self.style)}"')
        opening = " ".join(parts)
        if self.tag in VOID_TAGS:
            return Markup(f"<{opening} />")
        inner = "".join(str(escape(child)) for child in self.children)
        return Markup(f"<{opening}>{inner}</{self.tag}>")

    def __str__(self) -> str:
        return str(self.__html__())
