"""List navigator and navigation routes.

The list navigator renders a sequence of navigation entries as a vertical,
centered column of links. Routes bind a URL of the built site to one group
of the content registry; each route page is a list navigator over its group.

Key items:
- link_list: Render entries as a column of links.
- NavigationRoute: A URL bound to a NavigationGroup.
- resolve_routes: Bind configured routes to registry groups.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .nodes import Node
from .registry import ContentRegistry, NavigationEntry, NavigationGroup, RegistryError

NAVIGATOR_STYLE = "h-screen flex flex-col justify-center items-center gap-4 text-3xl"


def link_list(entries: Iterable[NavigationEntry]) -> Node:
    """Render entries as a column of links, one per entry, in order.

    Each link displays the entry name, points at the entry href and is keyed
    by the entry name. An empty input renders the empty container.

    Args:
        entries: Navigation entries to render.

    Returns:
        A ``div`` node containing one ``a`` node per entry.
    """
    links = tuple(
        Node("a", children=(entry.name,), attrs=(("href", entry.href),), key=entry.name)
        for entry in entries
    )
    return Node("div", children=links, style=NAVIGATOR_STYLE)


def normalize_route(url: str) -> str:
    """Normalize a route URL to the ``/segment/`` form used for page URLs.

    Examples:
        >>> normalize_route("/block-one")
        '/block-one/'

        >>> normalize_route("")
        '/'
    """
    path = url.strip().strip("/")
    return f"/{path}/" if path else "/"


@dataclass(frozen=True)
class NavigationRoute:
    """A page of the site that lists one navigation group.

    Attributes:
        url: Normalized URL of the page.
        group: Group rendered on the page.
    """

    url: str
    group: NavigationGroup


def resolve_routes(
    routes: Mapping[str, str] | None, registry: ContentRegistry
) -> list[NavigationRoute]:
    """Bind configured route URLs to registry groups.

    Args:
        routes: Mapping of URL to group key, in declaration order.
        registry: Loaded content registry.

    Returns:
        List of NavigationRoute objects.

    Raises:
        RegistryError: If a route names a group missing from the registry, or
            its group is not a string.
    """
    if routes is None:
        return []
    if not isinstance(routes, Mapping):
        raise RegistryError("Routes must be a mapping of URL to navigation group")
    resolved: list[NavigationRoute] = []
    for url, key in routes.items():
        if not isinstance(key, str):
            raise RegistryError(
                f"Route '{url}' must name a navigation group, got {type(key).__name__}"
            )
        if key not in registry:
            raise RegistryError(
                f"Route '{url}' refers to unknown navigation group '{key}'"
            )
        resolved.append(NavigationRoute(url=normalize_route(str(url)), group=registry[key]))
    return resolved
