import pytest
from markupsafe import Markup

from syllabus.navigator import (
    NAVIGATOR_STYLE,
    NavigationRoute,
    link_list,
    normalize_route,
    resolve_routes,
)
from syllabus.registry import ContentRegistry, NavigationEntry, NavigationGroup, RegistryError


def _group(key, *pairs):
    return NavigationGroup(key, [NavigationEntry(name, href) for name, href in pairs])


def test_link_list_one_link_per_entry_in_order():
    group = _group(
        "block_1",
        ("Git", "/block-one/git"),
        ("HTML", "/block-one/html-basics"),
    )
    node = link_list(group)
    assert node.tag == "div"
    assert node.style == NAVIGATOR_STYLE
    assert len(node.children) == 2
    first, second = node.children
    assert first.tag == "a"
    assert first.children == ("Git",)
    assert first.attr("href") == "/block-one/git"
    assert first.key == "Git"
    assert second.children == ("HTML",)
    assert second.attr("href") == "/block-one/html-basics"
    assert second.key == "HTML"


def test_link_list_html_output():
    html = str(link_list(_group("g", ("Git", "/block-one/git"), ("HTML", "/block-one/html-basics"))))
    assert html == (
        f'<div class="{NAVIGATOR_STYLE}">'
        '<a href="/block-one/git">Git</a>'
        '<a href="/block-one/html-basics">HTML</a>'
        "</div>"
    )


def test_link_list_empty_group():
    node = link_list(_group("empty"))
    assert node.children == ()
    assert str(node) == f'<div class="{NAVIGATOR_STYLE}"></div>'


def test_link_list_is_deterministic():
    group = _group("blocks", ("Block 1", "/block-one"), ("Block 2", "/block-two"))
    assert link_list(group) == link_list(group)
    assert str(link_list(group)) == str(link_list(group))


def test_link_list_accepts_plain_lists_and_escapes_names():
    node = link_list([NavigationEntry("Tags & <b>", "/x?a=1&b=2")])
    html = Markup(node).__html__()
    assert "Tags &amp; &lt;b&gt;" in html
    assert 'href="/x?a=1&amp;b=2"' in html


def test_link_list_passes_duplicates_and_empty_strings_through():
    node = link_list(_group("g", ("Git", "/a"), ("Git", "/b"), ("", "")))
    assert [child.key for child in node.children] == ["Git", "Git", ""]
    assert [child.attr("href") for child in node.children] == ["/a", "/b", ""]


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("/", "/"),
        ("", "/"),
        ("/block-one", "/block-one/"),
        ("block-one/", "/block-one/"),
        ("/block-one/git/", "/block-one/git/"),
    ],
)
def test_normalize_route(url, expected):
    assert normalize_route(url) == expected


def test_resolve_routes_binds_groups_in_order():
    registry = ContentRegistry(
        [_group("blocks", ("Block 1", "/block-one")), _group("block_1", ("Git", "/block-one/git"))]
    )
    routes = resolve_routes({"/": "blocks", "/block-one": "block_1"}, registry)
    assert routes == [
        NavigationRoute("/", registry["blocks"]),
        NavigationRoute("/block-one/", registry["block_1"]),
    ]


def test_resolve_routes_unknown_group():
    with pytest.raises(RegistryError, match="block_3"):
        resolve_routes({"/block-three/": "block_3"}, ContentRegistry())


def test_resolve_routes_none_and_invalid():
    assert resolve_routes(None, ContentRegistry()) == []
    with pytest.raises(RegistryError):
        resolve_routes(["/"], ContentRegistry())  # type: ignore[arg-type]


def test_resolve_routes_rejects_non_string_group():
    registry = ContentRegistry.from_mapping({"blocks": []})
    with pytest.raises(RegistryError, match="must name a navigation group, got list"):
        resolve_routes({"/": ["blocks"]}, registry)
