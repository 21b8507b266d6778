"""Element styling rules for rendered lesson content.

Every element kind produced by the Markdown pipeline is mapped to a rule that
wraps the element's already-rendered children in a node carrying a fixed
style descriptor (Tailwind utility classes). Links and images additionally
forward their ``href`` / ``src`` / ``alt`` attributes. Nothing is validated
or sanitized here; children and attribute values pass through verbatim.

Key classes:
- ElementKind: Closed set of element kinds.
- ElementStyleMap: Read-only lookup from kind to rule, with an unstyled
  fallback for kinds that have no rule.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from enum import Enum

from .nodes import Child, Node, as_children

ElementRule = Callable[..., Node]


class ElementKind(str, Enum):
    """Kinds of parsed Markdown content that can be styled."""

    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    P = "p"
    UL = "ul"
    OL = "ol"
    LI = "li"
    BLOCKQUOTE = "blockquote"
    CODE = "code"
    PRE = "pre"
    A = "a"
    IMG = "img"
    TABLE = "table"
    TH = "th"
    TD = "td"

    @classmethod
    def heading(cls, level: int) -> ElementKind:
        return cls(f"h{level}")


# h6 has no rule and renders through the unstyled fallback.
STYLES: dict[ElementKind, str] = {
    ElementKind.H1: "text-2xl font-bold mt-6 mb-3 border-b border-gray-300 lg:text-4xl",
    ElementKind.H2: "text-xl font-semibold mt-5 mb-2 border-b border-gray-200 lg:text-3xl",
    ElementKind.H3: "text-lg font-semibold mt-4 mb-2 lg:text-2xl",
    ElementKind.H4: "text-lg font-semibold mt-3 mb-1 lg:text-xl",
    ElementKind.H5: "text-base font-semibold mt-2 mb-1 lg:text-lg",
    ElementKind.P: "text-sm leading-6 my-2 lg:text-base",
    ElementKind.UL: "list-disc pl-5 my-2",
    ElementKind.OL: "list-decimal pl-5 my-2",
    ElementKind.LI: "text-sm mb-1 lg:text-base",
    ElementKind.BLOCKQUOTE: "border-l-4 border-gray-300 pl-4 italic my-4",
    ElementKind.CODE: "bg-gray-100 border border-gray-300 rounded px-1 text-sm",
    ElementKind.PRE: "bg-gray-100 border border-gray-300 rounded p-2 overflow-x-auto my-4",
    ElementKind.A: "text-blue-600 hover:underline",
    ElementKind.IMG: "max-w-full my-4",
    ElementKind.TABLE: "border-collapse border border-gray-300 my-4",
    ElementKind.TH: "border border-gray-300 bg-gray-100 px-2 py-1 text-left",
    ElementKind.TD: "border border-gray-300 px-2 py-1",
}


def styled(kind: ElementKind, style: str) -> ElementRule:
    """Build a rule that wraps children in ``kind`` with a fixed style.

    Args:
        kind: Element kind, used as the tag name.
        style: Style descriptor attached to every node the rule produces.

    Returns:
        A rule accepting the element's children.
    """

    def rule(children: Child | Iterable[Child] | None = ()) -> Node:
        return Node(kind.value, children=as_children(children), style=style)

    rule.__name__ = f"render_{kind.value}"
    return rule


def styled_link(style: str) -> ElementRule:
    def rule(
        children: Child | Iterable[Child] | None = (), href: str | None = None
    ) -> Node:
        return Node(
            "a", children=as_children(children), style=style, attrs=(("href", href),)
        )

    rule.__name__ = "render_a"
    return rule


def styled_image(style: str) -> ElementRule:
    def rule(
        children: Child | Iterable[Child] | None = (),
        src: str | None = None,
        alt: str | None = None,
    ) -> Node:
        # Images have no content; children are ignored.
        return Node("img", style=style, attrs=(("src", src), ("alt", alt)))

    rule.__name__ = "render_img"
    return rule


def _rule_for(kind: ElementKind, style: str) -> ElementRule:
    if kind is ElementKind.A:
        return styled_link(style)
    if kind is ElementKind.IMG:
        return styled_image(style)
    return styled(kind, style)


def unstyled(kind: ElementKind, children=(), **attrs: str | None) -> Node:
    """Default presentation for kinds without a rule."""
    return Node(
        kind.value,
        children=as_children(children),
        attrs=tuple(attrs.items()),
    )


DEFAULT_RULES: dict[ElementKind, ElementRule] = {
    kind: _rule_for(kind, style) for kind, style in STYLES.items()
}


class ElementStyleMap(Mapping[ElementKind, ElementRule]):
    """Read-only mapping from element kind to styling rule.

    Overrides replace the default rule for their kind, the same way a
    caller-supplied component set is merged over the defaults.
    """

    def __init__(
        self,
        overrides: Mapping[ElementKind | str, ElementRule] | None = None,
        rules: Mapping[ElementKind, ElementRule] | None = None,
    ):
        merged = dict(DEFAULT_RULES if rules is None else rules)
        for kind, rule in (overrides or {}).items():
            merged[ElementKind(kind)] = rule
        self._rules = merged
        self._styles = {
            kind: STYLES[kind]
            for kind, rule in merged.items()
            if DEFAULT_RULES.get(kind) is rule
        }

    @classmethod
    def from_styles(cls, styles: Mapping[str, str] | None) -> ElementStyleMap:
        """Create a map with replaced style descriptors for some kinds.

        Args:
            styles: Mapping of kind name (e.g. "h1") to class string.

        Returns:
            A new ElementStyleMap.

        Raises:
            ValueError: If a key is not a known element kind, or a style is
                not a string.
        """
        if styles is not None and not isinstance(styles, Mapping):
            raise ValueError("Styles must be a mapping of element kind to class string")
        overrides: dict[ElementKind, ElementRule] = {}
        replaced: dict[ElementKind, str] = {}
        for name, style in (styles or {}).items():
            try:
                kind = ElementKind(str(name))
            except ValueError:
                known = ", ".join(k.value for k in ElementKind)
                raise ValueError(
                    f"Unknown element kind '{name}' (expected one of: {known})"
                ) from None
            if not isinstance(style, str):
                raise ValueError(
                    f"Style for element kind '{name}' must be a class string"
                )
            overrides[kind] = _rule_for(kind, style)
            replaced[kind] = style
        instance = cls(overrides)
        instance._styles.update(replaced)
        return instance

    def __getitem__(self, key: ElementKind | str) -> ElementRule:
        return self._rules[ElementKind(key)]

    def __iter__(self) -> Iterator[ElementKind]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, key: object) -> bool:
        try:
            return ElementKind(key) in self._rules
        except ValueError:
            return False

    def style_for(self, kind: ElementKind | str) -> str:
        """Return the style descriptor in use for ``kind`` ("" when unstyled)."""
        return self._styles.get(ElementKind(kind), "")

    def style_descriptors(self) -> list[str]:
        return list(self._styles.values())

    def render(
        self, kind: ElementKind | str, children=(), **attrs: str | None
    ) -> Node:
        """Render one element through its rule.

        Kinds without a rule fall back to an unstyled node that forwards
        the children and attributes unchanged.
        """
        element_kind = ElementKind(kind)
        rule = self._rules.get(element_kind)
        if rule is None:
            return unstyled(element_kind, children, **attrs)
        return rule(children, **attrs)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ElementStyleMap({len(self._rules)} rules)"


default_element_map = ElementStyleMap()
