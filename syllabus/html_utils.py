"""URL helpers for builds that are given a root URL.

The dev server builds with its own origin as the root URL so that every
root-relative link in the output points at it.
"""

from __future__ import annotations

import re

# href/src/action values starting with a single slash.
_ROOT_RELATIVE_RE = re.compile(r"""\b(href|src|action)=(["'])(/(?!/)[^"']*)\2""")


def join_root_url(root_url: str, path: str) -> str:
    """Join a root URL and a path with exactly one slash between them.

    Examples:
        >>> join_root_url('https://example.com/', '/block-one/')
        'https://example.com/block-one/'

        >>> join_root_url('', '/block-one/')
        '/block-one/'
    """
    if not root_url:
        return path
    return f"{root_url.rstrip('/')}/{path.lstrip('/')}"


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Prefix root-relative ``href``/``src``/``action`` values with ``root_url``.

    External, protocol-relative, anchor and page-relative values are kept.
    """
    if not root_url:
        return html
    return _ROOT_RELATIVE_RE.sub(
        lambda m: f"{m.group(1)}={m.group(2)}{join_root_url(root_url, m.group(3))}{m.group(2)}",
        html,
    )
