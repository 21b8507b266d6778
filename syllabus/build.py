"""Site building for Syllabus.

Loads the configuration, the content registry and site data, renders every
lesson page and every navigation route, and writes the output tree.

Key functions:
- build_site: Build the whole site.
- load_config: Load ``syllabus.yaml`` over the defaults.
- load_data: Load site data from ``data/*.yaml``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .assets import AssetPipeline
from .content import ContentProcessor, DefaultPageBuilder, FileContentLoader, Page
from .elements import ElementStyleMap
from .html_utils import absolutize_html_urls
from .navigator import NAVIGATOR_STYLE, NavigationRoute, resolve_routes
from .registry import ContentRegistry, RegistryError, duplicate_names, load_registry
from .renderers import create_renderer_registry
from .templates import TemplateEngine
from .utils import ensure_clean_dir

CONFIG_FILENAME = "syllabus.yaml"


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


DEFAULT_CONFIG: dict[str, Any] = {
    "output_dir": "output",
    "port": 4000,
    "root_url": "",
    "content_file": "data/content.yaml",
    "page_extensions": ["md", "html", "jinja"],
    "markdown_plugins": ["strikethrough", "footnotes", "table", "url"],
    "routes": {},
    "styles": {},
}


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        pages: Lesson pages that were written.
        output_dir: Directory the site was built into.
        data: Global site data.
        routes: Navigation route pages that were written.
        registry: The content registry used for the build.
    """

    pages: list[Page]
    output_dir: Path
    data: dict[str, Any]
    routes: list[NavigationRoute] = field(default_factory=list)
    registry: ContentRegistry = field(default_factory=ContentRegistry)


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from syllabus.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Configuration values with defaults applied.
    """
    config_path = project_root / CONFIG_FILENAME
    config = {key: _copy(value) for key, value in DEFAULT_CONFIG.items()}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from the YAML files in ``data/``.

    ``site.yaml`` is merged at the top level; every other file is stored
    under its stem.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
        if not isinstance(payload, dict):
            continue
        if path.name == "site.yaml":
            data.update(payload)
        else:
            data[path.stem] = payload
    return data


def load_project_registry(project_root: Path, config: dict[str, Any]) -> ContentRegistry:
    """Load the registry named by ``content_file``.

    Raises:
        BuildError: If the registry file is malformed.
    """
    content_path = project_root / str(config.get("content_file") or "data/content.yaml")
    try:
        return load_registry(content_path)
    except RegistryError as exc:
        raise BuildError(content_path, str(exc), exc) from exc


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft pages (starting with _).
        root_url: Optional base URL to absolutize links with.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Write the output here instead of config output_dir.

    Returns:
        BuildResult with the pages, routes, output directory and site data.

    Raises:
        BuildError: If configuration, registry or a page cannot be processed.
        FileNotFoundError: If the project has no ``site/`` directory.
    """
    config = load_config(project_root)
    config_path = project_root / CONFIG_FILENAME
    if root_url is not None:
        config["root_url"] = root_url

    site_dir = project_root / "site"
    if not site_dir.exists():
        raise FileNotFoundError(f"Expected site directory at {site_dir}")

    registry = load_project_registry(project_root, config)
    try:
        routes = resolve_routes(config.get("routes") or {}, registry)
        elements = ElementStyleMap.from_styles(config.get("styles") or {})
        renderers = create_renderer_registry(
            config.get("markdown_plugins") or [], elements
        )
    except ValueError as exc:
        raise BuildError(config_path, str(exc), exc) from exc
    _warn_duplicate_names(routes)

    output_dir = output_dir_override or (
        project_root / config.get("output_dir", "output")
    )
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    data = load_data(project_root)
    resolved_root = str(config.get("root_url") or "")
    if resolved_root:
        data.setdefault("root_url", resolved_root)

    processor = ContentProcessor(
        site_dir,
        content_loader=FileContentLoader(site_dir, config.get("page_extensions")),
        page_builder=DefaultPageBuilder(site_dir, renderer_registry=renderers),
    )
    pages = processor.load(include_drafts=include_drafts)
    _check_route_conflicts(config_path, routes, pages)

    engine = TemplateEngine(site_dir, data, registry=registry, root_url=resolved_root)
    engine.update_collections(pages)
    for page in pages:
        rendered = _render(page.path, lambda: engine.render_page(page))
        _write_html(output_dir, page.url, rendered, resolved_root)
    for route in routes:
        rendered = _render(config_path, lambda: engine.render_route(route))
        _write_html(output_dir, route.url, rendered, resolved_root)

    styles = [*elements.style_descriptors(), NAVIGATOR_STYLE]
    AssetPipeline(project_root, output_dir, style_descriptors=styles).run()
    return BuildResult(
        pages=pages, output_dir=output_dir, data=data, routes=routes, registry=registry
    )


def _render(source_path: Path, render) -> str:
    try:
        return render()
    except TemplateSyntaxError as exc:
        raise BuildError(
            source_path,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(source_path, _format_error_message(exc), exc) from exc


def _check_route_conflicts(
    config_path: Path, routes: list[NavigationRoute], pages: list[Page]
) -> None:
    by_url = {page.url: page for page in pages}
    seen: set[str] = set()
    for route in routes:
        if route.url in seen:
            raise BuildError(config_path, f"Route '{route.url}' is declared twice")
        seen.add(route.url)
        page = by_url.get(route.url)
        if page is not None:
            raise BuildError(
                config_path,
                f"Route '{route.url}' conflicts with page {page.path.name}",
            )


def _warn_duplicate_names(routes: list[NavigationRoute]) -> None:
    for route in routes:
        for name in duplicate_names(route.group):
            print(
                f"Warning: duplicate entry name '{name}' in navigation group "
                f"'{route.group.key}' (route {route.url})"
            )


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"
    return f"{error_type}: {error_msg}"


def _write_html(output_dir: Path, url: str, rendered: str, root_url: str) -> None:
    if root_url:
        rendered = absolutize_html_urls(rendered, root_url)
    target_dir = output_dir / url.strip("/")
    target_dir.mkdir(parents=True, exist_ok=True)
    with open(target_dir / "index.html", "w", encoding="utf-8") as f:
        f.write(rendered)
