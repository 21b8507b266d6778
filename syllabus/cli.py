"""Command-line interface for Syllabus.

Commands:
- new: Scaffold a new curriculum site.
- build: Build the site into the output directory.
- serve: Run the development server with live reload.
- nav: Print the navigation groups of the content registry.
- lesson: Create a lesson file interactively and optionally register it.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from pathlib import Path

import click
import questionary

from . import __version__
from .registry import NavigationEntry, RegistryError

_TEMPLATES_DIR = Path(__file__).parent / "templates" / "default"

_NO_GROUP = "(do not add to navigation)"


@click.group()
@click.version_option(version=__version__, prog_name="syllabus")
def cli():
    """Syllabus curriculum site generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Syllabus project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Syllabus site created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft lessons")
def build(drafts: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root, include_drafts=drafts)
    except BuildError as exc:
        _echo_build_error(exc, project_root)
        raise SystemExit(1) from None
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(
        f"Built {len(result.pages)} pages and {len(result.routes)} navigation pages "
        f"into {result.output_dir}"
    )


def _echo_build_error(exc, project_root: Path) -> None:
    try:
        rel_path = exc.source_path.relative_to(project_root)
    except ValueError:
        rel_path = exc.source_path
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft lessons")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides syllabus.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides syllabus.yaml ws_port)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(project_root, http_port=port, ws_port=ws_port)
    server.start(include_drafts=drafts)


@cli.command()
@click.argument("group", required=False)
def nav(group: str | None):
    """Print navigation groups and their entries in display order."""
    registry = _load_registry_or_fail(Path.cwd())
    if group is not None:
        if group not in registry:
            raise click.ClickException(f"Unknown navigation group: {group}")
        keys = [group]
    else:
        keys = list(registry)
    if not keys:
        click.echo("No navigation groups defined.")
        return
    for key in keys:
        click.echo(click.style(key, bold=True))
        for entry in registry[key]:
            click.echo(f"  {entry.name} -> {entry.href}")


@cli.command()
def lesson():
    """Create a new lesson file interactively."""
    project_root = Path.cwd()
    site_dir = project_root / "site"

    if not site_dir.exists():
        raise click.ClickException(
            "No site/ directory found. Run this command from a Syllabus project root."
        )

    folders = _get_content_folders(site_dir)
    if not folders:
        raise click.ClickException(
            "No block folders found in site/. Create a folder like site/block-one/ first."
        )

    folder = questionary.select(
        "Select block folder:",
        choices=folders,
        style=_questionary_style(),
    ).ask()
    if folder is None:
        raise click.Abort()

    title = questionary.text(
        "Lesson title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    from .utils import slugify

    slug = slugify(title)
    if slug == "index":
        raise click.ClickException(
            f"Cannot derive a file name from '{title}'. "
            "Use a title containing ASCII letters or digits."
        )
    target_path = site_dir / folder / f"{slug}.md"
    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {target_path.relative_to(project_root)}"
        )

    registry = _load_registry_or_fail(project_root)
    group = questionary.select(
        "Add to navigation group:",
        choices=[*registry.keys(), _NO_GROUP],
        style=_questionary_style(),
    ).ask()
    if group is None:
        raise click.Abort()

    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_text(f"# {title}\n\n", encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")

    if group != _NO_GROUP:
        from .registry import append_entry

        href = f"/{folder}/{slug}"
        append_entry(_content_file(project_root), group, NavigationEntry(title, href))
        click.echo(f"Added '{title}' -> {href} to {group}")


def _content_file(project_root: Path) -> Path:
    from .build import load_config

    config = load_config(project_root)
    return project_root / str(config.get("content_file") or "data/content.yaml")


def _load_registry_or_fail(project_root: Path):
    from .registry import load_registry

    path = _content_file(project_root)
    try:
        return load_registry(path)
    except RegistryError as exc:
        raise click.ClickException(f"{path.name}: {exc}") from None


def _get_content_folders(site_dir: Path) -> list[str]:
    """Return block folders in the site directory (``_`` folders excluded)."""
    return sorted(
        path.name
        for path in site_dir.iterdir()
        if path.is_dir() and not path.name.startswith("_")
    )


def _questionary_style():
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new project.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _TEMPLATES_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        dest_path = root / src_path.relative_to(_TEMPLATES_DIR)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)

    package_json = {
        "name": root.name,
        "private": True,
        "scripts": {
            "build:css": "tailwindcss -i assets/css/main.css -o output/assets/css/main.css --minify",
        },
        "devDependencies": {
            "tailwindcss": "^3.4.13",
        },
    }
    (root / "package.json").write_text(
        json.dumps(package_json, indent=2) + "\n", encoding="utf-8"
    )

    _try_npm_install(root)
    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("SYLLABUS_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run([git_bin, "init"], cwd=root, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        # Non-fatal: user can run git init manually
        pass


def _try_npm_install(root: Path) -> None:
    """Attempt to install Node dependencies if npm is available."""
    if os.environ.get("SYLLABUS_SKIP_NPM_INSTALL") == "1":
        return
    npm_bin = shutil.which("npm")
    if not npm_bin:
        return
    try:
        subprocess.run([npm_bin, "install"], cwd=root, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        # Non-fatal: user can run npm install manually
        pass
