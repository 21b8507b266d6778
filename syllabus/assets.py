"""Asset pipeline for Syllabus.

Copies ``assets/`` into the output directory. The Tailwind entry stylesheet
(``assets/css/main.css``) is compiled with the Tailwind CLI. The style
descriptors used by the element rules and the list navigator live in Python
code, not in the site sources, so they are written to a scan file that is
handed to Tailwind alongside the site's own content globs.

Key classes:
- BaseAssetProcessor: Interface for processing one asset type.
- TailwindCSSProcessor: Builds main.css with the Tailwind CLI.
- StaticAssetProcessor: Copies any other file.
- AssetProcessorRegistry: Picks the processor for a file by priority.
- AssetPipeline: Runs the processors over ``assets/``.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH, then in the project's node_modules/.bin.

    Args:
        name: Executable name (e.g. 'tailwindcss').
        project_root: Project root to search for a local install.

    Returns:
        Full path to the executable, or None.
    """
    found = shutil.which(name)
    if found:
        return found
    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)
    return None


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> bool:
        """Process ``source`` into ``dest``.

        Returns:
            True if processing was successful.
        """
        ...

    def ensure_dest_dir(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)


class TailwindCSSProcessor(BaseAssetProcessor):
    """Compiles ``main.css`` with the Tailwind CLI.

    Falls back to copying the file when the CLI is missing or fails.

    Attributes:
        project_root: Project root, used for executable lookup and content globs.
        style_descriptors: Class strings that must survive Tailwind's purge.
    """

    def __init__(self, project_root: Path, style_descriptors: Iterable[str] = ()):
        self.project_root = project_root
        self.style_descriptors = list(style_descriptors)

    @property
    def priority(self) -> int:
        return 95

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".css" and path.name == "main.css"

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)

        tailwind_bin = find_executable("tailwindcss", self.project_root)
        if not tailwind_bin:
            print("Tailwind CSS CLI not found; skipping CSS build.")
            print(
                "Install with `npm install -D tailwindcss` in the project. "
                "Falling back to unprocessed CSS."
            )
            shutil.copy2(source, dest)
            return True

        with tempfile.TemporaryDirectory(prefix="syllabus-") as scan_dir:
            scan_file = Path(scan_dir) / "styles.html"
            scan_file.write_text(self._scan_markup(), encoding="utf-8")
            content_globs = [
                str(self.project_root / "site" / "**" / "*.md"),
                str(self.project_root / "site" / "**" / "*.jinja"),
                str(self.project_root / "site" / "**" / "*.html"),
                str(scan_file),
            ]
            cmd = [
                tailwind_bin,
                "-i",
                str(source),
                "-o",
                str(dest),
                "--minify",
                "--content",
                ",".join(content_globs),
            ]
            result = subprocess.run(cmd, capture_output=True, text=True)

        if result.returncode != 0:
            print("Tailwind build failed:", result.stderr.strip())
            shutil.copy2(source, dest)
        return True

    def _scan_markup(self) -> str:
        return "\n".join(f'<div class="{style}"></div>' for style in self.style_descriptors)


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies files unchanged. Fallback for every asset type."""

    @property
    def priority(self) -> int:
        return 0

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        shutil.copy2(source, dest)
        return True


class AssetProcessorRegistry:
    """Processors sorted by priority; the first that accepts a file wins."""

    def __init__(self):
        self._processors: list[BaseAssetProcessor] = []

    def register(self, processor: BaseAssetProcessor) -> None:
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> BaseAssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset, returning False when no processor accepts it."""
        processor = self.get_processor(source)
        if processor:
            return processor.process(source, dest)
        return False


def create_default_registry(
    project_root: Path, style_descriptors: Iterable[str] = ()
) -> AssetProcessorRegistry:
    registry = AssetProcessorRegistry()
    registry.register(TailwindCSSProcessor(project_root, style_descriptors))
    registry.register(StaticAssetProcessor())
    return registry


class AssetPipeline:
    """Processes everything under ``assets/`` into ``<output>/assets/``.

    Attributes:
        project_root: Root directory of the project.
        assets_dir: Source assets directory.
        output_dir: Build output directory.
        processor_registry: Processors to apply.
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        style_descriptors: Iterable[str] = (),
        processor_registry: AssetProcessorRegistry | None = None,
    ):
        """Initialize the asset pipeline.

        Args:
            project_root: Root directory of the project.
            output_dir: Directory where built assets will be placed.
            style_descriptors: Class strings for Tailwind to keep.
            processor_registry: Optional custom processor registry.
        """
        self.project_root = project_root
        self.assets_dir = project_root / "assets"
        self.output_dir = output_dir
        self.processor_registry = processor_registry or create_default_registry(
            project_root, style_descriptors
        )

    def run(self) -> None:
        if not self.assets_dir.exists():
            return
        target = self.output_dir / "assets"
        target.mkdir(parents=True, exist_ok=True)
        for item in sorted(self.assets_dir.rglob("*")):
            if item.is_dir():
                continue
            self.processor_registry.process(item, target / item.relative_to(self.assets_dir))
