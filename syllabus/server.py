"""Development server for Syllabus.

Serves the built site locally and rebuilds it when sources change:
- HTML responses get a live-reload script injected before ``</body>``.
- Directory listings and missing paths get a 404 (``404.html`` when present).
- ``site/``, ``assets/``, ``data/`` and ``syllabus.yaml`` are watched; a
  change rebuilds into a staging directory, swaps it in and tells connected
  browsers to reload over a websocket.

Key classes:
- DevServer: Runs the build, the HTTP server, the live reload hub and the watcher.
- LiveReload: Websocket hub that broadcasts reload messages.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import CONFIG_FILENAME, build_site, load_config

WATCHED_FOLDERS = ("site", "assets", "data")

IGNORED_PARTS = frozenset({"node_modules", ".git", "__pycache__"})

RELOAD_SCRIPT_TEMPLATE = """
<script>
(() => {{
  const socket = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  socket.addEventListener('message', (event) => {{
    if (JSON.parse(event.data).type === 'reload') location.reload();
  }});
}})();
</script>
"""


def inject_reload_script(html: str, script: str) -> str:
    """Insert the reload script before ``</body>``, or append it."""
    head, marker, tail = html.rpartition("</body>")
    if not marker:
        return html + script
    return f"{head}{script}{marker}{tail}"


def source_signature(project_root: Path) -> tuple | None:
    """Snapshot ``(path, mtime, size)`` of every watched source file.

    Returns:
        The snapshot, or None when there are no source files.
    """
    candidates = [project_root / CONFIG_FILENAME]
    for folder in WATCHED_FOLDERS:
        root = project_root / folder
        if root.is_dir():
            candidates.extend(sorted(root.rglob("*")))
    entries = []
    for path in candidates:
        try:
            stat = path.stat()
        except OSError:
            continue
        if path.is_dir():
            continue
        rel = path.relative_to(project_root).as_posix()
        entries.append((rel, stat.st_mtime_ns, stat.st_size))
    return tuple(entries) or None


class _LiveReloadRequestHandler(SimpleHTTPRequestHandler):
    reload_script = ""

    def end_headers(self):
        self.send_header("Cache-Control", "no-store")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - send_head answers first
        return self._not_found()

    def send_head(self):
        target = Path(self.translate_path(self.path))
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            return self._not_found()
        if target.suffix != ".html":
            return super().send_head()
        self._write_html(200, target.read_text(encoding="utf-8"))
        return None

    def _not_found(self):
        page = Path(self.directory) / "404.html"
        if page.is_file():
            self._write_html(404, page.read_text(encoding="utf-8"))
        else:
            self.send_error(404, "File not found")
        return None

    def _write_html(self, status: int, html: str) -> None:
        body = inject_reload_script(html, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def make_request_handler(directory: Path, reload_script: str):
    """Request handler class serving ``directory`` with the reload script."""
    handler_cls = type(
        "LiveReloadRequestHandler",
        (_LiveReloadRequestHandler,),
        {"reload_script": reload_script},
    )
    return functools.partial(handler_cls, directory=str(directory))


class LiveReload:
    """Websocket hub telling connected browsers to reload.

    The hub owns an event loop that runs in its own thread; ``notify`` may be
    called from any thread.

    Attributes:
        port: Websocket port.
        script: Snippet injected into served HTML pages.
        clients: Currently connected websockets.
    """

    def __init__(self, port: int):
        self.port = port
        self.script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=port)
        self.clients: set = set()
        self.loop = asyncio.new_event_loop()

    def run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self._serve())
        except OSError as exc:
            print(f"Live reload server failed to start on port {self.port}: {exc}")

    async def _serve(self) -> None:  # pragma: no cover - binds a socket
        async with websockets.serve(self._register, "0.0.0.0", self.port):
            await asyncio.Future()

    async def _register(self, websocket) -> None:
        self.clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self.clients.discard(websocket)

    def notify(self) -> None:
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self.broadcast(message), self.loop)

    async def broadcast(self, message: str) -> None:
        """Send ``message`` to every client, dropping the ones that fail."""
        for websocket in list(self.clients):
            try:
                await websocket.send(message)
            except Exception:
                self.clients.discard(websocket)

    def close(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)


class DevServer:
    """Development server with live reload.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        output_dir: Directory that is served.
        http_port: Port of the HTTP server.
        ws_port: Port of the live reload websocket.
        live_reload: The websocket hub.
    """

    debounce_seconds = 0.05
    settle_seconds = 0.05

    def __init__(
        self,
        project_root: Path,
        http_port: int | None = None,
        ws_port: int | None = None,
    ):
        """Initialize the development server.

        Args:
            project_root: Root directory of the project.
            http_port: Override for the configured ``port``.
            ws_port: Override for the websocket port. Without it, an explicit
                ``http_port`` implies ``http_port + 1``; otherwise the
                configured ``ws_port`` is used, then ``port + 1``.
        """
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config.get("output_dir", "output")
        self.staging_dir = self.output_dir.with_name(f"{self.output_dir.name}.staging")
        self.previous_dir = self.output_dir.with_name(f"{self.output_dir.name}.previous")
        self.http_port = int(http_port or self.config.get("port", 4000))
        if ws_port is None:
            configured = None if http_port is not None else self.config.get("ws_port")
            ws_port = int(configured or self.http_port + 1)
        self.ws_port = ws_port
        self.live_reload = LiveReload(ws_port)
        self._observer: Observer | None = None
        self._build_lock = threading.Lock()
        self._last_build_at = 0.0
        self._signature: tuple | None = None

    @property
    def root_url(self) -> str:
        return f"http://localhost:{self.http_port}"

    def start(self, include_drafts: bool = False) -> None:  # pragma: no cover - blocks
        self.build(include_drafts)
        self._signature = source_signature(self.project_root)
        threading.Thread(target=self._serve_http, daemon=True).start()
        threading.Thread(target=self.live_reload.run, daemon=True).start()
        self._start_watcher(include_drafts)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        self.live_reload.close()

    def build(self, include_drafts: bool) -> None:
        """Build into the staging directory, then swap it in place of the output."""
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)
        self.staging_dir.mkdir(parents=True)
        build_site(
            self.project_root,
            include_drafts=include_drafts,
            root_url=self.root_url,
            clean_output=True,
            output_dir_override=self.staging_dir,
        )
        if self.previous_dir.exists():
            shutil.rmtree(self.previous_dir)
        # rename() cannot replace a non-empty directory; move the old one aside.
        if self.output_dir.exists():
            os.replace(self.output_dir, self.previous_dir)
        os.replace(self.staging_dir, self.output_dir)
        shutil.rmtree(self.previous_dir, ignore_errors=True)

    def rebuild(self, include_drafts: bool) -> bool:
        """Rebuild and notify browsers when sources changed.

        Returns:
            True if a build ran.
        """
        if time.time() - self._last_build_at < self.debounce_seconds:
            return False
        if not self._build_lock.acquire(blocking=False):
            return False
        try:
            signature = source_signature(self.project_root)
            if signature is not None and signature == self._signature:
                return False
            print("Change detected; rebuilding...")
            self.build(include_drafts)
            self._signature = signature
            if self.settle_seconds:
                time.sleep(self.settle_seconds)
            self.live_reload.notify()
            return True
        finally:
            self._last_build_at = time.time()
            self._build_lock.release()

    def _serve_http(self) -> None:  # pragma: no cover - binds a socket
        handler = make_request_handler(self.output_dir, self.live_reload.script)
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at {self.root_url}")
        httpd.serve_forever()

    def _start_watcher(self, include_drafts: bool) -> None:
        handler = _SourceChangeHandler(self, include_drafts)
        observer = Observer()
        for folder in WATCHED_FOLDERS:
            path = self.project_root / folder
            if path.is_dir():
                observer.schedule(handler, str(path), recursive=True)
        # syllabus.yaml lives in the root; watch it without recursing into output.
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer


class _SourceChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer, include_drafts: bool):
        super().__init__()
        self.server = server
        self.include_drafts = include_drafts
        self.ignored_dirs = (server.output_dir, server.staging_dir, server.previous_dir)

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        if IGNORED_PARTS.intersection(path.parts):
            return
        if any(path.is_relative_to(ignored) for ignored in self.ignored_dirs):
            return
        self.server.rebuild(self.include_drafts)
