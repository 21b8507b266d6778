import asyncio
from pathlib import Path

import pytest

from syllabus.server import (
    DevServer,
    LiveReload,
    _LiveReloadRequestHandler,
    _SourceChangeHandler,
    inject_reload_script,
    make_request_handler,
    source_signature,
)


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


@pytest.fixture
def quiet_server(tmp_path, monkeypatch):
    """A DevServer whose builds and reload notifications are recorded."""
    server = DevServer(tmp_path)
    server.debounce_seconds = 0
    server.settle_seconds = 0
    calls = []
    monkeypatch.setattr("syllabus.server.build_site", lambda *args, **kwargs: calls.append("built"))
    monkeypatch.setattr(server.live_reload, "notify", lambda: calls.append("reloaded"))
    server.calls = calls
    return server


def _handler(tmp_path, path, out_name="out.bin"):
    handler = _LiveReloadRequestHandler.__new__(_LiveReloadRequestHandler)
    handler.path = path
    handler.directory = str(tmp_path)
    handler.command = "GET"
    handler.request_version = "HTTP/1.1"
    handler.headers = {}
    handler._headers_buffer = []
    handler.wfile = tmp_path.joinpath(out_name).open("wb")
    handler.reload_script = "<script>reload</script>"
    handler.statuses = []

    def send_header(key, value):
        handler._headers_buffer.append(f"{key}: {value}\r\n".encode())

    handler.send_header = send_header
    handler.send_response = lambda code, message=None: handler.statuses.append(code)
    return handler


def test_inject_reload_script():
    assert inject_reload_script("<body>Hi</body>", "<s/>") == "<body>Hi<s/></body>"
    assert inject_reload_script("<p>Hi</p>", "<s/>") == "<p>Hi</p><s/>"


def test_dev_server_ports(tmp_path):
    server = DevServer(tmp_path)
    assert (server.http_port, server.ws_port) == (4000, 4001)
    assert server.root_url == "http://localhost:4000"

    assert DevServer(tmp_path, http_port=5055).ws_port == 5056

    explicit = DevServer(tmp_path, http_port=5055, ws_port=6000)
    assert explicit.ws_port == 6000
    assert ":6000" in explicit.live_reload.script

    (tmp_path / "syllabus.yaml").write_text("port: 8000\nws_port: 9000\noutput_dir: public\n", encoding="utf-8")
    configured = DevServer(tmp_path)
    assert (configured.http_port, configured.ws_port) == (8000, 9000)
    assert configured.output_dir == tmp_path / "public"
    assert configured.staging_dir == tmp_path / "public.staging"
    assert DevServer(tmp_path, http_port=7000).ws_port == 7001


def test_build_swaps_staging_into_output(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    server.output_dir.mkdir()
    (server.output_dir / "stale.html").write_text("old", encoding="utf-8")
    called = {}

    def fake_build(root, include_drafts=False, root_url=None, clean_output=True, output_dir_override=None):
        called.update(root_url=root_url, clean_output=clean_output, output_dir_override=output_dir_override)
        (output_dir_override / "index.html").write_text("new", encoding="utf-8")

    monkeypatch.setattr("syllabus.server.build_site", fake_build)
    server.build(include_drafts=False)
    assert called == {
        "root_url": "http://localhost:4000",
        "clean_output": True,
        "output_dir_override": server.staging_dir,
    }
    assert server.output_dir.joinpath("index.html").read_text(encoding="utf-8") == "new"
    assert not server.output_dir.joinpath("stale.html").exists()
    assert not server.staging_dir.exists()
    assert not server.previous_dir.exists()


def test_failed_build_keeps_previous_output(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    server.output_dir.mkdir()
    (server.output_dir / "index.html").write_text("old", encoding="utf-8")

    def failing_build(*args, **kwargs):
        raise RuntimeError("broken page")

    monkeypatch.setattr("syllabus.server.build_site", failing_build)
    with pytest.raises(RuntimeError):
        server.build(include_drafts=False)
    assert server.output_dir.joinpath("index.html").read_text(encoding="utf-8") == "old"


def test_rebuild_notifies_after_settling(quiet_server, monkeypatch):
    quiet_server.settle_seconds = 0.01
    slept = []
    monkeypatch.setattr("syllabus.server.time.sleep", lambda secs: slept.append(secs))
    assert quiet_server.rebuild(include_drafts=False) is True
    assert quiet_server.calls == ["built", "reloaded"]
    assert slept == [0.01]


def test_rebuild_skips_unchanged_sources(quiet_server, tmp_path):
    (tmp_path / "site").mkdir()
    lesson = tmp_path / "site" / "git.md"
    lesson.write_text("# Git", encoding="utf-8")

    assert quiet_server.rebuild(include_drafts=False) is True
    assert quiet_server.rebuild(include_drafts=False) is False
    lesson.write_text("# Git, changed", encoding="utf-8")
    assert quiet_server.rebuild(include_drafts=False) is True
    assert quiet_server.calls == ["built", "reloaded", "built", "reloaded"]


def test_rebuild_skipped_while_building_or_debounced(quiet_server):
    quiet_server._build_lock.acquire()
    try:
        assert quiet_server.rebuild(include_drafts=False) is False
    finally:
        quiet_server._build_lock.release()

    quiet_server.debounce_seconds = 60
    quiet_server._last_build_at = 10**12
    assert quiet_server.rebuild(include_drafts=False) is False
    assert quiet_server.calls == []


def test_source_signature(tmp_path):
    assert source_signature(tmp_path) is None

    (tmp_path / "site" / "block-one").mkdir(parents=True)
    (tmp_path / "site" / "block-one" / "git.md").write_text("# Git", encoding="utf-8")
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "content.yaml").write_text("blocks: []", encoding="utf-8")
    (tmp_path / "syllabus.yaml").write_text("port: 4000", encoding="utf-8")
    (tmp_path / "data" / "broken.yaml").symlink_to(tmp_path / "nope.yaml")
    (tmp_path / "output").mkdir()
    (tmp_path / "output" / "index.html").write_text("built", encoding="utf-8")

    names = [entry[0] for entry in source_signature(tmp_path)]
    assert names == ["syllabus.yaml", "site/block-one/git.md", "data/content.yaml"]


def test_change_handler_filters_events(quiet_server, tmp_path):
    seen = []
    quiet_server.rebuild = lambda include_drafts: seen.append(include_drafts)
    handler = _SourceChangeHandler(quiet_server, include_drafts=True)

    for ignored in (
        tmp_path / "output" / "index.html",
        tmp_path / "output.staging" / "index.html",
        tmp_path / "output.previous" / "index.html",
        tmp_path / "node_modules" / "x.js",
        tmp_path / ".git" / "HEAD",
    ):
        handler.on_any_event(DummyEvent(str(ignored)))
    handler.on_any_event(DummyEvent(str(tmp_path / "site"), is_directory=True))
    assert seen == []

    handler.on_any_event(DummyEvent(str(tmp_path / "site" / "block-one" / "git.md")))
    handler.on_any_event(DummyEvent(str(tmp_path / "syllabus.yaml")))
    assert seen == [True, True]


def test_start_watcher_and_stop(monkeypatch, tmp_path):
    (tmp_path / "site").mkdir()
    (tmp_path / "data").mkdir()
    server = DevServer(tmp_path)
    events = []

    class DummyObserver:
        def schedule(self, handler, path, recursive):
            events.append((Path(path).name, recursive))

        def start(self):
            events.append("start")

        def stop(self):
            events.append("stop")

        def join(self):
            events.append("join")

    monkeypatch.setattr("syllabus.server.Observer", DummyObserver)
    server._start_watcher(include_drafts=False)
    server.stop()
    assert events == [
        ("site", True),
        ("data", True),
        (tmp_path.name, False),
        "start",
        "stop",
        "join",
    ]
    server.stop()  # no observer left


def test_request_handler_injects_script(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>Hello</body></html>", encoding="utf-8")
    handler = _handler(tmp_path, "/")
    assert _LiveReloadRequestHandler.send_head(handler) is None
    handler.wfile.close()
    output = tmp_path.joinpath("out.bin").read_bytes()
    assert handler.statuses == [200]
    assert b"Hello<script>reload</script></body>" in output
    assert b"Cache-Control: no-store" in output


def test_request_handler_404_page_and_listing(tmp_path):
    (tmp_path / "404.html").write_text("<body>Not here</body>", encoding="utf-8")
    (tmp_path / "empty-dir").mkdir()

    missing = _handler(tmp_path, "/missing/")
    assert _LiveReloadRequestHandler.send_head(missing) is None
    missing.wfile.close()
    assert missing.statuses == [404]
    assert b"Not here" in tmp_path.joinpath("out.bin").read_bytes()

    listing = _handler(tmp_path, "/empty-dir/", out_name="listing.bin")
    assert _LiveReloadRequestHandler.send_head(listing) is None
    listing.wfile.close()
    assert listing.statuses == [404]


def test_request_handler_missing_without_404_page(tmp_path):
    handler = _handler(tmp_path, "/missing/")
    errors = []
    handler.send_error = lambda code, message=None: errors.append(code)
    assert _LiveReloadRequestHandler.send_head(handler) is None
    handler.wfile.close()
    assert errors == [404]


def test_make_request_handler(tmp_path):
    factory = make_request_handler(tmp_path, "<script>x</script>")
    assert factory.keywords == {"directory": str(tmp_path)}
    assert factory.func.reload_script == "<script>x</script>"
    assert issubclass(factory.func, _LiveReloadRequestHandler)


def test_live_reload_broadcast_drops_failing_clients():
    hub = LiveReload(4001)

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class BadWS:
        async def send(self, msg):
            raise ConnectionError("gone")

    good, bad = GoodWS(), BadWS()
    hub.clients = {good, bad}
    asyncio.run(hub.broadcast("hello"))
    assert good.messages == ["hello"]
    assert hub.clients == {good}


def test_live_reload_register_and_notify(monkeypatch):
    hub = LiveReload(4001)

    class DummyWS:
        def __init__(self):
            self.closed = False

        async def wait_closed(self):
            assert self in hub.clients
            self.closed = True

    ws = DummyWS()
    asyncio.run(hub._register(ws))
    assert ws.closed
    assert ws not in hub.clients

    sent = {}

    def fake_runner(coro, loop):
        sent["loop"] = loop
        new_loop = asyncio.new_event_loop()
        try:
            return new_loop.run_until_complete(coro)
        finally:
            new_loop.close()

    monkeypatch.setattr("syllabus.server.asyncio.run_coroutine_threadsafe", fake_runner)
    hub.notify()
    assert sent["loop"] is hub.loop


def test_live_reload_start_failure(monkeypatch, capsys):
    hub = LiveReload(5057)

    async def fake_serve():
        raise OSError("address in use")

    monkeypatch.setattr(hub, "_serve", fake_serve)
    hub.run()
    assert "Live reload server failed to start on port 5057" in capsys.readouterr().out
