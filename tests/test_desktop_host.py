import asyncio
from pathlib import Path

import pytest

from livepreview.components.desktop_host import DesktopHost
from livepreview.components.sync_scheduler import SyncScheduler
from livepreview.components.tab_store import TabSessionStore


class StubWatcher:
    def __init__(self) -> None:
        self.watched = []
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def watch(self, path: Path) -> None:
        self.watched.append(path)

    def stop(self) -> None:
        self.stopped = True


class StubWindow:
    def __init__(self, dialog_result=None) -> None:
        self.loaded = []
        self.shown = 0
        self.dialog_result = dialog_result
        self.dialog_kwargs = None

    def load_html(self, html: str) -> None:
        self.loaded.append(html)

    def show(self) -> None:
        self.shown += 1

    def create_file_dialog(self, dialog_type, **kwargs):
        self.dialog_kwargs = kwargs
        return self.dialog_result


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def host(loop) -> DesktopHost:
    return DesktopHost(loop, watcher=StubWatcher())


def test_open_document_watches_and_focuses(site: Path, host: DesktopHost) -> None:
    focus_events = []
    host.subscribe_focus_changed(lambda: focus_events.append(host.focused_path))

    opened = host.open_document(site / "index.html")
    host.open_document(site / "index.html")

    assert opened == (site / "index.html").resolve()
    assert host.open_documents == [opened]
    assert host.watcher.watched == [opened]
    assert focus_events == [opened]


def test_open_missing_document_raises(tmp_path: Path, host: DesktopHost) -> None:
    with pytest.raises(FileNotFoundError):
        host.open_document(tmp_path / "nope.html")

    assert host.open_documents == []


def test_focus_requires_open_document(site: Path, host: DesktopHost) -> None:
    host.focus_document(site / "index.html")

    assert host.focused_path is None


def test_focused_document_reads_disk(site: Path, host: DesktopHost) -> None:
    assert host.focused_document() is None

    host.open_document(site / "notes.txt")
    notes = host.focused_document()
    host.open_document(site / "index.html")
    page = host.focused_document()

    assert notes.language_id == "txt"
    assert not notes.is_html()
    assert page.is_html()
    assert page.file_name == "index.html"
    assert "<h1>Hello</h1>" in page.text


def test_unreadable_focused_document_is_none(site: Path, host: DesktopHost) -> None:
    page = host.open_document(site / "index.html")
    page.write_bytes(b"\xff\xfe\xfa")

    assert host.focused_document() is None


def test_change_events_reach_only_open_documents(site: Path, host: DesktopHost) -> None:
    changes = []
    unsubscribe = host.subscribe_document_changed(changes.append)
    page = host.open_document(site / "index.html")

    host._emit_document_changed(page)
    host._emit_document_changed((site / "notes.txt").resolve())
    unsubscribe()
    unsubscribe()
    host._emit_document_changed(page)

    assert changes == [page]


def test_watcher_events_are_delivered_on_loop(site: Path, host: DesktopHost, loop) -> None:
    changes = []
    host.subscribe_document_changed(changes.append)
    page = host.open_document(site / "index.html")

    host._on_file_event(page)
    assert changes == []

    loop.run_until_complete(asyncio.sleep(0))
    assert changes == [page]


def test_surface_uri_is_file_uri(site: Path, host: DesktopHost) -> None:
    uri = host.as_surface_uri(site / "css" / ".." / "pic.png")

    assert uri.startswith("file://")
    assert uri.endswith("/pic.png")
    assert ".." not in uri


def test_display_and_reveal_use_window(host: DesktopHost) -> None:
    host.display("<p>ignored</p>")
    host.reveal()

    window = StubWindow()
    host.set_window(window)
    host.display("<p>shown</p>")
    host.reveal()

    assert window.loaded == ["<p>shown</p>"]
    assert window.shown == 1


def test_pick_and_open_file_opens_choice(site: Path, host: DesktopHost, loop) -> None:
    pytest.importorskip("webview")
    window = StubWindow(dialog_result=(str(site / "index.html"),))
    host.set_window(window)

    picked = loop.run_until_complete(host.pick_and_open_file(site))

    assert picked == (site / "index.html").resolve()
    assert host.focused_path == picked
    assert window.dialog_kwargs["directory"] == str(site)
    assert window.dialog_kwargs["allow_multiple"] is False


def test_pick_and_open_file_cancelled(site: Path, host: DesktopHost, loop) -> None:
    pytest.importorskip("webview")
    host.set_window(StubWindow(dialog_result=None))

    assert loop.run_until_complete(host.pick_and_open_file(site)) is None
    assert host.open_documents == []


def test_pick_without_window_returns_none(host: DesktopHost, loop) -> None:
    assert loop.run_until_complete(host.pick_and_open_file(None)) is None


def test_close_stops_watcher_and_listeners(host: DesktopHost) -> None:
    host.subscribe_focus_changed(lambda: None)
    host.start()

    host.close()

    assert host.watcher.started
    assert host.watcher.stopped
    assert host._focus_listeners == []


def test_half_written_document_still_arms_sync(site: Path, host: DesktopHost, fake_loop) -> None:
    page = host.open_document(site / "index.html")
    store = TabSessionStore()
    scheduler = SyncScheduler(store, host.callbacks(), fake_loop, quiet_period=0.3)

    page.write_bytes(b"<p>\xe2\x82")
    scheduler.on_document_changed(page)
    assert host.focused_document_path() == page
    assert scheduler.has_pending

    page.write_text("<p>€</p>", encoding="utf-8")
    fake_loop.advance(0.3)
    assert store.active_tab().content == "<p>€</p>"
