from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from livepreview.config import Config
from livepreview.models.callbacks import HostCallbacks
from livepreview.models.document import SourceDocument, language_id_for


class FakeTimerHandle:
    def __init__(self, when: float, callback: Callable[..., None], args: tuple):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Deterministic stand-in for the event loop's timer API."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: List[FakeTimerHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., None], *args) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def live_handles(self) -> List[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (h for h in self.live_handles if h.when <= target + 1e-9),
                key=lambda h: h.when,
            )
            if not due:
                break
            handle = due[0]
            self.now = max(self.now, handle.when)
            handle.cancelled = True
            handle.callback(*handle.args)
        self.now = target


class FakeHost:
    """In-memory host: documents are kept on disk under tmp_path."""

    def __init__(self) -> None:
        self.focused_path: Optional[Path] = None
        self.displayed: List[str] = []
        self.revealed = 0
        self.change_listeners: List[Callable[[Path], None]] = []
        self.focus_listeners: List[Callable[[], None]] = []
        self.next_pick: Optional[Path] = None
        self.pick_calls: List[Optional[Path]] = []
        self.reads = 0

    def focused_document(self) -> Optional[SourceDocument]:
        if self.focused_path is None:
            return None
        self.reads += 1
        return SourceDocument(
            path=self.focused_path,
            text=self.focused_path.read_text(encoding="utf-8"),
            language_id=language_id_for(self.focused_path, [".html", ".htm"]),
        )

    def focused_document_path(self) -> Optional[Path]:
        return self.focused_path

    def focus(self, path: Path) -> None:
        if path == self.focused_path:
            return
        self.focused_path = path
        for listener in list(self.focus_listeners):
            listener()

    def edit(self, path: Path, text: str) -> None:
        path.write_text(text, encoding="utf-8")
        for listener in list(self.change_listeners):
            listener(path)

    def subscribe_document_changed(self, listener):
        self.change_listeners.append(listener)
        return lambda: self.change_listeners.remove(listener)

    def subscribe_focus_changed(self, listener):
        self.focus_listeners.append(listener)
        return lambda: self.focus_listeners.remove(listener)

    def as_surface_uri(self, path: Path) -> str:
        return f"surface://{path.as_posix().lstrip('/')}"

    async def pick_and_open_file(self, start_dir: Optional[Path]) -> Optional[Path]:
        self.pick_calls.append(start_dir)
        if self.next_pick is not None:
            self.focus(self.next_pick)
        return self.next_pick

    def file_exists(self, path: Path) -> bool:
        return path.is_file()

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def display(self, html: str) -> None:
        self.displayed.append(html)

    def reveal(self) -> None:
        self.revealed += 1

    def callbacks(self) -> HostCallbacks:
        return HostCallbacks(
            focused_document=self.focused_document,
            focused_document_path=self.focused_document_path,
            subscribe_document_changed=self.subscribe_document_changed,
            subscribe_focus_changed=self.subscribe_focus_changed,
            as_surface_uri=self.as_surface_uri,
            pick_and_open_file=self.pick_and_open_file,
            file_exists=self.file_exists,
            read_text=self.read_text,
            display=self.display,
            reveal=self.reveal,
        )


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in (
        "PREVIEW_DEBUG",
        "PREVIEW_LOG_FILE",
        "PREVIEW_DEBOUNCE_MS",
        "PREVIEW_INLINE_SCRIPTS",
        "PREVIEW_SANDBOX_POLICY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(Config, "_instance", None)
    monkeypatch.setattr(Config, "_CONFIG_FILE_PATH", tmp_path / "config" / "livepreview.json")
    yield
    Config._instance = None


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small site: index.html with a stylesheet, a script and an image."""
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "js").mkdir()
    (root / "css" / "style.css").write_text("body{color:red}", encoding="utf-8")
    (root / "js" / "app.js").write_text("console.log('app');", encoding="utf-8")
    (root / "pic.png").write_bytes(b"\x89PNG\r\n")
    (root / "index.html").write_text(
        "<html><head><link rel=\"stylesheet\" href=\"css/style.css\"></head>"
        "<body><h1>Hello</h1><img src=\"pic.png\"></body></html>",
        encoding="utf-8",
    )
    (root / "notes.txt").write_text("plain text", encoding="utf-8")
    return root
