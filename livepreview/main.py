"""
pywebview GUI for live HTML preview
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
import webview

from .components.desktop_host import DesktopHost
from .components.js_bridge import EventLoopThread, PreviewApi
from .components.preview_session import PreviewSession
from .components.session_registry import SessionRegistry
from .config import Config

config = Config()
log = logging.getLogger(__name__)

SESSION_KEY = "main"

LOADING_HTML = """<!DOCTYPE html>
<html>
<body style="background: #1e1e1e; color: #ccc; font-family: sans-serif;">
    <p style="padding: 20px;">Loading preview...</p>
</body>
</html>"""

app = typer.Typer(add_completion=False, help="Live, sandboxed preview of HTML files.")


def configure_logging(debug: bool, log_file: Optional[str]) -> None:
    """Configure logging to show backend logs"""
    log_level = logging.DEBUG if debug else logging.INFO
    if log_file:
        logging.basicConfig(
            level=log_level,
            filename=log_file,
            filemode="w",
            format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        logging.basicConfig(
            level=log_level,
            format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


class PreviewApp:
    """Wires the desktop host, the session registry and the webview window."""

    def __init__(self, files: List[Path], root_location: Optional[Path]):
        self.files = files
        self.root_location = root_location

        self.events = EventLoopThread()
        self.host = DesktopHost(self.events.loop, config)
        self.registry = SessionRegistry(self._create_session)
        self.api = PreviewApi(self.registry, self.events, SESSION_KEY)
        self.window = None

    def _create_session(self, key: str, root_location: Optional[Path]) -> PreviewSession:
        return PreviewSession(
            key, root_location, self.host.callbacks(), self.events.loop, config
        )

    def run(self, debug: bool) -> None:
        self.window = webview.create_window(
            config.WINDOW_TITLE,
            html=LOADING_HTML,
            js_api=self.api,
            width=config.GUI_WINDOW_WIDTH,
            height=config.GUI_WINDOW_HEIGHT,
            min_size=(config.GUI_MIN_WIDTH, config.GUI_MIN_HEIGHT),
        )
        self.host.set_window(self.window)
        self.window.events.closed += self._on_closed

        self.events.start()
        self.host.start()

        log.info("Starting webview main loop")
        webview.start(self._on_started, debug=debug)

    def _on_started(self) -> None:
        self.events.call(self._open_initial_documents).result()

    def _open_initial_documents(self) -> None:
        for path in self.files:
            try:
                self.host.open_document(path)
            except FileNotFoundError as e:
                log.error(str(e))
        self.registry.create_or_show(SESSION_KEY, self.root_location)

    def _on_closed(self) -> None:
        log.info("Window closed, shutting down")
        try:
            self.events.call(self.registry.dispose_all).result(timeout=5)
        finally:
            self.host.close()
            self.events.stop()


@app.command()
def main(
    files: Optional[List[Path]] = typer.Argument(
        None, exists=True, dir_okay=False, help="HTML files to open; the last one is previewed"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", file_okay=False, help="Directory the file picker starts in"
    ),
    debug: bool = typer.Option(config.DEBUG, "--debug", help="Verbose logs and devtools"),
    log_file: Optional[str] = typer.Option(config.LOG_FILE, "--log-file", help="Write logs to this file"),
) -> None:
    """Open the preview window."""
    configure_logging(debug, log_file)
    config.load()
    files = files or []
    root_location = root or (files[-1].resolve().parent if files else Path.cwd())

    log.info(f"Starting live preview in {'debug' if debug else 'production'} mode")
    PreviewApp(files, root_location).run(debug)


if __name__ == "__main__":
    app()
