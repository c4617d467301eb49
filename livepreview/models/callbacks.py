"""Callback definitions for the host primitives a preview session consumes."""

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional

from .document import SourceDocument

Unsubscribe = Callable[[], None]


@dataclass
class HostCallbacks:
    """Callbacks the host provides to preview sessions"""

    focused_document: Callable[[], Optional[SourceDocument]]
    focused_document_path: Callable[[], Optional[Path]]
    subscribe_document_changed: Callable[[Callable[[Path], None]], Unsubscribe]
    subscribe_focus_changed: Callable[[Callable[[], None]], Unsubscribe]
    as_surface_uri: Callable[[Path], str]
    pick_and_open_file: Callable[[Optional[Path]], Awaitable[Optional[Path]]]
    file_exists: Callable[[Path], bool]
    read_text: Callable[[Path], str]
    display: Callable[[str], None]
    reveal: Callable[[], None]
