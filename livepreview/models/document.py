"""Source document snapshot handed to the core by the host."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


HTML_LANGUAGE_ID = "html"


def language_id_for(path: Path, html_extensions: Iterable[str]) -> str:
    """Map a file path to a content type identifier."""
    suffix = path.suffix.lower()
    if suffix in {ext.lower() for ext in html_extensions}:
        return HTML_LANGUAGE_ID
    return suffix.lstrip(".") or "plaintext"


@dataclass
class SourceDocument:
    """Full text of a document as of the moment it was read."""

    path: Path
    text: str
    language_id: str

    @property
    def file_name(self) -> str:
        return self.path.name

    def is_html(self) -> bool:
        return self.language_id == HTML_LANGUAGE_ID
