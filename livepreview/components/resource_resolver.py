"""Rewrites relative resource references so a document renders standalone."""

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from urllib.parse import unquote

log = logging.getLogger(__name__)

ABSOLUTE_PREFIXES = ("http://", "https://", "//", "data:")

# One scan over the markup. Comments and whole script elements are matched
# before generic start tags so their contents are never treated as markup.
# Quoted attribute values may contain ">".
_ATTRS = r"""(?:"[^"]*"|'[^']*'|[^'">])*"""
_MARKUP_PATTERN = re.compile(
    r"(?P<comment><!--.*?-->)"
    rf"|(?P<script><script\b(?P<script_attrs>{_ATTRS})>(?P<script_body>.*?)</script\s*>)"
    rf"|(?P<tag><(?P<name>[a-zA-Z][\w:-]*)(?P<attrs>{_ATTRS})>)",
    re.IGNORECASE | re.DOTALL,
)

# Each match consumes a whole attribute, value included, so names are never
# found inside another attribute's value.
_ATTRIBUTE = re.compile(
    r"""(?P<attr_name>[^\s"'<>/=]+)"""
    r"""(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'=<>`]+)))?"""
)


def _find_attribute(attrs: str, name: str) -> Optional["re.Match[str]"]:
    """Return the first attribute called ``name`` that carries a value."""
    for match in _ATTRIBUTE.finditer(attrs):
        if match.group("attr_name").lower() == name and _attribute_value(match) is not None:
            return match
    return None


def _attribute_value(match: "re.Match[str]") -> Optional[str]:
    for group in ("dq", "sq", "bare"):
        if match.group(group) is not None:
            return match.group(group)
    return None


class ReferenceAction(Enum):
    INLINE_STYLE = "inline-style"
    INLINE_SCRIPT = "inline-script"
    REWRITE_URI = "rewrite-uri"
    LEAVE = "leave"


@dataclass
class ResourceReference:
    """A resource reference found in the markup and how it will be handled."""

    tag: str
    attribute: str
    value: str
    path: Optional[Path]
    action: ReferenceAction


def is_absolute_reference(value: str) -> bool:
    return value.lower().startswith(ABSOLUTE_PREFIXES)


def _split_suffix(value: str) -> Tuple[str, str]:
    """Split a reference into its path and its query/fragment suffix."""
    cut = len(value)
    for marker in ("?", "#"):
        position = value.find(marker)
        if position != -1:
            cut = min(cut, position)
    return value[:cut], value[cut:]


def _read_utf8(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class ResourceResolver:
    """Resolves a document's relative stylesheet, script and src references."""

    def __init__(
        self,
        as_surface_uri: Callable[[Path], str],
        file_exists: Callable[[Path], bool] = Path.is_file,
        read_text: Callable[[Path], str] = _read_utf8,
        inline_scripts: bool = True,
    ):
        """
        Initialize the resolver.

        Args:
            as_surface_uri: Maps a filesystem path to a URI the surface may load
            file_exists: Existence check for resolved paths
            read_text: UTF-8 reader for files that get inlined
            inline_scripts: Inline readable local scripts instead of rewriting their src
        """
        self.as_surface_uri = as_surface_uri
        self.file_exists = file_exists
        self.read_text = read_text
        self.inline_scripts = inline_scripts

    def resolve(self, html: str, document_path: Path) -> str:
        """Return ``html`` with every relative reference resolved."""
        base_dir = Path(document_path).parent

        def substitute(match: "re.Match[str]") -> str:
            if match.group("comment") is not None:
                return match.group(0)
            if match.group("script") is not None:
                return self._resolve_script(match, base_dir)
            return self._resolve_tag(match, base_dir)

        return _MARKUP_PATTERN.sub(substitute, html)

    def scan(self, html: str, document_path: Path) -> List[ResourceReference]:
        """Classify every resource reference without substituting anything."""
        base_dir = Path(document_path).parent
        references: List[ResourceReference] = []

        for match in _MARKUP_PATTERN.finditer(html):
            if match.group("comment") is not None:
                continue
            if match.group("script") is not None:
                src = _find_attribute(match.group("script_attrs"), "src")
                if src:
                    references.append(
                        self._classify("script", "src", _attribute_value(src), base_dir)
                    )
                continue

            name = match.group("name").lower()
            attrs = match.group("attrs")
            if name == "link":
                href = _find_attribute(attrs, "href")
                if href and self._is_stylesheet(attrs, _attribute_value(href)):
                    references.append(
                        self._classify("link", "href", _attribute_value(href), base_dir)
                    )
                continue
            src = _find_attribute(attrs, "src")
            if src:
                # A script start tag without a closing tag cannot be inlined.
                references.append(
                    self._classify(
                        name, "src", _attribute_value(src), base_dir, inline_allowed=False
                    )
                )
        return references

    def resolve_path(self, value: str, base_dir: Path) -> Path:
        """Resolve a relative reference against the document directory."""
        path_part, _ = _split_suffix(value)
        # A leading slash is still relative to the document directory.
        relative = unquote(path_part).lstrip("/\\")
        return Path(os.path.normpath(os.path.join(base_dir, relative)))

    def _classify(
        self,
        tag: str,
        attribute: str,
        value: str,
        base_dir: Path,
        inline_allowed: bool = True,
    ) -> ResourceReference:
        if not value.strip() or is_absolute_reference(value.strip()):
            return ResourceReference(tag, attribute, value, None, ReferenceAction.LEAVE)

        path = self.resolve_path(value.strip(), base_dir)
        if tag == "link":
            action = (
                ReferenceAction.INLINE_STYLE
                if self.file_exists(path)
                else ReferenceAction.LEAVE
            )
        elif (
            tag == "script"
            and inline_allowed
            and self.inline_scripts
            and self.file_exists(path)
        ):
            action = ReferenceAction.INLINE_SCRIPT
        else:
            action = ReferenceAction.REWRITE_URI
        return ResourceReference(tag, attribute, value, path, action)

    def _is_stylesheet(self, attrs: str, href: str) -> bool:
        rel = _find_attribute(attrs, "rel")
        if rel and "stylesheet" in _attribute_value(rel).lower().split():
            return True
        path_part, _ = _split_suffix(href.strip())
        return path_part.lower().endswith(".css")

    def _try_read(self, path: Path) -> Optional[str]:
        try:
            return self.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            log.warning(f"Failed to read resource {path}: {e}")
            return None

    def _surface_uri(self, reference: ResourceReference) -> str:
        _, suffix = _split_suffix(reference.value.strip())
        return f"{self.as_surface_uri(reference.path)}{suffix}"

    def _resolve_script(self, match: "re.Match[str]", base_dir: Path) -> str:
        attrs = match.group("script_attrs")
        src = _find_attribute(attrs, "src")
        if not src:
            return match.group(0)

        reference = self._classify("script", "src", _attribute_value(src), base_dir)
        if reference.action is ReferenceAction.INLINE_SCRIPT:
            content = self._try_read(reference.path)
            if content is not None:
                remaining = (attrs[: src.start()] + attrs[src.end() :]).strip()
                opening = f"<script {remaining}>" if remaining else "<script>"
                content = re.sub(r"</(script)", r"<\\/\1", content, flags=re.IGNORECASE)
                return f"{opening}{content}</script>"
            # Unreadable despite existing: fall back to an addressable URI.
            reference.action = ReferenceAction.REWRITE_URI

        if reference.action is ReferenceAction.REWRITE_URI:
            start, end = match.span("script_attrs")
            offset = match.start()
            new_attrs = (
                attrs[: src.start()] + f'src="{self._surface_uri(reference)}"' + attrs[src.end() :]
            )
            whole = match.group(0)
            return whole[: start - offset] + new_attrs + whole[end - offset :]
        return match.group(0)

    def _resolve_tag(self, match: "re.Match[str]", base_dir: Path) -> str:
        name = match.group("name").lower()
        attrs = match.group("attrs")

        if name == "link":
            href = _find_attribute(attrs, "href")
            if not href or not self._is_stylesheet(attrs, _attribute_value(href)):
                return match.group(0)
            reference = self._classify("link", "href", _attribute_value(href), base_dir)
            if reference.action is not ReferenceAction.INLINE_STYLE:
                return match.group(0)
            content = self._try_read(reference.path)
            if content is None:
                return match.group(0)
            return f"<style>{content}</style>"

        src = _find_attribute(attrs, "src")
        if not src:
            return match.group(0)
        reference = self._classify(
            name, "src", _attribute_value(src), base_dir, inline_allowed=False
        )
        if reference.action is not ReferenceAction.REWRITE_URI:
            return match.group(0)

        new_attrs = (
            attrs[: src.start()] + f'src="{self._surface_uri(reference)}"' + attrs[src.end() :]
        )
        return f"<{match.group('name')}{new_attrs}>"
