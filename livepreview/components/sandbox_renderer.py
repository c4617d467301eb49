"""Builds the HTML shown on the preview surface."""

import html
import logging
import re
from pathlib import Path
from typing import List

from ..models.tab_data import TabData
from .resource_resolver import ResourceResolver

log = logging.getLogger(__name__)

NAVIGATION_GUARD_SCRIPT = """
<script>
    (function() {
        // Keep the previewed document from navigating its frame
        document.addEventListener('click', function(e) {
            const target = e.target.closest ? e.target.closest('a') : null;
            if (!target || !target.href) {
                return;
            }
            const href = target.getAttribute('href');
            if (href && href.startsWith('#')) {
                return;
            }
            e.preventDefault();
            if (href && (href.startsWith('http://') || href.startsWith('https://'))) {
                console.log('External link clicked:', href);
            }
        }, true);
    })();
</script>
"""

_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)


def escape_attribute(text: str) -> str:
    """Escape text for use inside a quoted HTML attribute."""
    # Ampersands first, or the entities below would be escaped twice.
    return text.replace("&", "&amp;").replace('"', "&quot;").replace("'", "&#39;")


def inject_navigation_guard(document_html: str) -> str:
    """Insert the link-interception script before the closing body tag."""
    closers = list(_BODY_CLOSE.finditer(document_html))
    if not closers:
        return document_html + NAVIGATION_GUARD_SCRIPT
    position = closers[-1].start()
    return document_html[:position] + NAVIGATION_GUARD_SCRIPT + document_html[position:]


class SandboxRenderer:
    """Renders tabs and previewed documents into surface markup."""

    def __init__(
        self,
        resolver: ResourceResolver,
        sandbox_policy: str = "allow-scripts",
    ):
        self.resolver = resolver
        self.sandbox_policy = sandbox_policy

    def render_frame(self, content: str, document_path: Path) -> str:
        """Resolve, guard and embed a document in a sandboxed iframe."""
        resolved = self.resolver.resolve(content, document_path)
        guarded = inject_navigation_guard(resolved)
        return f"""
            <iframe srcdoc="{escape_attribute(guarded)}"
                    sandbox="{escape_attribute(self.sandbox_policy)}"
                    style="width:100%; height:100%; border:none;">
            </iframe>
        """

    def render_content(self, tab: TabData) -> str:
        """Render the content area for a tab."""
        if tab.has_content() and tab.source_path is not None:
            return self.render_frame(tab.content, tab.source_path)
        return self.render_placeholder()

    def render_placeholder(self) -> str:
        return """
            <div style="display: flex; align-items: center; justify-content: center; height: 100%; background: #1e1e1e;">
                <div style="text-align: center; padding: 40px;">
                    <div style="font-size: 48px; margin-bottom: 20px;">&#128196;</div>
                    <h2 style="color: #fff; margin-bottom: 10px;">No HTML File Loaded</h2>
                    <p style="color: #888; margin-bottom: 30px;">Open an HTML file in the editor or select one.</p>
                    <button class="select-file-btn" data-command="selectFile">Select HTML File</button>
                </div>
            </div>
        """

    def render_tab_bar(self, tabs: List[TabData], active_id: str) -> str:
        closable = len(tabs) > 1
        items = []
        for tab in tabs:
            tab_id = html.escape(tab.tab_id, quote=True)
            classes = "tab active" if tab.tab_id == active_id else "tab"
            close_button = (
                f'<button class="tab-close" data-command="closeTab" data-tab-id="{tab_id}"'
                f' title="Close tab">&times;</button>'
                if closable
                else ""
            )
            items.append(
                f'<div class="{classes}" data-command="switchTab" data-tab-id="{tab_id}">'
                f'<span class="tab-title">{html.escape(tab.title or "Untitled")}</span>'
                f"{close_button}</div>"
            )
        return "\n".join(items)

    def render_page(self, tabs: List[TabData], active_id: str) -> str:
        """Render the full surface: tab bar, content area and command bridge."""
        active = next((tab for tab in tabs if tab.tab_id == active_id), None)
        if active is None:
            return self.render_empty()

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>{self._get_surface_css()}</style>
</head>
<body>
    <div class="header">
        <div class="tab-bar">
            {self.render_tab_bar(tabs, active_id)}
        </div>
        <button class="add-tab-btn" data-command="addTab" title="Add new tab">+</button>
    </div>
    <div class="content-area">
        {self.render_content(active)}
    </div>
    <script>{self._get_bridge_script()}</script>
</body>
</html>"""

    def render_empty(self) -> str:
        return """<!DOCTYPE html>
<html>
<body style="background: #1e1e1e; color: #ccc; display: flex; align-items: center; justify-content: center; height: 100vh;">
    <div>No tabs</div>
</body>
</html>"""

    def _get_bridge_script(self) -> str:
        """Return the script that posts surface clicks as commands."""
        return """
        function postCommand(message) {
            if (window.pywebview && window.pywebview.api) {
                window.pywebview.api.post_message(message).then(function(result) {
                    if (result && !result.ok) {
                        console.error('Command rejected:', result.error);
                    }
                });
            }
        }

        document.addEventListener('click', function(e) {
            const el = e.target.closest('[data-command]');
            if (!el) {
                return;
            }
            e.stopPropagation();
            const message = { command: el.dataset.command };
            if (el.dataset.tabId) {
                message.tabId = el.dataset.tabId;
            }
            postCommand(message);
        });
        """

    def _get_surface_css(self) -> str:
        """Return the dark theme used around the previewed document."""
        return """
        * {
            margin: 0;
            padding: 0;
            box-sizing: border-box;
        }
        body {
            font-family: 'Segoe UI', sans-serif;
            background: #1e1e1e;
            color: #ccc;
            display: flex;
            flex-direction: column;
            height: 100vh;
            overflow: hidden;
        }
        .header {
            display: flex;
            justify-content: space-between;
            align-items: center;
            background: #252526;
            border-bottom: 1px solid #3e3e42;
            padding: 4px 8px;
        }
        .tab-bar {
            display: flex;
            overflow-x: auto;
            flex: 1;
        }
        .tab {
            display: flex;
            align-items: center;
            gap: 8px;
            padding: 6px 12px;
            background: #2d2d30;
            border-right: 1px solid #3e3e42;
            cursor: pointer;
            user-select: none;
            white-space: nowrap;
            transition: background 0.2s;
        }
        .tab:hover { background: #37373d; }
        .tab.active {
            background: #1e1e1e;
            border-bottom: 2px solid #8a2be2;
        }
        .tab-title { font-size: 13px; }
        .tab-close {
            background: none;
            border: none;
            color: #858585;
            font-size: 18px;
            cursor: pointer;
            width: 18px;
            height: 18px;
            display: flex;
            align-items: center;
            justify-content: center;
            border-radius: 3px;
        }
        .tab-close:hover {
            background: rgba(255, 255, 255, 0.1);
            color: #fff;
        }
        .add-tab-btn {
            background: none;
            border: none;
            color: #ccc;
            cursor: pointer;
            padding: 6px 12px;
            font-size: 16px;
        }
        .add-tab-btn:hover { background: #37373d; }
        .select-file-btn {
            background: linear-gradient(135deg, #8a2be2, #4169e1);
            color: white;
            border: none;
            padding: 12px 24px;
            border-radius: 6px;
            cursor: pointer;
            font-size: 14px;
            font-weight: 600;
        }
        .content-area {
            flex: 1;
            overflow: hidden;
            background: white;
        }
        iframe {
            width: 100%;
            height: 100%;
            border: none;
        }
        """
