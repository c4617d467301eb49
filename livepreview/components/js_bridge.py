"""Bridge between pywebview's JS API threads and the preview event loop."""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Callable, Coroutine, Dict, Optional

from ..models.commands import InvalidCommandError
from .session_registry import SessionRegistry

log = logging.getLogger(__name__)


class EventLoopThread:
    """Runs the asyncio event loop that owns all preview state."""

    def __init__(self, name: str = "preview-events"):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        log.debug("Event loop thread started")
        try:
            self.loop.run_forever()
        finally:
            self.loop.close()
            log.debug("Event loop thread finished")

    def call(self, function: Callable[..., Any], *args: Any) -> concurrent.futures.Future:
        """Run a plain callable on the loop and return a future for its result."""
        future: concurrent.futures.Future = concurrent.futures.Future()

        def runner() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(function(*args))
            except Exception as e:
                future.set_exception(e)

        self.loop.call_soon_threadsafe(runner)
        return future

    def submit(self, coroutine: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule a coroutine on the loop from another thread."""
        return asyncio.run_coroutine_threadsafe(coroutine, self.loop)

    def stop(self, timeout: float = 2.0) -> None:
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        if self._thread.is_alive():
            self._thread.join(timeout)


class PreviewApi:
    """Object exposed to the page as ``window.pywebview.api``."""

    def __init__(
        self,
        registry: SessionRegistry,
        events: EventLoopThread,
        session_key: str,
        timeout: Optional[float] = None,
    ):
        self._registry = registry
        self._events = events
        self._session_key = session_key
        self._timeout = timeout
        log.info("PreviewApi initialized")

    def post_message(self, message: Any) -> Dict[str, Any]:
        """Handle a command posted by the page (runs on a pywebview thread)."""
        log.debug(f"Received message from surface: {message!r}")
        future = self._events.submit(self._dispatch(message))
        try:
            future.result(self._timeout)
        except InvalidCommandError as e:
            log.warning(str(e))
            return {"ok": False, "error": str(e)}
        except Exception as e:
            log.error(f"Command failed: {e}", exc_info=True)
            return {"ok": False, "error": str(e)}
        return {"ok": True}

    async def _dispatch(self, message: Any) -> None:
        session = self._registry.get(self._session_key)
        if session is None:
            log.warning(f"No preview session {self._session_key!r} for message")
            return
        await session.handle_message(message)
