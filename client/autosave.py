import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from app.settings import settings

logger = logging.getLogger(__name__)


class DraftAutosaver:
    """Debounces draft edits and persists only the newest full document."""

    def __init__(self, save: Callable[[Dict[str, Any]], Awaitable[Any]], *,
                 debounce_ms: int = settings.DRAFT_AUTOSAVE_DEBOUNCE_MS,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self._save = save
        self.debounce_ms = debounce_ms
        self._sleep = sleep
        self._pending: Optional[Dict[str, Any]] = None
        self._timer: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()
        self.saves = 0
        self.last_error: Optional[Exception] = None

    @property
    def dirty(self) -> bool:
        return self._pending is not None

    def update(self, document: Dict[str, Any]) -> None:
        self._pending = document
        self._cancel_timer()
        self._timer = asyncio.ensure_future(self._delayed())

    async def flush(self) -> None:
        self._cancel_timer()
        await self._write()

    async def close(self) -> None:
        self._cancel_timer()
        if self._pending is not None:
            logger.info("Autosave closed with unsaved changes discarded")
        self._pending = None

    def _cancel_timer(self) -> None:
        if self._timer and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _delayed(self) -> None:
        await self._sleep(self.debounce_ms / 1000)
        # past the debounce; no longer cancellable by a newer edit
        self._timer = None
        try:
            await self._write()
        except Exception as exc:
            logger.warning("Draft autosave failed: %s", exc)

    async def _write(self) -> None:
        async with self._lock:
            document, self._pending = self._pending, None
            if document is None:
                return
            try:
                await self._save(document)
            except Exception as exc:
                self.last_error = exc
                if self._pending is None:
                    self._pending = document
                raise
            self.last_error = None
            self.saves += 1
