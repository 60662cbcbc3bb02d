"""Suggestion state: ranked candidate suffixes and the active selection."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Sequence

from ghostline.utils import visible_width

logger = logging.getLogger(__name__)

SuggestionProvider = Callable[[str], Sequence[str]]
"""Maps the full buffer text to suffixes to append at the cursor."""


class SuggestionEngine:
    """Holds the candidate list for the current buffer and cycles through it.

    Args:
        timeout: Seconds to wait for the provider. ``None`` calls it inline
            on the editor thread with no bound.
        slow_warning: Provider calls slower than this many seconds are logged.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        slow_warning: float | None = 0.25,
    ) -> None:
        self.candidates: list[str] = []
        self.active_index: int = 0
        self.previous_active_text: str = ""
        self._timeout = timeout
        self._slow_warning = slow_warning
        self._executor: ThreadPoolExecutor | None = None

    def recompute(self, provider: SuggestionProvider, text: str) -> None:
        """Ask *provider* for suggestions for *text*.

        A failing or timed-out provider yields no suggestions.
        """
        started = time.monotonic()
        try:
            result = self._call(provider, text)
        except FutureTimeoutError:
            logger.warning(
                "Suggestion provider timed out after %.3fs for %r",
                self._timeout,
                text,
            )
            result = []
        except Exception:
            logger.warning("Suggestion provider failed for %r", text, exc_info=True)
            result = []

        elapsed = time.monotonic() - started
        if self._slow_warning is not None and elapsed > self._slow_warning:
            logger.warning("Suggestion provider took %.3fs for %r", elapsed, text)

        self.candidates = _normalize(result)
        self.active_index = 0

    def _call(self, provider: SuggestionProvider, text: str) -> Sequence[str]:
        if self._timeout is None:
            return provider(text)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="ghostline-provider"
            )
        future = self._executor.submit(provider, text)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            raise

    def clear(self) -> None:
        """Drop all candidates; the last rendered ghost is kept for erasing."""
        self.candidates = []
        self.active_index = 0

    def cycle_next(self) -> None:
        if self.candidates:
            self.active_index = (self.active_index + 1) % len(self.candidates)

    def cycle_previous(self) -> None:
        if self.candidates:
            self.active_index = (self.active_index - 1) % len(self.candidates)

    def active_text(self) -> str:
        if not self.candidates:
            return ""
        return self.candidates[self.active_index]

    def erase_padding(self) -> int:
        """Cells of the previous ghost not covered by the current one."""
        return max(
            0,
            visible_width(self.previous_active_text) - visible_width(self.active_text()),
        )

    def mark_rendered(self) -> None:
        self.previous_active_text = self.active_text()

    def close(self) -> None:
        """Shut down the provider worker, abandoning pending calls."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None


def _normalize(result: Sequence[str] | None) -> list[str]:
    """Drop empty and duplicate suffixes, keeping first-seen order."""
    if not result:
        return []
    seen: set[str] = set()
    candidates: list[str] = []
    for item in result:
        if not isinstance(item, str) or not item or item in seen:
            continue
        seen.add(item)
        candidates.append(item)
    return candidates
