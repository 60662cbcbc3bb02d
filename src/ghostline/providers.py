"""Ready-made suggestion providers.

A provider maps the full buffer text to suffixes that complete it; these
helpers build providers from a fixed vocabulary and from previously entered
lines, and chain several providers together.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from ghostline.suggestions import SuggestionProvider


def last_token(text: str) -> str:
    """Return the whitespace-delimited token that ends *text*.

    Empty when *text* is empty or ends in whitespace.
    """
    if not text or text[-1].isspace():
        return ""
    return text.split()[-1]


def word_list_provider(words: Iterable[str]) -> SuggestionProvider:
    """Complete the last token of the text from *words*, in order.

    Words equal to the token are not offered.
    """
    vocabulary = [w for w in dict.fromkeys(words) if w]

    def provide(text: str) -> list[str]:
        token = last_token(text)
        if not token:
            return []
        return [w[len(token):] for w in vocabulary if w.startswith(token) and w != token]

    return provide


def history_provider(history: History) -> SuggestionProvider:
    """Complete the whole text from previously entered lines, newest first."""

    def provide(text: str) -> list[str]:
        if not text:
            return []
        return [line[len(text):] for line in history if line.startswith(text) and line != text]

    return provide


def combine_providers(*providers: SuggestionProvider) -> SuggestionProvider:
    """Concatenate the results of *providers*, dropping repeated suffixes."""

    def provide(text: str) -> list[str]:
        merged: dict[str, None] = {}
        for provider in providers:
            for suffix in provider(text):
                merged.setdefault(suffix)
        return list(merged)

    return provide


class History:
    """In-memory list of committed lines, most recent first.

    Re-adding a line moves it to the front. Blank lines are not recorded.
    """

    def __init__(self, entries: Iterable[str] = (), *, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries!r}")
        self._entries: list[str] = []
        self._max_entries = max_entries
        for entry in reversed(list(entries)):
            self.add(entry)

    def add(self, line: str) -> None:
        if not line.strip():
            return
        if line in self._entries:
            self._entries.remove(line)
        self._entries.insert(0, line)
        if self._max_entries is not None:
            del self._entries[self._max_entries :]

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> str:
        return self._entries[index]
