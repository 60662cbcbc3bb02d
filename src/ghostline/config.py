"""Editor configuration."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from ghostline.keybindings import EditorKeybindingsConfig

# Dark gray foreground, used for the not-yet-accepted suggestion
DEFAULT_GHOST_STYLE = "\x1b[90m"

_SGR_PARAMS_RE = re.compile(r"^\d+(?:;\d+)*$")


@dataclass
class EditorOptions:
    """Options for a line editing session.

    Attributes:
        ghost_style: SGR escape sequence used for ghost suggestion text.
        provider_timeout: Seconds to wait for the suggestion provider before
            treating the call as "no suggestions". ``None`` runs the provider
            inline with no bound.
        slow_provider_warning: Log provider calls slower than this (seconds).
        max_read_retries: Consecutive transient key-read failures tolerated
            before the error is re-raised.
        keybindings: Overrides for the default key-to-action map.
    """

    ghost_style: str = DEFAULT_GHOST_STYLE
    provider_timeout: float | None = None
    slow_provider_warning: float | None = 0.25
    max_read_retries: int = 50
    keybindings: EditorKeybindingsConfig = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.provider_timeout is not None and self.provider_timeout <= 0:
            raise ValueError(
                f"provider_timeout must be positive, got {self.provider_timeout!r}"
            )
        if self.max_read_retries < 0:
            raise ValueError(
                f"max_read_retries must be >= 0, got {self.max_read_retries!r}"
            )

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> EditorOptions:
        """Build options from ``GHOSTLINE_*`` environment variables.

        ``GHOSTLINE_GHOST_STYLE`` takes SGR parameters (``"2"``,
        ``"38;5;244"``); ``GHOSTLINE_PROVIDER_TIMEOUT`` takes seconds.
        Keyword *overrides* win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        style = env.get("GHOSTLINE_GHOST_STYLE", "").strip()
        if style:
            if not _SGR_PARAMS_RE.match(style):
                raise ValueError(f"Invalid GHOSTLINE_GHOST_STYLE: {style!r}")
            values["ghost_style"] = f"\x1b[{style}m"

        timeout = env.get("GHOSTLINE_PROVIDER_TIMEOUT", "").strip()
        if timeout:
            try:
                values["provider_timeout"] = float(timeout)
            except ValueError:
                raise ValueError(
                    f"Invalid GHOSTLINE_PROVIDER_TIMEOUT: {timeout!r}"
                ) from None

        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown editor options: {', '.join(sorted(unknown))}")
        values.update(overrides)
        return cls(**values)
