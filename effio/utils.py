"""
Utility functions and configuration for the effio library.
"""

from __future__ import annotations

import linecache
import os
import sys
from dataclasses import dataclass


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


# Environment variable to control debug mode
DEBUG_EFFECTS = _env_flag("EFFIO_DEBUG")


def debug_enabled() -> bool:
    """Return ``True`` when creation sites should be captured.

    Re-reads ``EFFIO_DEBUG`` so tests and long-running processes can toggle it.
    """

    return DEBUG_EFFECTS or _env_flag("EFFIO_DEBUG")


def _is_effio_internal(path: str) -> bool:
    normalized = path.replace("\\", "/").lower()
    return "/effio/" in normalized


@dataclass(frozen=True)
class CreationContext:
    """Where an effect was built."""

    filename: str
    line: int
    function: str
    code: str | None = None

    def format(self) -> str:
        text = f'  File "{self.filename}", line {self.line}, in {self.function}'
        if self.code:
            text += f"\n    {self.code}"
        return text


def capture_creation_context(skip_frames: int = 2) -> CreationContext | None:
    """
    Capture the first user frame that built an effect.

    Args:
        skip_frames: Number of frames to skip (default 2 to skip this function and caller)

    Returns:
        CreationContext, or None when debug mode is off or frames are unavailable.
    """
    if not debug_enabled():
        return None

    try:
        frame = sys._getframe(skip_frames)
    except ValueError:
        return None

    while frame is not None and _is_effio_internal(frame.f_code.co_filename):
        frame = frame.f_back
    if frame is None:
        return None

    filename = frame.f_code.co_filename
    line = frame.f_lineno
    code = linecache.getline(filename, line).strip() or None
    return CreationContext(
        filename=filename,
        line=line,
        function=frame.f_code.co_name,
        code=code,
    )


__all__ = [
    "DEBUG_EFFECTS",
    "CreationContext",
    "capture_creation_context",
    "debug_enabled",
]
