"""Formatting of the free-text ``notes`` field on milestones.

A blocked reason is kept on a single line starting with
``BLOCKED_REASON_PREFIX``; other notes are timestamped lines appended
below it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.utils import timezone

from modules.milestones.constants import BLOCKED_REASON_PREFIX


def format_blocked_reason(reason: str, existing: Optional[str] = None) -> str:
    """Put a blocked reason into ``existing`` notes.

    An existing blocked-reason line is replaced in place and the lines
    around it are kept; without one, the reason is appended after a
    blank line.
    """
    formatted = f"{BLOCKED_REASON_PREFIX}{' '.join(reason.split())}"
    if not existing or not existing.strip():
        return formatted
    lines = existing.split("\n")
    for index, line in enumerate(lines):
        if line.startswith(BLOCKED_REASON_PREFIX):
            lines[index] = formatted
            return "\n".join(lines)
    return f"{existing}\n\n{formatted}"


def append_note(
    existing: Optional[str], content: str, now: Optional[datetime] = None
) -> str:
    """Append ``[<iso timestamp>] content`` on a new line."""
    stamp = (now or timezone.now()).isoformat()
    line = f"[{stamp}] {content}"
    if not existing or not existing.strip():
        return line
    return f"{existing}\n{line}"


def extract_blocked_reason(notes: Optional[str]) -> Optional[str]:
    if not notes:
        return None
    for line in reversed(notes.split("\n")):
        if line.startswith(BLOCKED_REASON_PREFIX):
            return line[len(BLOCKED_REASON_PREFIX):].strip() or None
    return notes.strip() or None
