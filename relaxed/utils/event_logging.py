"""
Build event logging utilities for ReLaXed.

Records build lifecycle events (build_started, build_completed, build_failed,
change_dropped) as JSON Lines so a watch session can be audited or tailed by
other tools. Nothing is written unless an events file is configured, either
via the RELAXED_EVENTS_FILE environment variable or `events.file` in the
config.

Usage:
    from relaxed.utils.event_logging import log_build_event

    log_build_event(
        event_type="build_completed",
        path="/docs/report.pug",
        source="watch",
        task_kind="master_rebuild",
        duration_s=1.42,
    )
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from loguru import logger

from relaxed.utils.timestamp import now_exact

load_dotenv()

BUILD_EVENT_TYPES = {"build_started", "build_completed", "build_failed", "change_dropped"}

_events_file: Optional[Path] = (
    Path(os.environ["RELAXED_EVENTS_FILE"]) if os.getenv("RELAXED_EVENTS_FILE") else None
)


def configure_events_file(path: Optional[Union[str, Path]]) -> None:
    """Set (or clear, with None) the JSON Lines file that receives build events."""
    global _events_file
    _events_file = Path(path) if path else None


def get_events_file() -> Optional[Path]:
    return _events_file


def log_build_event(event_type: str, path: Union[str, Path], source: str, **extra_fields) -> None:
    """
    Append a build event to the events file.

    Args:
        event_type: One of BUILD_EVENT_TYPES
        path: File the event concerns (the changed file, or the master document)
        source: Event source ("watch" or "build-once")
        **extra_fields: Additional event-specific fields

    Raises:
        ValueError: If event_type is not a known build event
    """
    if event_type not in BUILD_EVENT_TYPES:
        raise ValueError(f"Unknown build event type: {event_type}")
    if _events_file is None:
        return

    event = {
        "timestamp": now_exact(),
        "event_type": event_type,
        "path": str(path),
        "source": source,
        **extra_fields,
    }

    try:
        _events_file.parent.mkdir(parents=True, exist_ok=True)
        with open(_events_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(event) + "\n")
    except OSError as e:
        # Write failures are reported, never raised
        logger.warning(f"Could not write build event to {_events_file}: {e}")


def get_recent_events(n: int = 10, event_type: Optional[str] = None) -> list[dict]:
    """
    Get the last n events from the events file, optionally filtered by type.

    Returns:
        List of event dicts (most recent last); empty when no file exists
    """
    if _events_file is None or not _events_file.exists():
        return []

    events = []
    with open(_events_file, "r", encoding="utf-8") as f:
        for line in f:
            try:
                events.append(json.loads(line.strip()))
            except json.JSONDecodeError:
                # Skip malformed lines
                continue

    if event_type:
        events = [e for e in events if e.get("event_type") == event_type]

    return events[-n:] if len(events) > n else events
