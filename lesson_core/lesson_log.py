"""Tagged lesson events: printed as `[LESSON_LOG] <event>: <json>` and optionally collected"""
import json
from pathlib import Path
from typing import Dict, Any, Optional, List
from datetime import datetime, UTC
import numpy as np

ENTRY_FIELDS = ('timestamp', 'event_type')


def _encode(value: Any) -> Any:
    """json.dumps fallback for numpy scalars and paths coming out of pandas code"""
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, Path):
        return value.as_posix()
    return str(value)


def log_lesson_event(
    event_type: str,
    payload: Dict[str, Any],
    logger: Optional[List[Dict]] = None,
    timestamp: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Print one lesson event and return it as a flat dict.

    Events in use: dataset_loaded, rows_filtered, rows_dropped_missing,
    join_collision, table_written, figure_saved.
    `logger` is any list the entry should also be appended to, e.g.
    DatasetLoader.events.
    """
    clashing = [k for k in ENTRY_FIELDS if k in payload]
    if clashing:
        raise ValueError(f"Payload for '{event_type}' may not set {clashing}")

    when = timestamp or datetime.now(UTC)
    entry = {
        'timestamp': when.isoformat() if isinstance(when, datetime) else str(when),
        'event_type': event_type,
    }
    entry.update(payload)

    if logger is not None:
        logger.append(entry)
    print(f"[LESSON_LOG] {event_type}: {json.dumps(payload, default=_encode)}")
    return entry
