"""
Command log - rolling, most-recent-first record of completed command cycles.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 5


@dataclass(frozen=True)
class CommandHistoryEntry:
    utterance: str
    intent: str
    response: str
    timestamp: datetime


HistorySink = Callable[[CommandHistoryEntry, Optional[str]], None]


class CommandLog:
    """Bounded audit log of (utterance, intent, response, timestamp)

    Args:
        max_entries: ring buffer capacity
        sink: optional ``(entry, user_id) -> None`` callable owned by the host
            for durable storage
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, sink: Optional[HistorySink] = None):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.sink = sink
        self._entries: Deque[CommandHistoryEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(self, utterance: str, intent: str, response: str, user_id: Optional[str] = None) -> CommandHistoryEntry:
        entry = CommandHistoryEntry(
            utterance=utterance,
            intent=intent,
            response=response,
            timestamp=datetime.now(timezone.utc),
        )
        with self._lock:
            self._entries.appendleft(entry)

        if self.sink is not None:
            try:
                self.sink(entry, user_id)
            except Exception:
                logger.exception("Command log sink failed")
        return entry

    def entries(self) -> List[CommandHistoryEntry]:
        with self._lock:
            return list(self._entries)

    def latest(self) -> Optional[CommandHistoryEntry]:
        with self._lock:
            return self._entries[0] if self._entries else None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
