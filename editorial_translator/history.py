"""Persistent translation history with format, date and text filters."""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from editorial_translator.entities import HistoryItem, TranslationFormat
from editorial_translator.storage import SqliteStore

logger = logging.getLogger(__name__)

_DAY_MS = 24 * 60 * 60 * 1000


class DateFilter(str, Enum):
    ALL = "ALL"
    TODAY = "TODAY"
    YESTERDAY = "YESTERDAY"
    WEEK = "WEEK"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _start_of_day_ms(now_ms: int) -> int:
    """Local midnight of the day containing ``now_ms``."""
    now = datetime.fromtimestamp(now_ms / 1000)
    midnight = datetime(now.year, now.month, now.day)
    return int(midnight.timestamp() * 1000)


def filter_history(
    items: Iterable[HistoryItem],
    *,
    format: Optional[TranslationFormat] = None,
    date_filter: DateFilter = DateFilter.ALL,
    query: str = "",
    now_ms: Optional[int] = None,
) -> list[HistoryItem]:
    """Apply the history view filters.

    Args:
        items: History items to filter
        format: Keep only this output format (None keeps all)
        date_filter: Relative day window, computed from local midnight
        query: Case-insensitive substring of source or translated text
        now_ms: Reference time in epoch milliseconds (defaults to now)

    Returns:
        Matching items in their original order
    """
    start_of_today = _start_of_day_ms(now_ms if now_ms is not None else _now_ms())
    start_of_yesterday = start_of_today - _DAY_MS
    start_of_week = start_of_today - 7 * _DAY_MS
    needle = query.strip().lower() if query else ""

    result: list[HistoryItem] = []
    for item in items:
        if format is not None and item.format != format:
            continue

        if date_filter == DateFilter.TODAY and item.timestamp < start_of_today:
            continue
        if date_filter == DateFilter.YESTERDAY and not (
            start_of_yesterday <= item.timestamp < start_of_today
        ):
            continue
        if date_filter == DateFilter.WEEK and item.timestamp < start_of_week:
            continue

        if needle and needle not in item.source_text.lower() and needle not in item.translated_text.lower():
            continue

        result.append(item)
    return result


class HistoryStore(SqliteStore):
    """SQLite-backed history of finished translations.

    Only the newest ``limit`` items are kept.
    """

    _schema = """
        CREATE TABLE IF NOT EXISTS history (
            id TEXT PRIMARY KEY,
            source_text TEXT NOT NULL,
            translated_text TEXT NOT NULL,
            format TEXT NOT NULL,
            timestamp INTEGER NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_history_timestamp ON history (timestamp);
    """

    def __init__(self, db_path: str = "translator.db", limit: int = 50):
        self.limit = max(1, limit)
        super().__init__(db_path)

    @staticmethod
    def _row_to_item(row) -> HistoryItem:
        return HistoryItem(
            id=row[0],
            source_text=row[1],
            translated_text=row[2],
            format=TranslationFormat(row[3]),
            timestamp=int(row[4]),
        )

    def add(
        self,
        source_text: str,
        translated_text: str,
        format: TranslationFormat,
        timestamp: Optional[int] = None,
    ) -> HistoryItem:
        """Record a translation and prune the oldest entries beyond the limit."""
        item = HistoryItem(
            id=uuid.uuid4().hex,
            source_text=source_text,
            translated_text=translated_text,
            format=TranslationFormat(format),
            timestamp=timestamp if timestamp is not None else _now_ms(),
        )
        self.conn.execute(
            "INSERT INTO history (id, source_text, translated_text, format, timestamp) "
            "VALUES (?, ?, ?, ?, ?)",
            (item.id, item.source_text, item.translated_text, item.format.value, item.timestamp),
        )
        cursor = self.conn.execute(
            """
            DELETE FROM history WHERE id NOT IN (
                SELECT id FROM history ORDER BY timestamp DESC, rowid DESC LIMIT ?
            )
            """,
            (self.limit,),
        )
        self.conn.commit()
        if cursor.rowcount:
            logger.info("History pruned %d old item(s)", cursor.rowcount)
        return item

    def list(self) -> list[HistoryItem]:
        """Return all items, newest first."""
        cursor = self.conn.execute(
            "SELECT id, source_text, translated_text, format, timestamp "
            "FROM history ORDER BY timestamp DESC, rowid DESC"
        )
        return [self._row_to_item(row) for row in cursor]

    def get(self, item_id: str) -> Optional[HistoryItem]:
        row = self.conn.execute(
            "SELECT id, source_text, translated_text, format, timestamp FROM history WHERE id = ?",
            (item_id,),
        ).fetchone()
        return self._row_to_item(row) if row else None

    def search(
        self,
        *,
        format: Optional[TranslationFormat] = None,
        date_filter: DateFilter = DateFilter.ALL,
        query: str = "",
        now_ms: Optional[int] = None,
    ) -> list[HistoryItem]:
        """Return items matching the view filters, newest first."""
        return filter_history(
            self.list(), format=format, date_filter=date_filter, query=query, now_ms=now_ms
        )

    def delete(self, item_id: str) -> bool:
        """Delete one item. Returns False when it did not exist."""
        cursor = self.conn.execute("DELETE FROM history WHERE id = ?", (item_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def clear(self):
        """Remove all history"""
        self.conn.execute("DELETE FROM history")
        self.conn.commit()
        logger.info("History cleared")
