"""Draft autosave.

Saving a draft must never interrupt editing, so write failures are logged
and dropped.
"""
import logging
import sqlite3

from editorial_translator.storage import SqliteStore

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_KEY = "daily_star_translator_draft"


class DraftStore(SqliteStore):
    """Key-value store holding the current input text."""

    _schema = """
        CREATE TABLE IF NOT EXISTS drafts (
            draft_key TEXT PRIMARY KEY,
            content TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
    """

    def load(self, key: str = DEFAULT_DRAFT_KEY) -> str:
        """Return the saved draft, or an empty string."""
        row = self.conn.execute(
            "SELECT content FROM drafts WHERE draft_key = ?", (key,)
        ).fetchone()
        return row[0] if row else ""

    def save(self, text: str, key: str = DEFAULT_DRAFT_KEY) -> bool:
        """Save the draft. Returns False if the write failed."""
        try:
            self.conn.execute(
                "REPLACE INTO drafts (draft_key, content, updated_at) "
                "VALUES (?, ?, CURRENT_TIMESTAMP)",
                (key, text or ""),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Failed to save draft: %s", exc)
            return False
        return True

    def clear(self, key: str = DEFAULT_DRAFT_KEY) -> bool:
        """Forget the draft. Returns False if the write failed."""
        try:
            self.conn.execute("DELETE FROM drafts WHERE draft_key = ?", (key,))
            self.conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Failed to clear draft: %s", exc)
            return False
        return True
