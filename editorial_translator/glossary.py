"""Glossary of preferred term renderings injected into translation prompts."""

from __future__ import annotations

import logging
import re
import uuid
from typing import Optional

from editorial_translator.entities import GlossaryEntry
from editorial_translator.storage import SqliteStore

logger = logging.getLogger(__name__)

# "term -> definition", "term = definition" or "term, definition"
_LINE_SEPARATOR = re.compile(r"\s*(?:->|=|,)\s*")


def parse_glossary_text(text: str) -> list[tuple[str, str]]:
    """Parse bulk glossary input, one ``term -> definition`` pair per line.

    Blank lines and ``#`` comments are ignored; lines without a separator or
    with an empty side are skipped with a warning.
    """
    pairs: list[tuple[str, str]] = []
    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = _LINE_SEPARATOR.split(line, maxsplit=1)
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            logger.warning("Skipping malformed glossary line %d: %s", number, line)
            continue
        pairs.append((parts[0].strip(), parts[1].strip()))
    return pairs


class GlossaryStore(SqliteStore):
    """SQLite-backed glossary.

    Terms are unique case-insensitively; adding an existing term replaces its
    definition and keeps its id and position.
    """

    _schema = """
        CREATE TABLE IF NOT EXISTS glossary (
            id TEXT PRIMARY KEY,
            term TEXT NOT NULL,
            term_key TEXT NOT NULL UNIQUE,
            definition TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
    """

    def add(self, term: str, definition: str) -> GlossaryEntry:
        """Add or update a glossary entry.

        Raises:
            ValueError: If term or definition is blank
        """
        term = (term or "").strip()
        definition = (definition or "").strip()
        if not term or not definition:
            raise ValueError("Glossary term and definition must not be empty")

        term_key = term.lower()
        with self._lock:
            self.conn.execute(
                """
                INSERT INTO glossary (id, term, term_key, definition)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(term_key) DO UPDATE SET
                    term = excluded.term,
                    definition = excluded.definition
                """,
                (uuid.uuid4().hex, term, term_key, definition),
            )
            self.conn.commit()
            row = self.conn.execute(
                "SELECT id FROM glossary WHERE term_key = ?", (term_key,)
            ).fetchone()
        logger.info("Saved glossary term '%s'", term)
        return GlossaryEntry(id=row[0], term=term, definition=definition)

    def import_text(self, text: str) -> list[GlossaryEntry]:
        """Add every pair parsed from bulk text; returns the stored entries."""
        return [self.add(term, definition) for term, definition in parse_glossary_text(text)]

    def list(self) -> list[GlossaryEntry]:
        """Return entries in insertion order."""
        cursor = self.conn.execute(
            "SELECT id, term, definition FROM glossary ORDER BY rowid"
        )
        return [GlossaryEntry(id=row[0], term=row[1], definition=row[2]) for row in cursor]

    def get(self, entry_id: str) -> Optional[GlossaryEntry]:
        row = self.conn.execute(
            "SELECT id, term, definition FROM glossary WHERE id = ?", (entry_id,)
        ).fetchone()
        return GlossaryEntry(id=row[0], term=row[1], definition=row[2]) if row else None

    def remove(self, entry_id: str) -> bool:
        """Remove one entry. Returns False when it did not exist."""
        cursor = self.conn.execute("DELETE FROM glossary WHERE id = ?", (entry_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def clear(self):
        """Remove all glossary entries"""
        self.conn.execute("DELETE FROM glossary")
        self.conn.commit()
        logger.info("Glossary cleared")
