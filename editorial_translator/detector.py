"""Heuristic Bangla/English language detection.

Scores each whitespace token for stopword membership and script dominance,
then falls back to whole-text character counts when the scores are tied or
too close to trust on longer input.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from editorial_translator.config import (
    BANGLA_BLOCK_END,
    BANGLA_BLOCK_START,
    BANGLA_STOPWORDS,
    DOMINANCE_RATIO_THRESHOLD,
    ENGLISH_STOPWORDS,
    MIN_TEXT_LENGTH,
    MIXED_SCRIPT_BONUS,
    RATIO_FALLBACK_MIN_TOKENS,
    SCRIPT_BONUS,
    STOPWORD_BONUS,
)
from editorial_translator.entities import Language, TranslationMode

logger = logging.getLogger(__name__)

_BANGLA_CHAR = re.compile(f"[{chr(BANGLA_BLOCK_START)}-{chr(BANGLA_BLOCK_END)}]")
_LATIN_LOWER = re.compile(r"[a-z]")
_LATIN_ANY = re.compile(r"[a-zA-Z]")


def _char_counts(text: str) -> tuple[int, int]:
    """Count Bangla-block characters and ASCII letters across the whole text."""

    return len(_BANGLA_CHAR.findall(text)), len(_LATIN_ANY.findall(text))


def _score_token(token: str) -> tuple[int, int]:
    """Return the (bangla, english) contribution of one lower-cased token."""

    bangla = english = 0

    if token in BANGLA_STOPWORDS:
        bangla += STOPWORD_BONUS
    if token in ENGLISH_STOPWORDS:
        english += STOPWORD_BONUS

    b_count = len(_BANGLA_CHAR.findall(token))
    e_count = len(_LATIN_LOWER.findall(token))

    if b_count and not e_count:
        bangla += SCRIPT_BONUS
    elif e_count and not b_count:
        english += SCRIPT_BONUS
    elif b_count and e_count:
        if b_count > e_count:
            bangla += MIXED_SCRIPT_BONUS
        elif e_count > b_count:
            english += MIXED_SCRIPT_BONUS

    return bangla, english


def detect_language(text: Optional[str]) -> Language:
    """Classify ``text`` as Bangla, English or unknown.

    The function is total: it never raises and always returns one of the
    three ``Language`` members. ``None`` is treated as an empty string.
    """
    if not text or len(text.strip()) < MIN_TEXT_LENGTH:
        return Language.UNKNOWN

    tokens = text.lower().split()
    if not tokens:
        return Language.UNKNOWN

    bangla_score = english_score = 0
    for token in tokens:
        bangla, english = _score_token(token)
        bangla_score += bangla
        english_score += english

    if bangla_score == english_score:
        bangla_chars, english_chars = _char_counts(text)
        logger.debug(
            "Tied scores (%d); character fallback %d vs %d",
            bangla_score,
            bangla_chars,
            english_chars,
        )
        if bangla_chars > english_chars:
            return Language.BANGLA
        if english_chars > bangla_chars:
            return Language.ENGLISH
        return Language.UNKNOWN

    ratio = max(bangla_score, english_score) / max(min(bangla_score, english_score), 1)

    if ratio < DOMINANCE_RATIO_THRESHOLD and len(tokens) > RATIO_FALLBACK_MIN_TOKENS:
        # Close call on long text: raw characters decide, ties go to English.
        bangla_chars, english_chars = _char_counts(text)
        logger.debug(
            "Scores %d/%d too close (ratio %.2f); character fallback %d vs %d",
            bangla_score,
            english_score,
            ratio,
            bangla_chars,
            english_chars,
        )
        return Language.BANGLA if bangla_chars > english_chars else Language.ENGLISH

    return Language.BANGLA if bangla_score > english_score else Language.ENGLISH


def translation_direction(language: Language) -> Optional[TranslationMode]:
    """Map a detected language to a translation mode.

    ``None`` means translation is not possible for this input.
    """
    if language == Language.BANGLA:
        return TranslationMode.BANGLA_TO_ENGLISH
    if language == Language.ENGLISH:
        return TranslationMode.ENGLISH_TO_BANGLA
    return None


def target_language(language: Language) -> Language:
    """Target is English for Bangla sources and Bangla otherwise."""
    return Language.ENGLISH if language == Language.BANGLA else Language.BANGLA


__all__ = ["detect_language", "target_language", "translation_direction"]
