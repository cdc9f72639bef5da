"""High-level translation helpers: detection, prompting, streaming and history."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from editorial_translator.config import (
    GEMINI_API_TIMEOUT,
    GEMINI_MAX_RETRIES,
    HISTORY_ENABLED,
    HISTORY_LIMIT,
    STORAGE_PATH,
    TRANSLATION_TEMPERATURE,
    get_model_name,
    search_allowed,
)
from editorial_translator.detector import detect_language, target_language
from editorial_translator.entities import (
    Language,
    ModelTier,
    SourceCitation,
    TranslationOptions,
    TranslationResult,
)
from editorial_translator.gemini_client import AuthenticationError, GeminiApiError, GeminiClient
from editorial_translator.history import HistoryStore
from editorial_translator.prompts import build_system_instruction

logger = logging.getLogger(__name__)

_MAX_LOG_SNIPPET = 80

ChunkCallback = Callable[[str], None]
SourcesCallback = Callable[[list[SourceCitation]], None]


class TranslationError(Exception):
    """Raised when the remote translation call fails."""


class UnsupportedLanguageError(TranslationError):
    """Raised when the input is neither recognisably Bangla nor English."""


def _default_client() -> GeminiClient:
    return GeminiClient(timeout=GEMINI_API_TIMEOUT, max_retries=GEMINI_MAX_RETRIES)


@dataclass
class TranslationContext:
    """Owns the history store and the Gemini client factory.

    Passing an explicit context keeps tests and concurrent servers isolated
    from the module default.
    """

    history: Optional[HistoryStore] = None
    client_factory: Callable[[], GeminiClient] = _default_client

    @classmethod
    def create(cls, history_enabled: bool = True, db_path: Optional[str] = None) -> TranslationContext:
        """Create a new context with optional history.

        Args:
            history_enabled: Whether to record finished translations
            db_path: Custom database path (defaults to STORAGE_PATH from config)

        Returns:
            New TranslationContext instance
        """
        history = None
        if history_enabled and HISTORY_ENABLED:
            path = db_path or STORAGE_PATH
            try:
                history = HistoryStore(path, limit=HISTORY_LIMIT)
            except Exception as exc:  # pragma: no cover
                logger.warning("Failed to initialize history: %s", exc)

        return cls(history=history)


# Default context (lazy-initialized)
_default_context: Optional[TranslationContext] = None
_default_context_lock = threading.Lock()


def _get_default_context() -> TranslationContext:
    global _default_context
    with _default_context_lock:
        if _default_context is None:
            _default_context = TranslationContext.create()
    return _default_context


def _snip(text: str, length: int = _MAX_LOG_SNIPPET) -> str:
    """Return a compact single-line snippet for logging."""

    cleaned = re.sub(r"\s+", " ", text).strip()
    if len(cleaned) <= length:
        return cleaned
    return cleaned[: length - 3] + "..."


def _record_history(context: TranslationContext, result: TranslationResult, options: TranslationOptions) -> None:
    if context.history is None or not result.translated:
        return
    try:
        context.history.add(result.original, result.translated, options.format)
    except Exception as exc:  # pragma: no cover
        logger.warning("Failed to record history: %s", exc)


def translate_stream(
    text: str,
    options: Optional[TranslationOptions] = None,
    *,
    on_chunk: Optional[ChunkCallback] = None,
    on_sources: Optional[SourcesCallback] = None,
    context: Optional[TranslationContext] = None,
) -> TranslationResult:
    """Translate an article, streaming text to ``on_chunk`` as it arrives.

    Args:
        text: Article to translate
        options: Format, model tier, content type, search flag and glossary
        on_chunk: Called with each non-empty text chunk
        on_sources: Called with newly seen web citations
        context: Translation context (uses default if None)

    Returns:
        The completed TranslationResult (empty for blank input)

    Raises:
        UnsupportedLanguageError: Input is neither Bangla nor English
        TranslationError: The remote call failed
    """
    if options is None:
        options = TranslationOptions()

    if not text or not text.strip():
        return TranslationResult(original=text or "", translated="")

    if context is None:
        context = _get_default_context()

    source = detect_language(text)
    if source == Language.UNKNOWN:
        raise UnsupportedLanguageError(
            "Could not detect Bangla or English text to translate."
        )

    target = target_language(source)
    model = get_model_name(options.tier)
    use_search = search_allowed(options.tier, options.use_search)
    instruction = build_system_instruction(
        options.format, options.tier, options.glossary, options.content_type, source
    )

    logger.info(
        "Translating %d chars (%s -> %s) via %s%s: %s",
        len(text),
        source.value,
        target.value,
        model,
        " with search" if use_search else "",
        _snip(text),
    )

    pieces: list[str] = []
    sources: list[SourceCitation] = []
    seen_uris: set[str] = set()

    try:
        with context.client_factory() as client:
            for chunk in client.stream_generate(
                model,
                text,
                system_instruction=instruction,
                temperature=TRANSLATION_TEMPERATURE,
                use_search=use_search,
            ):
                if chunk.text:
                    pieces.append(chunk.text)
                    if on_chunk:
                        on_chunk(chunk.text)

                fresh = [s for s in chunk.sources if s.uri not in seen_uris]
                if fresh:
                    seen_uris.update(s.uri for s in fresh)
                    sources.extend(fresh)
                    if on_sources:
                        on_sources(fresh)
    except AuthenticationError as exc:
        logger.error("Authentication error during translation: %s", exc)
        raise TranslationError("Failed to translate content.") from exc
    except (GeminiApiError, httpx.HTTPError) as exc:
        logger.error("Translation stream error: %s", exc)
        raise TranslationError("Failed to translate content.") from exc

    result = TranslationResult(
        original=text,
        translated="".join(pieces),
        source_language=source,
        target_language=target,
        model=model,
        sources=sources,
    )
    logger.info(
        "Translation complete: %d chars, %d source(s)", len(result.translated), len(sources)
    )
    _record_history(context, result, options)
    return result


def translate_content(
    text: str,
    options: Optional[TranslationOptions] = None,
    *,
    context: Optional[TranslationContext] = None,
) -> str:
    """Translate an article and return the full text once finished."""
    return translate_stream(text, options, context=context).translated


def has_model(tier: ModelTier = ModelTier.FAST, *, context: Optional[TranslationContext] = None) -> bool:
    """Check whether the Gemini model for ``tier`` is reachable.

    Args:
        tier: Model tier to check
        context: Translation context (uses default if None)
    """
    if context is None:
        context = _get_default_context()

    try:
        with context.client_factory() as client:
            return client.health_check(get_model_name(tier))
    except AuthenticationError:
        return False
    except GeminiApiError as exc:
        logger.warning("Health check failed: %s", exc)
        return False


__all__ = [
    "TranslationContext",
    "TranslationError",
    "UnsupportedLanguageError",
    "has_model",
    "translate_content",
    "translate_stream",
]
