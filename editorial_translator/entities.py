"""Domain types shared by the translator, storage and web layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TypeVar


class Language(str, Enum):
    """Outcome of language detection."""

    BANGLA = "BANGLA"
    ENGLISH = "ENGLISH"
    UNKNOWN = "UNKNOWN"


class TranslationMode(str, Enum):
    BANGLA_TO_ENGLISH = "BANGLA_TO_ENGLISH"
    ENGLISH_TO_BANGLA = "ENGLISH_TO_BANGLA"


class TranslationFormat(str, Enum):
    PARAGRAPH_BY_PARAGRAPH = "PARAGRAPH_BY_PARAGRAPH"
    FULL_TRANSLATION = "FULL_TRANSLATION"


class ModelTier(str, Enum):
    FAST = "FAST"
    DEEP_EDITORIAL = "DEEP_EDITORIAL"


class ContentType(str, Enum):
    HARD_NEWS = "HARD_NEWS"
    OP_ED = "OP_ED"


class TranslationStatus(str, Enum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    STREAMING = "STREAMING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class GlossaryEntry:
    """Preferred rendering of a term in the target language."""

    id: str
    term: str
    definition: str


@dataclass(frozen=True)
class HistoryItem:
    """A finished translation kept for later lookup.

    ``timestamp`` is milliseconds since the epoch.
    """

    id: str
    source_text: str
    translated_text: str
    format: TranslationFormat
    timestamp: int


@dataclass(frozen=True)
class SourceCitation:
    """Web source returned by grounded search."""

    uri: str
    title: str = ""


@dataclass
class TranslationOptions:
    """Everything besides the article that shapes a translation request."""

    format: TranslationFormat = TranslationFormat.PARAGRAPH_BY_PARAGRAPH
    tier: ModelTier = ModelTier.FAST
    content_type: ContentType = ContentType.HARD_NEWS
    use_search: bool = False
    glossary: list[GlossaryEntry] = field(default_factory=list)


@dataclass
class TranslationResult:
    """Outcome of a single translation call."""

    original: str
    translated: str
    source_language: Language = Language.UNKNOWN
    target_language: Optional[Language] = None
    model: Optional[str] = None
    sources: list[SourceCitation] = field(default_factory=list)


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: type[E], value: object, default: Optional[E] = None) -> E:
    """Parse user input (CLI flag, JSON field) into an enum member.

    Matching is case-insensitive on the member name and accepts ``-`` for
    ``_``. Empty input yields ``default``.

    Raises:
        ValueError: If the value names no member, or is empty without a default.
    """
    if isinstance(value, enum_cls):
        return value
    raw = str(value or "").strip()
    if not raw:
        if default is None:
            raise ValueError(f"Missing value for {enum_cls.__name__}")
        return default
    key = raw.upper().replace("-", "_")
    try:
        return enum_cls[key]
    except KeyError:
        choices = ", ".join(member.name for member in enum_cls)
        raise ValueError(f"Invalid {enum_cls.__name__} '{raw}' (choose from: {choices})") from None
