"""System instruction templating for editorial translation requests."""

from __future__ import annotations

from typing import Iterable

from editorial_translator.detector import target_language
from editorial_translator.entities import (
    ContentType,
    GlossaryEntry,
    Language,
    ModelTier,
    TranslationFormat,
)

_PERSONA = (
    "You are a Lead Editor at The Daily Star. Your writing is crisp, "
    "professional, and follows British English standards."
)

_CORE_RULES = """
🔹 CORE RULES:
1. **NO INTRODUCTIONS**: Never say "Here is the translation", "As a reporter...", or any meta-commentary.
2. **NO CHATTING**: Output the result and nothing else.
3. **HOUSE STYLE**: Use British English (organisation, centre). Use "Tk" for Taka.
4. **NATURALIZATION**: Ensure the English (or Bangla) sounds native, not like a direct literal translation.
"""

_CONTENT_RULES = {
    ContentType.HARD_NEWS: """
🔹 CONTENT: HARD NEWS
- Keep a neutral, factual register and the inverted-pyramid order of the source.
- Preserve every attribution ("said", "according to") and every figure exactly.
""",
    ContentType.OP_ED: """
🔹 CONTENT: OPINION / EDITORIAL
- Preserve the author's voice, argument and rhetorical devices.
- Render idioms with natural equivalents rather than word-for-word.
""",
}

_MODE_RULES = {
    TranslationFormat.FULL_TRANSLATION: """
🔹 MODE: FULL ARTICLE
- Start the response IMMEDIATELY with the translated title or first paragraph.
- Output ONLY the finished translation.
""",
    TranslationFormat.PARAGRAPH_BY_PARAGRAPH: """
🔹 MODE: COMPARATIVE PARAGRAPHS
- For EVERY paragraph in the input, provide:
[Source]: {Text}
[Translation]: {Translated Text}
- Do not add headers like "Comparative Structure" or "As requested".
""",
}

_DEEP_EDITORIAL_RULES = """
🔹 DEPTH: DEEP EDITORIAL
- Take extra care with idiom, tone and headline polish before answering.
"""

_TARGET_RULES = """
🔹 TARGET LANGUAGE RULES:
- If Target is English: Use British English (UK standards).
- If Target is Bangla: Use formal, high-quality journalistic Bangla.
"""


def build_glossary_block(glossary: Iterable[GlossaryEntry]) -> str:
    """Render glossary entries as a prompt block, or an empty string."""
    lines = [
        f'- "{entry.term.strip()}" -> "{entry.definition.strip()}"'
        for entry in glossary
        if entry.term.strip()
    ]
    if not lines:
        return ""
    return "\n🔹 GLOSSARY:\n" + "\n".join(lines) + "\n"


def build_system_instruction(
    format: TranslationFormat,
    tier: ModelTier,
    glossary: Iterable[GlossaryEntry],
    content_type: ContentType,
    source_language: Language,
) -> str:
    """Assemble the system instruction sent alongside the article."""
    target = target_language(source_language)
    sections = [
        "🔹 INSTRUCTION",
        f"📌 Task: Translate from {source_language.value} to {target.value}.",
        "Maintain The Daily Star's professional editorial standards.",
        "",
        _PERSONA,
        _CORE_RULES,
        build_glossary_block(glossary),
        _CONTENT_RULES[ContentType(content_type)],
        _MODE_RULES[TranslationFormat(format)],
    ]
    if tier == ModelTier.DEEP_EDITORIAL:
        sections.append(_DEEP_EDITORIAL_RULES)
    sections.append(_TARGET_RULES)
    sections.append("START OUTPUT NOW:")
    return "\n".join(sections)
