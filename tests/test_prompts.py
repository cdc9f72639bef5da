"""Tests for system instruction assembly."""

from editorial_translator.entities import (
    ContentType,
    GlossaryEntry,
    Language,
    ModelTier,
    TranslationFormat,
)
from editorial_translator.prompts import build_glossary_block, build_system_instruction


def _instruction(**overrides):
    params = dict(
        format=TranslationFormat.FULL_TRANSLATION,
        tier=ModelTier.FAST,
        glossary=[],
        content_type=ContentType.HARD_NEWS,
        source_language=Language.BANGLA,
    )
    params.update(overrides)
    return build_system_instruction(**params)


def test_task_line_follows_source_language():
    assert "Translate from BANGLA to ENGLISH." in _instruction()
    assert "Translate from ENGLISH to BANGLA." in _instruction(source_language=Language.ENGLISH)


def test_full_translation_mode():
    text = _instruction()
    assert "MODE: FULL ARTICLE" in text
    assert "[Source]:" not in text


def test_paragraph_mode_requests_source_and_translation_pairs():
    text = _instruction(format=TranslationFormat.PARAGRAPH_BY_PARAGRAPH)
    assert "MODE: COMPARATIVE PARAGRAPHS" in text
    assert "[Source]: {Text}" in text
    assert "[Translation]: {Translated Text}" in text


def test_glossary_block_only_when_entries_present():
    assert "GLOSSARY" not in _instruction()

    glossary = [
        GlossaryEntry(id="1", term="উপদেষ্টা", definition="adviser"),
        GlossaryEntry(id="2", term="  ", definition="ignored"),
    ]
    text = _instruction(glossary=glossary)
    assert '- "উপদেষ্টা" -> "adviser"' in text
    assert "ignored" not in text


def test_build_glossary_block_empty_for_blank_terms():
    assert build_glossary_block([GlossaryEntry(id="1", term=" ", definition="x")]) == ""


def test_content_type_rules():
    assert "HARD NEWS" in _instruction()
    op_ed = _instruction(content_type=ContentType.OP_ED)
    assert "OPINION / EDITORIAL" in op_ed
    assert "HARD NEWS" not in op_ed


def test_deep_editorial_adds_depth_rules():
    assert "DEEP EDITORIAL" not in _instruction()
    assert "DEEP EDITORIAL" in _instruction(tier=ModelTier.DEEP_EDITORIAL)


def test_instruction_ends_with_start_marker():
    assert _instruction().rstrip().endswith("START OUTPUT NOW:")
