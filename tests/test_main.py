"""Tests for the command line interface."""

import pytest

from editorial_translator import main as main_module
from editorial_translator.entities import Language, SourceCitation, TranslationFormat, TranslationResult
from editorial_translator.glossary import GlossaryStore
from editorial_translator.history import HistoryStore
from editorial_translator.translator import TranslationError, UnsupportedLanguageError


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", lambda: None)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


def test_detect_prints_language(capsys):
    assert main_module.main(["detect", "The minister said this on Sunday"]) == 0
    assert capsys.readouterr().out.strip() == "ENGLISH"


def test_detect_unknown_exit_code(capsys):
    assert main_module.main(["detect", "12345"]) == 2
    assert capsys.readouterr().out.strip() == "UNKNOWN"


def test_detect_reads_file(tmp_path, capsys):
    article = tmp_path / "article.txt"
    article.write_text("ঢাকায় আজ বৃষ্টি হয়েছে এবং যানজট ছিল", encoding="utf-8")

    assert main_module.main(["detect", "--file", str(article)]) == 0
    assert capsys.readouterr().out.strip() == "BANGLA"


def test_invalid_enum_option_is_rejected():
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["translate", "text", "--tier", "turbo"])
    assert excinfo.value.code == 2


def test_glossary_commands(db_path, tmp_path, capsys):
    assert main_module.main(["--db", db_path, "glossary", "add", "Taka", "টাকা"]) == 0
    entry_id = capsys.readouterr().out.strip()

    terms = tmp_path / "terms.txt"
    terms.write_text("উপদেষ্টা -> adviser\n", encoding="utf-8")
    assert main_module.main(["--db", db_path, "glossary", "import", str(terms)]) == 0

    main_module.main(["--db", db_path, "glossary", "list"])
    listing = capsys.readouterr().out
    assert f"{entry_id}  Taka -> টাকা" in listing
    assert "উপদেষ্টা -> adviser" in listing

    assert main_module.main(["--db", db_path, "glossary", "remove", entry_id]) == 0
    assert main_module.main(["--db", db_path, "glossary", "remove", entry_id]) == 1

    assert main_module.main(["--db", db_path, "glossary", "clear"]) == 0
    with GlossaryStore(db_path) as glossary:
        assert glossary.list() == []


def test_translate_streams_output(db_path, monkeypatch, capsys):
    with GlossaryStore(db_path) as glossary:
        glossary.add("উপদেষ্টা", "adviser")
    captured = {}

    def fake_translate_stream(text, options, on_chunk=None, context=None):
        captured["options"] = options
        captured["context"] = context
        on_chunk("Rain ")
        on_chunk("in Dhaka")
        return TranslationResult(
            original=text,
            translated="Rain in Dhaka",
            source_language=Language.BANGLA,
            target_language=Language.ENGLISH,
            sources=[SourceCitation(uri="https://a.example", title="A")],
        )

    monkeypatch.setattr(main_module, "translate_stream", fake_translate_stream)

    code = main_module.main(
        ["--db", db_path, "translate", "ঢাকায় বৃষ্টি", "--format", "full_translation", "--no-history"]
    )

    assert code == 0
    out = capsys.readouterr().out
    assert out.startswith("Rain in Dhaka\n")
    assert "[1] A - https://a.example" in out
    assert captured["options"].format == TranslationFormat.FULL_TRANSLATION
    assert [entry.term for entry in captured["options"].glossary] == ["উপদেষ্টা"]
    assert captured["context"].history is None


@pytest.mark.parametrize(
    "error, expected",
    [(UnsupportedLanguageError("unknown"), 2), (TranslationError("Failed to translate content."), 1)],
)
def test_translate_error_exit_codes(db_path, monkeypatch, error, expected):
    def fake_translate_stream(*args, **kwargs):
        raise error

    monkeypatch.setattr(main_module, "translate_stream", fake_translate_stream)

    assert main_module.main(["--db", db_path, "translate", "anything", "--no-history"]) == expected


def test_translate_blank_input(db_path):
    assert main_module.main(["--db", db_path, "translate", "   "]) == 1


def test_history_listing_and_deletion(db_path, capsys):
    with HistoryStore(db_path) as history:
        kept = history.add("Budget speech", "বাজেট বক্তৃতা", TranslationFormat.FULL_TRANSLATION)
        dropped = history.add("Flood", "বন্যা", TranslationFormat.PARAGRAPH_BY_PARAGRAPH)

    assert main_module.main(["--db", db_path, "history", "--query", "budget"]) == 0
    out = capsys.readouterr().out
    assert kept.id in out
    assert dropped.id not in out

    assert main_module.main(["--db", db_path, "history", "--delete", dropped.id]) == 0
    assert main_module.main(["--db", db_path, "history", "--delete", dropped.id]) == 1

    assert main_module.main(["--db", db_path, "history", "--clear"]) == 0
    with HistoryStore(db_path) as history:
        assert history.list() == []


def test_check_reports_backend_state(monkeypatch):
    monkeypatch.setattr(main_module, "has_model", lambda tier, context=None: True)
    assert main_module.main(["check"]) == 0

    monkeypatch.setattr(main_module, "has_model", lambda tier, context=None: False)
    assert main_module.main(["check"]) == 1
