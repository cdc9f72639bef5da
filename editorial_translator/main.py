#!/usr/bin/env python3
"""CLI for the editorial translator"""
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Load environment variables (for GEMINI_API_KEY)
from dotenv import load_dotenv

from editorial_translator import webapp
from editorial_translator.config import STORAGE_PATH
from editorial_translator.detector import detect_language
from editorial_translator.entities import (
    ContentType,
    Language,
    ModelTier,
    TranslationFormat,
    TranslationOptions,
    parse_enum,
)
from editorial_translator.glossary import GlossaryStore
from editorial_translator.history import DateFilter, HistoryStore
from editorial_translator.translator import (
    TranslationContext,
    TranslationError,
    UnsupportedLanguageError,
    has_model,
    translate_stream,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbose, log_file=None):
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )
    # Suppress noisy library loggers and prevent key leakage
    logging.getLogger('httpx').setLevel(logging.ERROR)


def _enum_arg(enum_cls):
    """argparse ``type=`` adapter for case-insensitive enum names."""
    def parse(value):
        try:
            return parse_enum(enum_cls, value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc))
    parse.__name__ = enum_cls.__name__
    return parse


def _read_input(text, file_path):
    if file_path:
        return Path(file_path).read_text(encoding='utf-8')
    if text in (None, '-'):
        return sys.stdin.read()
    return text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Translate news articles between Bangla and English'
    )
    parser.add_argument(
        '--log-file',
        help='Path to log file (optional)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--db',
        default=STORAGE_PATH,
        help=f'SQLite file for history and glossary (default: {STORAGE_PATH})'
    )
    commands = parser.add_subparsers(dest='command', required=True)

    detect = commands.add_parser('detect', help='Detect whether text is Bangla or English')
    detect.add_argument('text', nargs='?', help="Text to classify ('-' or omitted reads stdin)")
    detect.add_argument('--file', help='Read the text from a file')

    translate = commands.add_parser('translate', help='Translate an article and stream it to stdout')
    translate.add_argument('text', nargs='?', help="Article text ('-' or omitted reads stdin)")
    translate.add_argument('--file', help='Read the article from a file')
    translate.add_argument(
        '--format',
        type=_enum_arg(TranslationFormat),
        default=TranslationFormat.PARAGRAPH_BY_PARAGRAPH,
        help='PARAGRAPH_BY_PARAGRAPH (default) or FULL_TRANSLATION'
    )
    translate.add_argument(
        '--tier',
        type=_enum_arg(ModelTier),
        default=ModelTier.FAST,
        help='FAST (default) or DEEP_EDITORIAL'
    )
    translate.add_argument(
        '--content-type',
        type=_enum_arg(ContentType),
        default=ContentType.HARD_NEWS,
        help='HARD_NEWS (default) or OP_ED'
    )
    translate.add_argument(
        '--search',
        action='store_true',
        help='Ground the translation with web search (DEEP_EDITORIAL only)'
    )
    translate.add_argument(
        '--no-history',
        action='store_true',
        help='Do not record the translation in history'
    )

    history = commands.add_parser('history', help='List or clear translation history')
    history.add_argument('--format', type=_enum_arg(TranslationFormat), help='Filter by output format')
    history.add_argument(
        '--date',
        type=_enum_arg(DateFilter),
        default=DateFilter.ALL,
        help='ALL (default), TODAY, YESTERDAY or WEEK'
    )
    history.add_argument('--query', default='', help='Search source and translated text')
    history.add_argument('--delete', metavar='ID', help='Delete one history item')
    history.add_argument('--clear', action='store_true', help='Delete all history')

    glossary = commands.add_parser('glossary', help='Manage glossary terms')
    glossary_commands = glossary.add_subparsers(dest='glossary_command', required=True)
    glossary_commands.add_parser('list', help='List glossary entries')
    add = glossary_commands.add_parser('add', help='Add or update a term')
    add.add_argument('term')
    add.add_argument('definition')
    remove = glossary_commands.add_parser('remove', help='Remove an entry by id')
    remove.add_argument('id')
    import_ = glossary_commands.add_parser('import', help="Import 'term -> definition' lines from a file")
    import_.add_argument('file')
    glossary_commands.add_parser('clear', help='Remove all entries')

    serve = commands.add_parser('serve', help='Serve the browser interface')
    webapp.add_server_arguments(serve)

    commands.add_parser('check', help='Only run the Gemini health check and exit')
    return parser


def _run_detect(args) -> int:
    language = detect_language(_read_input(args.text, args.file))
    print(language.value)
    return 2 if language == Language.UNKNOWN else 0


def _run_translate(args) -> int:
    text = _read_input(args.text, args.file)
    if not text.strip():
        logger.error("Nothing to translate")
        return 1

    with GlossaryStore(args.db) as glossary:
        entries = glossary.list()

    options = TranslationOptions(
        format=args.format,
        tier=args.tier,
        content_type=args.content_type,
        use_search=args.search,
        glossary=entries,
    )
    context = TranslationContext.create(history_enabled=not args.no_history, db_path=args.db)

    def _print_chunk(chunk):
        sys.stdout.write(chunk)
        sys.stdout.flush()

    try:
        result = translate_stream(text, options, on_chunk=_print_chunk, context=context)
    except UnsupportedLanguageError as e:
        logger.error("%s", e)
        return 2
    except TranslationError as e:
        logger.error("Translation failed: %s (cause: %s)", e, e.__cause__)
        return 1

    sys.stdout.write("\n")
    for number, source in enumerate(result.sources, start=1):
        print(f"[{number}] {source.title or source.uri} - {source.uri}")
    return 0


def _run_history(args) -> int:
    with HistoryStore(args.db) as history:
        if args.clear:
            history.clear()
            return 0
        if args.delete:
            if not history.delete(args.delete):
                logger.error("History item not found: %s", args.delete)
                return 1
            return 0
        items = history.search(format=args.format, date_filter=args.date, query=args.query)

    for item in items:
        when = datetime.fromtimestamp(item.timestamp / 1000).strftime('%d %b %H:%M')
        snippet = " ".join(item.source_text.split())[:60]
        print(f"{item.id}  {when}  {item.format.value:<22}  {snippet}")
    logger.info("%d history item(s)", len(items))
    return 0


def _run_glossary(args) -> int:
    with GlossaryStore(args.db) as glossary:
        if args.glossary_command == 'list':
            for entry in glossary.list():
                print(f"{entry.id}  {entry.term} -> {entry.definition}")
        elif args.glossary_command == 'add':
            try:
                entry = glossary.add(args.term, args.definition)
            except ValueError as e:
                logger.error("%s", e)
                return 1
            print(entry.id)
        elif args.glossary_command == 'remove':
            if not glossary.remove(args.id):
                logger.error("Glossary entry not found: %s", args.id)
                return 1
        elif args.glossary_command == 'import':
            entries = glossary.import_text(Path(args.file).read_text(encoding='utf-8'))
            logger.info("Imported %d glossary entries", len(entries))
        elif args.glossary_command == 'clear':
            glossary.clear()
    return 0


def _run_check(args) -> int:
    if has_model(ModelTier.FAST, context=TranslationContext(history=None)):
        logger.info("Gemini translation backend is reachable.")
        return 0
    logger.error(
        "Gemini translation backend unavailable. "
        "Ensure GEMINI_API_KEY is set and network access is available."
    )
    return 1


_COMMANDS = {
    'detect': _run_detect,
    'translate': _run_translate,
    'history': _run_history,
    'glossary': _run_glossary,
    'serve': webapp.serve,
    'check': _run_check,
}


def main(argv=None) -> int:
    """Main CLI entry point"""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.log_file)

    try:
        return _COMMANDS[args.command](args)
    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
