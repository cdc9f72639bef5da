#!/usr/bin/env python3
"""Browser interface and JSON API for the editorial translator."""
from __future__ import annotations

import argparse
import errno
import json
import logging
import sys
import threading
import webbrowser
from dataclasses import asdict, dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Iterable, Optional
from urllib.parse import parse_qs, unquote, urlparse

from editorial_translator.config import LANGUAGE_LABELS, STORAGE_PATH
from editorial_translator.detector import detect_language, translation_direction
from editorial_translator.drafts import DraftStore
from editorial_translator.entities import (
    ContentType,
    HistoryItem,
    Language,
    ModelTier,
    TranslationFormat,
    TranslationOptions,
    TranslationStatus,
    parse_enum,
)
from editorial_translator.glossary import GlossaryStore
from editorial_translator.history import DateFilter
from editorial_translator.templates import render_options, render_template
from editorial_translator.translator import TranslationContext, TranslationError, translate_stream

LOGGER = logging.getLogger(__name__)

MAX_BODY_BYTES = 2 * 1024 * 1024


@dataclass
class AppState:
    """Stores shared by all request handler threads."""

    context: TranslationContext
    glossary: GlossaryStore
    drafts: DraftStore

    @classmethod
    def create(cls, db_path: str = STORAGE_PATH) -> AppState:
        return cls(
            context=TranslationContext.create(db_path=db_path),
            glossary=GlossaryStore(db_path),
            drafts=DraftStore(db_path),
        )


class RequestError(Exception):
    """Client error mapped onto an HTTP status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status


def detection_payload(text: Optional[str]) -> Dict[str, Any]:
    """Detection result as returned by ``/api/detect``."""
    language = detect_language(text)
    mode = translation_direction(language)
    return {
        "language": language.value,
        "label": LANGUAGE_LABELS[language.value],
        "mode": mode.value if mode else None,
        "can_translate": language != Language.UNKNOWN,
    }


def history_item_payload(item: HistoryItem) -> Dict[str, Any]:
    payload = asdict(item)
    payload["format"] = item.format.value
    return payload


def parse_translation_request(body: Dict[str, Any]) -> tuple[str, TranslationOptions]:
    """Validate a ``/api/translate`` body.

    Raises:
        RequestError: Missing text, invalid option values, or undetectable language
    """
    text = body.get("text")
    if not isinstance(text, str) or not text.strip():
        raise RequestError(400, "Missing 'text'")

    try:
        options = TranslationOptions(
            format=parse_enum(TranslationFormat, body.get("format"), TranslationFormat.PARAGRAPH_BY_PARAGRAPH),
            tier=parse_enum(ModelTier, body.get("tier"), ModelTier.FAST),
            content_type=parse_enum(ContentType, body.get("content_type"), ContentType.HARD_NEWS),
            use_search=bool(body.get("use_search", False)),
        )
    except ValueError as exc:
        raise RequestError(400, str(exc)) from exc

    if detect_language(text) == Language.UNKNOWN:
        raise RequestError(422, "Could not detect Bangla or English text to translate.")
    return text, options


class TranslatorRequestHandler(BaseHTTPRequestHandler):
    """HTTP handler serving the page and the JSON API."""

    protocol_version = "HTTP/1.1"

    def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler API)
        parsed = urlparse(self.path)
        if parsed.path == "/":
            self._serve_index()
        elif parsed.path == "/api/history":
            self._dispatch(self._list_history, parsed)
        elif parsed.path == "/api/glossary":
            self._dispatch(self._list_glossary)
        elif parsed.path == "/api/draft":
            self._dispatch(lambda: {"text": self.state.drafts.load()})
        else:
            self._send_not_found("Endpoint not found")

    def do_POST(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        if parsed.path == "/api/detect":
            self._dispatch(self._detect)
        elif parsed.path == "/api/translate":
            self._handle_translate()
        elif parsed.path == "/api/glossary":
            self._dispatch(self._add_glossary)
        elif parsed.path == "/api/glossary/import":
            self._dispatch(self._import_glossary)
        else:
            self._send_not_found("Endpoint not found")

    def do_PUT(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        if parsed.path == "/api/draft":
            self._dispatch(self._save_draft)
        else:
            self._send_not_found("Endpoint not found")

    def do_DELETE(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        path = parsed.path.rstrip("/")
        if path == "/api/history":
            self._dispatch(self._clear_history)
        elif path.startswith("/api/history/"):
            item_id = unquote(path.split("/api/history/", 1)[1])
            self._dispatch(self._delete_history, item_id)
        elif path == "/api/glossary":
            self._dispatch(self._clear_glossary)
        elif path.startswith("/api/glossary/"):
            entry_id = unquote(path.split("/api/glossary/", 1)[1])
            self._dispatch(self._remove_glossary, entry_id)
        else:
            self._send_not_found("Endpoint not found")

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A003
        LOGGER.info("%s - %s", self.client_address[0], format % args)

    @property
    def state(self) -> AppState:
        return getattr(self.server, "app_state")  # type: ignore[attr-defined]

    def _dispatch(self, handler, *args) -> None:
        try:
            payload = handler(*args)
        except RequestError as exc:
            self._send_error(exc.status, str(exc))
            return
        except Exception as exc:
            LOGGER.error("Request %s %s failed: %s", self.command, self.path, exc, exc_info=True)
            self._send_error(500, "Internal server error")
            return
        self._send_json(payload)

    def _read_json(self) -> Dict[str, Any]:
        length = int(self.headers.get("Content-Length") or 0)
        if length > MAX_BODY_BYTES:
            raise RequestError(413, "Request body too large")
        raw = self.rfile.read(length) if length else b""
        if not raw:
            return {}
        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise RequestError(400, f"Invalid JSON body: {exc}") from exc
        if not isinstance(body, dict):
            raise RequestError(400, "JSON body must be an object")
        return body

    def _serve_index(self) -> None:
        content = FRONTEND_HTML.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    def _detect(self) -> Dict[str, Any]:
        text = self._read_json().get("text")
        if text is None:
            text = ""
        elif not isinstance(text, str):
            raise RequestError(400, "'text' must be a string")
        return detection_payload(text)

    def _list_history(self, parsed_url) -> Dict[str, Any]:
        history = self.state.context.history
        if history is None:
            return {"items": []}
        params = parse_qs(parsed_url.query)
        raw_format = params.get("format", [""])[0]
        try:
            fmt = None if raw_format.upper() in ("", "ALL") else parse_enum(TranslationFormat, raw_format)
            date_filter = parse_enum(DateFilter, params.get("date", [""])[0], DateFilter.ALL)
        except ValueError as exc:
            raise RequestError(400, str(exc)) from exc
        items = history.search(format=fmt, date_filter=date_filter, query=params.get("q", [""])[0])
        return {"items": [history_item_payload(item) for item in items]}

    def _delete_history(self, item_id: str) -> Dict[str, Any]:
        history = self.state.context.history
        if history is None or not history.delete(item_id):
            raise RequestError(404, "History item not found")
        return {"deleted": item_id}

    def _clear_history(self) -> Dict[str, Any]:
        if self.state.context.history is not None:
            self.state.context.history.clear()
        return {"cleared": True}

    def _list_glossary(self) -> Dict[str, Any]:
        return {"entries": [asdict(entry) for entry in self.state.glossary.list()]}

    def _add_glossary(self) -> Dict[str, Any]:
        body = self._read_json()
        try:
            entry = self.state.glossary.add(str(body.get("term") or ""), str(body.get("definition") or ""))
        except ValueError as exc:
            raise RequestError(400, str(exc)) from exc
        return asdict(entry)

    def _import_glossary(self) -> Dict[str, Any]:
        text = self._read_json().get("text")
        if not isinstance(text, str):
            raise RequestError(400, "Missing 'text'")
        entries = self.state.glossary.import_text(text)
        return {"entries": [asdict(entry) for entry in entries]}

    def _remove_glossary(self, entry_id: str) -> Dict[str, Any]:
        if not self.state.glossary.remove(entry_id):
            raise RequestError(404, "Glossary entry not found")
        return {"deleted": entry_id}

    def _clear_glossary(self) -> Dict[str, Any]:
        self.state.glossary.clear()
        return {"cleared": True}

    def _save_draft(self) -> Dict[str, Any]:
        text = self._read_json().get("text")
        if not isinstance(text, str):
            raise RequestError(400, "Missing 'text'")
        return {"saved": self.state.drafts.save(text)}

    def _handle_translate(self) -> None:
        try:
            text, options = parse_translation_request(self._read_json())
            options.glossary = self.state.glossary.list()
        except RequestError as exc:
            self._send_error(exc.status, str(exc))
            return
        except Exception as exc:
            LOGGER.error("Failed to prepare translation: %s", exc, exc_info=True)
            self._send_error(500, "Internal server error")
            return

        self.send_response(200)
        self.send_header("Content-Type", "application/x-ndjson; charset=utf-8")
        self.send_header("Cache-Control", "no-store")
        self.send_header("Connection", "close")
        self.end_headers()
        self.close_connection = True

        def emit(event: Dict[str, Any]) -> None:
            self.wfile.write((json.dumps(event, ensure_ascii=False) + "\n").encode("utf-8"))
            self.wfile.flush()

        try:
            result = translate_stream(
                text,
                options,
                on_chunk=lambda chunk: emit({"type": "chunk", "text": chunk}),
                on_sources=lambda sources: emit(
                    {"type": "sources", "sources": [asdict(source) for source in sources]}
                ),
                context=self.state.context,
            )
            emit(
                {
                    "type": "done",
                    "status": TranslationStatus.SUCCESS.value,
                    "source_language": result.source_language.value,
                    "target_language": result.target_language.value if result.target_language else None,
                    "model": result.model,
                }
            )
        except TranslationError as exc:
            emit({"type": "error", "status": TranslationStatus.ERROR.value, "error": str(exc)})
        except (BrokenPipeError, ConnectionResetError):
            LOGGER.warning("Client disconnected during translation stream")

    def _send_not_found(self, message: str) -> None:
        self._send_error(404, message)

    def _send_error(self, status: int, message: str) -> None:
        payload = {"error": message}
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _send_json(self, payload: Dict[str, Any]) -> None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Cache-Control", "no-store")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)


def parse_arguments(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the web app."""
    parser = argparse.ArgumentParser(
        description="Serve the editorial translator in the browser."
    )
    add_server_arguments(parser)
    parser.add_argument(
        "--db",
        default=STORAGE_PATH,
        help=f"SQLite file for history, glossary and drafts (default: {STORAGE_PATH})",
    )
    return parser.parse_args(argv)


def add_server_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    parser.add_argument(
        "--open-browser",
        action="store_true",
        help="Automatically open the translator in the default browser",
    )
    parser.add_argument(
        "--port-attempts",
        type=int,
        default=5,
        help="Number of consecutive ports to try if the preferred one is busy (default: 5)",
    )


def create_http_server(
    host: str,
    port: int,
    attempts: int,
    state: AppState,
) -> tuple[ThreadingHTTPServer, int]:
    """
    Create an HTTP server, retrying consecutive ports if the preferred port is in use.
    """
    attempts = max(1, attempts)
    last_error: Optional[OSError] = None

    for offset in range(attempts):
        candidate = port + offset
        try:
            httpd = ThreadingHTTPServer((host, candidate), TranslatorRequestHandler)
        except OSError as exc:
            last_error = exc
            if exc.errno == errno.EADDRINUSE:
                LOGGER.warning(
                    "Port %s is busy on %s, trying next port (attempt %s/%s)",
                    candidate,
                    host,
                    offset + 1,
                    attempts,
                )
                continue
            raise

        httpd.app_state = state  # type: ignore[attr-defined]
        return httpd, candidate

    assert last_error is not None  # pragma: no cover
    raise last_error


def run_server(
    state: AppState,
    host: str,
    port: int,
    open_browser: bool,
    port_attempts: int,
) -> None:
    """Start the HTTP server and optionally open the browser."""
    httpd, bound_port = create_http_server(host, port, port_attempts, state)

    LOGGER.info("Serving translator at http://%s:%s", host, bound_port)

    if open_browser:
        threading.Thread(
            target=lambda: webbrowser.open(f"http://{host}:{bound_port}/"),
            daemon=True,
        ).start()

    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        LOGGER.info("Shutting down translator...")
    finally:
        httpd.server_close()


def serve(args: argparse.Namespace) -> int:
    """Run the server from parsed arguments; returns a process exit code."""
    try:
        state = AppState.create(args.db)
    except Exception as exc:
        LOGGER.error("Failed to open storage %s: %s", args.db, exc)
        return 4

    try:
        run_server(
            state,
            args.host,
            args.port,
            bool(args.open_browser),
            args.port_attempts,
        )
    except OSError as exc:
        LOGGER.error(
            "Unable to start server after trying %s port(s): %s",
            args.port_attempts,
            exc,
        )
        return 3
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for running the web app."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return serve(args)


def _get_frontend_html() -> str:
    """Generate the frontend HTML for the translator page."""
    return render_template(
        "translator.html",
        TITLE="Daily Star Translator",
        FORMAT_OPTIONS=render_options([f.value for f in TranslationFormat]),
        TIER_OPTIONS=render_options([t.value for t in ModelTier]),
        CONTENT_OPTIONS=render_options([c.value for c in ContentType]),
        DATE_OPTIONS=render_options([d.value for d in DateFilter]),
        DETECT_URL="/api/detect",
        TRANSLATE_URL="/api/translate",
        HISTORY_URL="/api/history",
        GLOSSARY_URL="/api/glossary",
        DRAFT_URL="/api/draft",
    )


FRONTEND_HTML = _get_frontend_html()


if __name__ == "__main__":
    sys.exit(main())
