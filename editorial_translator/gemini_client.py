"""Gemini API client with retry logic and streamed responses.

This module provides a resilient HTTP client for the Gemini
``streamGenerateContent`` endpoint. Uses httpx for timeout/connection handling
and tenacity for retries while the stream is being opened.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Iterator, Optional

import httpx
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random
)

from editorial_translator.config import GEMINI_API_BASE
from editorial_translator.entities import SourceCitation

logger = logging.getLogger(__name__)

# Suppress httpx debug logs to prevent key leakage
logging.getLogger('httpx').setLevel(logging.ERROR)


def _redact_key(key: str) -> str:
    """Redact API key for safe logging.

    Args:
        key: API key to redact

    Returns:
        Redacted key string
    """
    if not key:
        return "[EMPTY]"
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}...{key[-4:]}"


# Custom exceptions for better error handling
class GeminiApiError(Exception):
    """Base exception for Gemini API errors"""
    pass


class AuthenticationError(GeminiApiError):
    """Raised when the API key is invalid or missing"""
    pass


class RateLimitError(GeminiApiError):
    """Raised when quota or rate limit is exceeded"""
    pass


class ModelOverloadedError(GeminiApiError):
    """Raised when the model is overloaded or temporarily unavailable"""
    pass


class InvalidRequestError(GeminiApiError):
    """Raised when the API rejects the request payload"""
    pass


@dataclass
class StreamChunk:
    """One server-sent event from a streamed generation."""

    text: str = ""
    sources: list[SourceCitation] = field(default_factory=list)


class GeminiClient:
    """Gemini API client with retry logic.

    Features:
    - Exponential backoff with jitter while opening a stream
    - Connection pooling via httpx
    - Typed exceptions for different error types
    - Configurable timeouts and retries
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 3,
        base_url: Optional[str] = None
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY / API_KEY env vars)
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts to open a stream
            base_url: API root (defaults to GEMINI_API_BASE)
        """
        self.api_key = api_key or os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
        if not self.api_key:
            raise AuthenticationError(
                "GEMINI_API_KEY not set. Get one at: "
                "https://aistudio.google.com/app/apikey"
            )

        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_url = (base_url or GEMINI_API_BASE).rstrip('/')

        # Create httpx client with connection pooling
        self.client = httpx.Client(
            headers={"x-goog-api-key": self.api_key},
            timeout=httpx.Timeout(timeout)
        )
        logger.debug("Gemini client ready (key %s)", _redact_key(self.api_key))

        # Configure retry strategy with exponential backoff and jitter
        self._retry = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10) + wait_random(0, 1),
            retry=retry_if_exception_type(
                (ModelOverloadedError, httpx.TimeoutException, httpx.TransportError)
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING)
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the HTTP client and release connections"""
        self.client.close()

    def _check_status(self, response: httpx.Response) -> None:
        """Map error status codes onto typed exceptions.

        Raises:
            InvalidRequestError: Malformed request (400)
            AuthenticationError: Invalid key or permission denied (401/403)
            RateLimitError: Quota exceeded (429)
            ModelOverloadedError: Server error or overload (500/503)
            GeminiApiError: Other API errors
        """
        if response.status_code == 400:
            raise InvalidRequestError(f"Request rejected: {self._error_message(response)}")

        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid Gemini API key")

        if response.status_code == 429:
            raise RateLimitError("Rate limit exceeded. Try again later.")

        if response.status_code in (500, 503):
            # Overloaded model - should retry
            raise ModelOverloadedError("Model is overloaded, retrying...")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GeminiApiError(f"API request failed: {e}")

    def _error_message(self, response: httpx.Response) -> str:
        """Best-effort extraction of the API's error message."""
        try:
            payload = response.json()
        except Exception:
            return f"HTTP {response.status_code}"
        if isinstance(payload, dict):
            error = payload.get('error')
            if isinstance(error, dict) and error.get('message'):
                return str(error['message'])
        return f"HTTP {response.status_code}"

    def _build_payload(
        self,
        contents: str,
        system_instruction: Optional[str],
        temperature: float,
        use_search: bool
    ) -> dict:
        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": contents}]}],
            "generationConfig": {"temperature": temperature},
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if use_search:
            payload["tools"] = [{"google_search": {}}]
        return payload

    def _open_stream(self, model: str, payload: dict) -> httpx.Response:
        """Open a single streaming request and validate its status."""
        api_url = f"{self.base_url}/models/{model}:streamGenerateContent"
        request = self.client.build_request(
            "POST", api_url, params={"alt": "sse"}, json=payload
        )

        try:
            response = self.client.send(request, stream=True)
        except httpx.TimeoutException:
            logger.error("Request timeout after %.1fs", self.timeout)
            raise
        except httpx.TransportError as exc:
            logger.error("Network error opening stream: %s", exc)
            raise

        if response.status_code >= 400:
            try:
                response.read()
                self._check_status(response)
            finally:
                response.close()
        return response

    def stream_generate(
        self,
        model: str,
        contents: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.1,
        use_search: bool = False
    ) -> Iterator[StreamChunk]:
        """Stream a generation as parsed chunks.

        Opening the stream is retried; once chunks arrive, failures propagate.

        Args:
            model: Gemini model identifier
            contents: User content (the article)
            system_instruction: Optional system instruction
            temperature: Sampling temperature
            use_search: Enable grounded Google Search

        Yields:
            StreamChunk for each event carrying text or sources

        Raises:
            GeminiApiError: On API errors or malformed events
            AuthenticationError: Invalid key
            RateLimitError: Rate limit exceeded
        """
        payload = self._build_payload(contents, system_instruction, temperature, use_search)

        def _call() -> httpx.Response:
            return self._open_stream(model, payload)

        try:
            response = self._retry(_call)
        except RetryError as exc:  # pragma: no cover
            last_exc = exc.last_attempt.exception()
            if last_exc:
                raise last_exc
            raise

        try:
            for line in response.iter_lines():
                chunk = self._parse_event(line)
                if chunk is not None:
                    yield chunk
        except httpx.HTTPError as exc:
            logger.error("Stream interrupted: %s", exc)
            raise GeminiApiError(f"Stream interrupted: {exc}") from exc
        finally:
            response.close()

    def generate(
        self,
        model: str,
        contents: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.1,
        use_search: bool = False
    ) -> str:
        """Return the full generated text of a streamed request."""
        return "".join(
            chunk.text
            for chunk in self.stream_generate(
                model, contents, system_instruction, temperature, use_search
            )
        )

    def _parse_event(self, line: str) -> Optional[StreamChunk]:
        """Parse one SSE line into a chunk (None for keep-alives and blanks)."""
        line = line.strip()
        if not line or not line.startswith("data:"):
            return None

        data = line[len("data:"):].strip()
        if not data or data == "[DONE]":
            return None

        try:
            event = json.loads(data)
        except ValueError as e:
            raise GeminiApiError(f"Failed to parse stream event: {e}")

        if not isinstance(event, dict):
            raise GeminiApiError(f"Unexpected event format: {type(event)}")

        if 'error' in event:
            error = event['error']
            message = error.get('message') if isinstance(error, dict) else error
            raise GeminiApiError(f"Stream error: {message}")

        candidates = event.get('candidates') or []
        if not candidates:
            return None

        candidate = candidates[0]
        parts = (candidate.get('content') or {}).get('parts') or []
        text = "".join(
            part.get('text', '') for part in parts
            if isinstance(part, dict) and not part.get('thought')
        )
        sources = self._extract_sources(candidate)

        if not text and not sources:
            return None
        return StreamChunk(text=text, sources=sources)

    def _extract_sources(self, candidate: dict) -> list[SourceCitation]:
        """Extract web citations from grounding metadata."""
        metadata = candidate.get('groundingMetadata') or {}
        sources: list[SourceCitation] = []
        for grounding_chunk in metadata.get('groundingChunks') or []:
            web = grounding_chunk.get('web') if isinstance(grounding_chunk, dict) else None
            if isinstance(web, dict) and web.get('uri'):
                sources.append(SourceCitation(uri=web['uri'], title=web.get('title', '')))
        return sources

    def health_check(self, model: str) -> bool:
        """Verify API key and model availability.

        Args:
            model: Gemini model identifier to look up

        Returns:
            True if API is accessible, False otherwise
        """
        try:
            response = self.client.get(f"{self.base_url}/models/{model}", timeout=10.0)
            self._check_status(response)
            return True

        except AuthenticationError:
            logger.error("Authentication failed - invalid API key")
            return False
        except (GeminiApiError, httpx.HTTPError) as e:
            logger.warning("Health check failed: %s", e)
            return False
