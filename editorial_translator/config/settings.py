"""Environment-based settings and runtime configuration.

All settings that depend on environment variables or runtime state.
"""
import os

# Gemini API credentials and limits
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY', '')
GEMINI_API_BASE = os.getenv(
    'GEMINI_API_BASE', 'https://generativelanguage.googleapis.com/v1beta'
).rstrip('/')
GEMINI_API_TIMEOUT = 60.0  # seconds, streamed articles can be long
GEMINI_MAX_RETRIES = 3

# Local storage (history, glossary, drafts)
STORAGE_PATH = os.getenv('TRANSLATOR_DB', 'translator.db')
HISTORY_ENABLED = os.getenv('TRANSLATOR_HISTORY', '1').strip().lower() not in {'0', 'false', 'no'}
HISTORY_LIMIT = 50
