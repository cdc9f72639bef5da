"""Centralized configuration for the editorial translator.

Package structure:
- settings.py: Environment-based configuration (API key, storage settings)
- constants.py: Static constants (detector scoring, stopwords, labels)
- models.py: Model selection logic (get_model_name, search_allowed)

All exports are re-exported here.
"""

# Re-export environment settings
from editorial_translator.config.settings import (
    GEMINI_API_KEY,
    GEMINI_API_BASE,
    GEMINI_API_TIMEOUT,
    GEMINI_MAX_RETRIES,
    STORAGE_PATH,
    HISTORY_ENABLED,
    HISTORY_LIMIT,
)

# Re-export static constants
from editorial_translator.config.constants import (
    TRANSLATION_TEMPERATURE,
    LANGUAGE_LABELS,
    BANGLA_BLOCK_START,
    BANGLA_BLOCK_END,
    STOPWORD_BONUS,
    SCRIPT_BONUS,
    MIXED_SCRIPT_BONUS,
    DOMINANCE_RATIO_THRESHOLD,
    RATIO_FALLBACK_MIN_TOKENS,
    MIN_TEXT_LENGTH,
    BANGLA_STOPWORDS,
    ENGLISH_STOPWORDS,
)

# Re-export model logic functions
from editorial_translator.config.models import (
    get_model_name,
    search_allowed,
)

__all__ = [
    # Settings
    'GEMINI_API_KEY',
    'GEMINI_API_BASE',
    'GEMINI_API_TIMEOUT',
    'GEMINI_MAX_RETRIES',
    'STORAGE_PATH',
    'HISTORY_ENABLED',
    'HISTORY_LIMIT',
    # Constants
    'TRANSLATION_TEMPERATURE',
    'LANGUAGE_LABELS',
    'BANGLA_BLOCK_START',
    'BANGLA_BLOCK_END',
    'STOPWORD_BONUS',
    'SCRIPT_BONUS',
    'MIXED_SCRIPT_BONUS',
    'DOMINANCE_RATIO_THRESHOLD',
    'RATIO_FALLBACK_MIN_TOKENS',
    'MIN_TEXT_LENGTH',
    'BANGLA_STOPWORDS',
    'ENGLISH_STOPWORDS',
    # Model logic
    'get_model_name',
    'search_allowed',
]
