"""Model selection logic.

Business logic for determining which Gemini model serves a request.
"""
import os

_FAST_MODEL = 'gemini-3-flash-preview'
_DEEP_MODEL = 'gemini-3-pro-preview'


def get_model_name(tier: str) -> str:
    """Return the Gemini model for a model tier.

    ``DEEP_EDITORIAL`` uses the pro model, everything else the flash model.
    GEMINI_DEEP_MODEL / GEMINI_FAST_MODEL override the defaults.

    Args:
        tier: Model tier name (``FAST`` or ``DEEP_EDITORIAL``)

    Returns:
        Gemini model identifier
    """
    if tier == 'DEEP_EDITORIAL':
        return os.getenv('GEMINI_DEEP_MODEL', _DEEP_MODEL).strip() or _DEEP_MODEL
    return os.getenv('GEMINI_FAST_MODEL', _FAST_MODEL).strip() or _FAST_MODEL


def search_allowed(tier: str, use_search: bool) -> bool:
    """Grounded web search is only offered on the deep editorial tier."""
    return bool(use_search) and tier == 'DEEP_EDITORIAL'
