"""Editorial Bangla/English translation assistant."""

from editorial_translator.detector import detect_language
from editorial_translator.entities import Language

__version__ = "0.1.0"

__all__ = ["Language", "detect_language", "__version__"]
