"""Static constants and lookup tables.

Configuration values that don't change at runtime.
"""

# Translation parameters
TRANSLATION_TEMPERATURE = 0.1  # Editorial output should be near-deterministic

# Display names for the supported languages
LANGUAGE_LABELS = {
    'BANGLA': 'Bangla',
    'ENGLISH': 'English',
    'UNKNOWN': 'Unknown',
}

# Bangla Unicode block (U+0980–U+09FF)
BANGLA_BLOCK_START = 0x0980
BANGLA_BLOCK_END = 0x09FF

# Language detection scoring
STOPWORD_BONUS = 10
SCRIPT_BONUS = 2
MIXED_SCRIPT_BONUS = 1
DOMINANCE_RATIO_THRESHOLD = 1.2
RATIO_FALLBACK_MIN_TOKENS = 5  # ratio fallback applies above this token count
MIN_TEXT_LENGTH = 2

# Heuristics for language detection
BANGLA_STOPWORDS = frozenset({
    'এবং', 'ও', 'কিন্তু', 'বা', 'অথবা', 'না', 'নয়', 'এই', 'সেই', 'ওই',
    'যে', 'যা', 'যদি', 'তবে', 'তাই', 'কারণ', 'করে', 'করা', 'করেন', 'করেছে',
    'হয়', 'হয়েছে', 'হবে', 'ছিল', 'ছিলেন', 'আছে', 'থেকে', 'জন্য', 'দিয়ে',
    'নিয়ে', 'সঙ্গে', 'সাথে', 'মধ্যে', 'পর', 'পরে', 'আগে', 'উপর', 'তার',
    'তাদের', 'তিনি', 'তারা', 'আমি', 'আমরা', 'আমাদের', 'আপনি', 'একটি', 'এক',
    'কি', 'কী', 'এর', 'এটি', 'এটা', 'সে', 'বলে', 'বলেন', 'শুধু', 'আর',
})

ENGLISH_STOPWORDS = frozenset({
    'the', 'and', 'of', 'to', 'a', 'in', 'is', 'it', 'for', 'on',
    'with', 'as', 'at', 'by', 'from', 'or', 'an', 'be', 'this', 'that',
    'are', 'was', 'were', 'has', 'have', 'had', 'not', 'but', 'will', 'would',
    'their', 'its', 'which', 'who', 'he', 'she', 'they', 'we', 'said', 'been',
})
