"""
Quill — Text Processing Utilities
=================================
Derived field helpers (slug, read time, excerpts).
"""

import math
import re
import unicodedata


def slugify(text: str, max_length: int = 120) -> str:
    """URL slug from a title. Keeps Unicode letters so non-Latin titles stay readable."""
    if not text:
        return ""
    value = unicodedata.normalize("NFKC", text).lower().strip()
    value = re.sub(r"[^\w\s-]", "", value)
    value = re.sub(r"[\s_-]+", "-", value).strip("-")
    if len(value) > max_length:
        value = value[:max_length].rstrip("-")
    return value


def count_words(text: str) -> int:
    """Count words in text, ignoring markup."""
    if not text:
        return 0
    return len(re.sub(r"<[^>]+>", " ", text).split())


def estimate_read_time(text: str, words_per_minute: int = 200) -> str:
    words = count_words(text)
    if words == 0:
        return ""
    minutes = max(1, math.ceil(words / max(1, words_per_minute)))
    return f"{minutes} min read"


def truncate_text(text: str, max_length: int = 500) -> str:
    """Truncate text to max_length, ending at a word boundary."""
    if not text or len(text) <= max_length:
        return text or ""
    truncated = text[:max_length]
    last_space = truncated.rfind(' ')
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."
