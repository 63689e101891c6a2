"""Utils package."""
from quill.utils.text_processing import count_words, estimate_read_time, slugify, truncate_text

__all__ = [
    "count_words", "estimate_read_time", "slugify", "truncate_text",
]
