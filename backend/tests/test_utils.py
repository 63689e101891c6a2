"""
Quill — Tests
"""

from quill.domain.content.fields import ARCHIVED_FIELDS, ContentFields
from quill.utils.text_processing import count_words, estimate_read_time, slugify, truncate_text


# ── Text Processing Tests ──

class TestSlugify:
    def test_basic_title(self):
        assert slugify("Hello, World!  Again") == "hello-world-again"

    def test_keeps_unicode_letters(self):
        assert slugify("Café au lait") == "café-au-lait"

    def test_empty(self):
        assert slugify("") == ""

    def test_max_length(self):
        assert len(slugify("word " * 100, max_length=20)) <= 20


class TestReadTime:
    def test_counts_words_ignoring_markup(self):
        assert count_words("<p>one two</p> three") == 3

    def test_rounds_up_to_minutes(self):
        assert estimate_read_time("word " * 201, words_per_minute=200) == "2 min read"

    def test_empty_body_has_no_read_time(self):
        assert estimate_read_time("") == ""


class TestTruncate:
    def test_short_text_untouched(self):
        assert truncate_text("short", 10) == "short"

    def test_cuts_at_word_boundary(self):
        assert truncate_text("alpha beta gamma", 12) == "alpha beta..."


# ── Field Set Tests ──

class TestContentFields:
    def test_empty_means_blank_title_and_body(self):
        assert ContentFields().is_empty()
        assert ContentFields(title="   ", excerpt="only an excerpt").is_empty()
        assert not ContentFields(body="x").is_empty()

    def test_serialize_is_stable(self):
        a = ContentFields(title="T", body="B")
        b = ContentFields(body="B", title="T")
        assert a.serialize() == b.serialize()

    def test_deserialize_corrupt_payload(self):
        assert ContentFields.deserialize("{not json") is None
        assert ContentFields.deserialize("[1, 2]") is None
        assert ContentFields.deserialize(None) is None

    def test_deserialize_round_trip(self):
        fields = ContentFields(title="T", body="B", cover_image="https://img.example/x.png")
        assert ContentFields.deserialize(fields.serialize()) == fields

    def test_from_mapping_ignores_unknown_and_nulls(self):
        fields = ContentFields.from_mapping({"title": None, "body": "b", "unknown": 1})
        assert fields.title == ""
        assert fields.body == "b"

    def test_archived_excludes_slug(self):
        archived = ContentFields(title="T", slug="t").archived()
        assert set(archived) == set(ARCHIVED_FIELDS)
        assert "slug" not in archived
