"""Tests for gap text normalization."""

import pytest

from lessonquiz.grading.normalizer import decode_entities, normalize, strip_tags


class TestDecodeEntities:
    """Test entity decoding."""

    def test_decodes_known_entities(self):
        """Test that the editor's entities become plain characters."""
        assert decode_entities("a&nbsp;b &quot;c&quot; &#39;d&#39;") == "a b \"c\" 'd'"

    def test_ampersand_decoded_after_angle_brackets(self):
        """Test that a double-escaped bracket is only unescaped once per pass."""
        assert decode_entities("&amp;lt;") == "&lt;"


class TestStripTags:
    """Test tag removal."""

    def test_removes_complete_tags(self):
        """Test that well-formed tags disappear."""
        assert strip_tags("<b>blue</b>") == "blue"

    def test_removes_unclosed_tag_at_end(self):
        """Test that a tag cut off at the end is removed."""
        assert strip_tags("blue<span class=") == "blue"

    def test_removes_orphan_close_at_start(self):
        """Test that a tag cut off at the start is removed."""
        assert strip_tags('class="x">blue') == "blue"

    def test_no_angle_brackets_survive(self):
        """Test that stray brackets are dropped."""
        assert "<" not in strip_tags("a < b > c")
        assert ">" not in strip_tags("a < b > c")


class TestNormalize:
    """Test the full normalization pipeline."""

    def test_removes_marker_and_trims(self):
        """Test that the correct-answer marker and outer spaces go away."""
        assert normalize("  blue*  ") == "blue"

    def test_strips_markup_from_rich_text(self):
        """Test that editor markup is removed."""
        assert normalize("<strong>emerald</strong>&nbsp;") == "emerald"

    def test_none_is_empty(self):
        """Test that None normalizes to an empty string."""
        assert normalize(None) == ""

    @pytest.mark.parametrize(
        "text",
        [
            "blue",
            " *green ",
            "<b>bold</b>",
            "&amp;lt;b&amp;gt;x",
            "&lt;i&gt;y&lt;/i&gt;",
            "a < b",
            "<p>unclosed",
            "broken>tail",
            "&amp;amp;lt;",
            "",
        ],
    )
    def test_is_idempotent(self, text: str):
        """Test that normalizing twice changes nothing."""
        once = normalize(text)
        assert normalize(once) == once
