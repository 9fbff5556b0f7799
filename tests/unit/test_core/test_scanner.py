"""Tests for WF tag recognition and stripping."""

import pytest

from wf_ticket.core.scanner import (
    find_loose,
    format_tag,
    match_canonical,
    squash_spaces,
    strip_loose,
)


class TestMatchCanonical:
    """Tests for the trailing canonical tag contract."""

    def test_trailing_tag(self):
        assert match_canonical("Ship it #WF-00041200") == "00041200"

    def test_trailing_whitespace_ignored(self):
        assert match_canonical("Ship it #WF-00041200   ") == "00041200"

    def test_tag_only(self):
        assert match_canonical("#WF-12345678") == "12345678"

    def test_case_insensitive(self):
        assert match_canonical("Ship it #wf-12345678") == "12345678"

    def test_not_trailing(self):
        """Should ignore a tag followed by other text."""
        assert match_canonical("#WF-00041200 is not trailing") is None

    @pytest.mark.parametrize(
        "text",
        [
            "Ship it #WF-1234567",  # seven digits
            "Ship it #WF-123456789",  # nine digits
            "Ship it #WF 12345678",  # missing hyphen
            "Ship it WF-12345678",  # missing hash
            "Ship it #WF-1234567a",
            "Ship it #WF-\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668",  # Arabic-Indic digits
            "Ship it #WF-\uff11\uff12\uff13\uff14\uff15\uff16\uff17\uff18",  # fullwidth digits
        ],
    )
    def test_malformed_tags_rejected(self, text):
        assert match_canonical(text) is None

    @pytest.mark.parametrize("text", [None, ""])
    def test_missing_text(self, text):
        assert match_canonical(text) is None


class TestStripLoose:
    """Tests for the loose removal contract."""

    def test_strips_mixed_forms(self):
        assert strip_loose("Task #wf-123 extra #WF_45678901 done") == "Task extra done"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Fix login #WF-12345678", "Fix login"),
            ("Fix login #wf 12", "Fix login"),
            ("Fix login # WF_0042", "Fix login"),
            ("Fix login #WF42", "Fix login"),
            ("#WF-00000001 Fix login", "Fix login"),
        ],
    )
    def test_single_tag_forms(self, text, expected):
        assert strip_loose(text) == expected

    def test_squashes_whitespace(self):
        assert strip_loose("  Fix   login \t now ") == "Fix login now"

    def test_only_tags_gives_empty(self):
        assert strip_loose("#WF-12345678 #wf 1") == ""

    def test_leaves_unrelated_hashes(self):
        assert strip_loose("Bump #123 and #wfx") == "Bump #123 and #wfx"

    @pytest.mark.parametrize("text", [None, ""])
    def test_missing_text(self, text):
        assert strip_loose(text) == ""

    def test_stripped_text_has_no_canonical_tag(self):
        """Should never leave a canonical tag behind."""
        assert match_canonical(strip_loose("Old #WF-11111111 #WF-22222222")) is None


class TestHelpers:
    def test_find_loose_in_order(self):
        assert find_loose("a #wf-1 b #WF_22 c #WF-12345678") == ["1", "22", "12345678"]

    def test_squash_spaces(self):
        assert squash_spaces(" a \n b  ") == "a b"

    def test_find_loose_ignores_non_ascii_digits(self):
        assert find_loose("a #wf-\u0661\u0662 b #WF_3") == ["3"]

    def test_format_tag(self):
        assert format_tag("00041200") == "#WF-00041200"
