"""
Unit tests for name admissibility rules.
"""

import pytest

from tsundoku.core.names.filters import (
    has_bad_original_chars,
    has_english_honorific,
    has_internal_whitespace,
    has_japanese_honorific,
    is_admissible,
    is_denied_original,
    is_english_admissible,
    is_original_admissible,
)
from tsundoku.core.names.models import NameEntry, NamePart


class TestOriginalChecks:
    """Checks on the Japanese side of a vote."""

    @pytest.mark.parametrize("original", ["田中 太郎", "田中・太郎", "「太郎」", "太郎!", "A/B", "太郎（たろう）", "x-y"])
    def test_punctuation_and_whitespace_rejected(self, original):
        """Should flag separators, brackets and punctuation."""
        assert has_bad_original_chars(original)

    def test_plain_name_has_no_bad_chars(self):
        """Should accept a bare name."""
        assert not has_bad_original_chars("田中太郎")

    @pytest.mark.parametrize("original", ["田中さん", "花子ちゃん", "太郎くん", "姫様", "山田先生", "佐藤先輩", "令嬢"])
    def test_honorific_suffix_detected(self, original):
        """Should detect honorific suffixes at the end of the string."""
        assert has_japanese_honorific(original)

    def test_honorific_in_middle_not_detected(self):
        """Should only match honorifics at the end."""
        assert not has_japanese_honorific("さんた")

    @pytest.mark.parametrize("original", ["彼女", "俺", "あなた", "みんな"])
    def test_pronouns_denied(self, original):
        """Should reject pronouns reported as names."""
        assert is_denied_original(original)
        assert not is_original_admissible(original)

    def test_empty_original_not_admissible(self):
        """Should reject an empty original."""
        assert not is_original_admissible("")


class TestEnglishChecks:
    """Checks on the English side of a vote."""

    @pytest.mark.parametrize("english", ["tanaka-san", "Tanaka-SAN", "Hana-chan", "Taro Kun", "Hime-sama"])
    def test_honorific_substrings_detected(self, english):
        """Should match English honorifics case-insensitively."""
        assert has_english_honorific(english)

    def test_internal_whitespace_detected(self):
        """Should reject multi-word renderings."""
        assert has_internal_whitespace("Taro Tanaka")
        assert not has_internal_whitespace("  Taro  ")

    def test_single_token_admissible(self):
        """Should accept a single plain token."""
        assert is_english_admissible("Tanaka")


class TestEntryAdmissibility:
    """Whole-entry decisions."""

    def test_original_with_honorific_rejected(self):
        """Should reject 田中さん even with a clean rendering."""
        assert not is_admissible(NameEntry("田中さん", "Tanaka", NamePart.GIVEN))

    def test_multi_word_english_rejected(self):
        """Should reject 'Mr. Tanaka' because it has internal whitespace."""
        assert not is_admissible(NameEntry("田中", "Mr. Tanaka", NamePart.FAMILY))

    def test_english_honorific_rejected(self):
        """Should reject 'tanaka-san'."""
        assert not is_admissible(NameEntry("田中", "tanaka-san", NamePart.FAMILY))

    def test_clean_entry_accepted(self):
        """Should accept a clean pair."""
        assert is_admissible(NameEntry("田中", "Tanaka", NamePart.FAMILY))
