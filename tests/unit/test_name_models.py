"""
Unit tests for name glossary models.
"""

from tsundoku.core.names.models import NameInfo, NameMappingData, NamePart


class TestNamePart:
    """Parsing of the part field."""

    def test_parse_is_case_insensitive(self):
        """Should parse any casing of a known value."""
        assert NamePart.parse("Family") == NamePart.FAMILY
        assert NamePart.parse("GIVEN") == NamePart.GIVEN

    def test_unknown_values_coerced(self):
        """Should map anything unrecognised to UNKNOWN."""
        assert NamePart.parse("nickname") == NamePart.UNKNOWN
        assert NamePart.parse(None) == NamePart.UNKNOWN
        assert NamePart.parse(3) == NamePart.UNKNOWN


class TestNameInfoWinner:
    """Winner selection and tie-breaking."""

    def test_first_vote_becomes_winner(self):
        """Should pick the only rendering."""
        info = NameInfo()
        info.add_vote("Taro", NamePart.GIVEN)
        assert (info.english, info.count) == ("Taro", 1)

    def test_tie_keeps_previous_winner(self):
        """Should keep the recorded winner when a challenger ties."""
        info = NameInfo(votes={"A": 2, "B": 2}, english="A", count=2)
        info.recalculate_best()
        assert info.english == "A"

    def test_tie_keeps_winner_regardless_of_order(self):
        """Should not fall back to insertion order on ties."""
        info = NameInfo(votes={"A": 2, "B": 2}, english="B", count=2)
        info.recalculate_best()
        assert info.english == "B"

    def test_strictly_greater_count_takes_over(self):
        """Should switch winner once a challenger has more votes."""
        info = NameInfo(votes={"A": 2, "B": 2}, english="A", count=2)
        info.add_vote("B", NamePart.UNKNOWN)
        assert (info.english, info.count) == ("B", 3)

    def test_empty_votes_clear_winner(self):
        """Should clear english and count without votes."""
        info = NameInfo(votes={}, english="A", count=1)
        info.recalculate_best()
        assert info.english is None and info.count is None

    def test_part_is_never_downgraded(self):
        """Should keep a known part when an UNKNOWN vote arrives."""
        info = NameInfo()
        info.add_vote("Taro", NamePart.UNKNOWN)
        assert info.part == NamePart.UNKNOWN
        info.add_vote("Taro", NamePart.GIVEN)
        assert info.part == NamePart.GIVEN
        info.add_vote("Taro", NamePart.UNKNOWN)
        info.add_vote("Taro", NamePart.FAMILY)
        assert info.part == NamePart.GIVEN


class TestSerialization:
    """Dictionary form written to disk."""

    def test_absent_winner_fields_omitted(self):
        """Should leave out english and count when they are None."""
        assert NameInfo(part=NamePart.GIVEN).to_dict() == {"part": "given", "votes": {}}

    def test_mapping_data_sorts_coverage(self):
        """Should write coverage as a sorted list."""
        data = NameMappingData(coverage={3, 1, 2})
        assert data.to_dict() == {"names": {}, "coverage": [1, 2, 3]}
