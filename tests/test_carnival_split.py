"""Tests for carnival splitting of oversized categories."""

import pytest

from ringside.models.competitor import Competitor
from ringside.services.carnival_split import compute_group_sizes, group_key, is_group_key, split_competitors


def _roster(club_sizes: dict) -> list:
    roster = []
    for club, size in club_sizes.items():
        for n in range(1, size + 1):
            roster.append(Competitor(id=f"{club}-{n}", name=f"{club} {n}", club=club, category_key="KIDS"))
    return roster


class TestGroupSizes:
    @pytest.mark.parametrize(
        "total,expected",
        [(1, [1]), (4, [4]), (5, [4, 1]), (6, [4, 2]), (10, [4, 4, 2]), (12, [4, 4, 4])],
    )
    def test_favours_full_groups(self, total, expected):
        assert compute_group_sizes(total, 4) == expected

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            compute_group_sizes(10, 0)


class TestGroupKey:
    def test_unsplit_keeps_base_key(self):
        assert group_key("KIDS", 0, 1) == "KIDS"

    def test_split_keys_are_lettered(self):
        assert [group_key("KIDS", i, 3) for i in range(3)] == ["KIDS_A", "KIDS_B", "KIDS_C"]

    def test_is_group_key_accepts_single_letter_suffixes_only(self):
        assert is_group_key("U12", "U12_A")
        assert is_group_key("U12", "U12_Z")
        assert not is_group_key("U12", "U12")
        assert not is_group_key("U12", "U12_GIRLS")
        assert not is_group_key("U12", "U12_")
        assert not is_group_key("U12", "U13_A")


class TestSplit:
    def test_roster_that_fits_is_one_group(self):
        roster = _roster({"Club A": 3})
        assert split_competitors(roster, 4) == [roster]

    def test_ten_competitors_make_three_groups(self):
        roster = _roster({"Club A": 4, "Club B": 3, "Club C": 3})
        groups = split_competitors(roster, 4)

        assert [len(g) for g in groups] == [4, 4, 2]
        assert sorted(c.id for g in groups for c in g) == sorted(c.id for c in roster)

    def test_club_members_are_spread_across_groups(self):
        roster = _roster({"Club A": 4, "Club B": 1, "Club C": 1, "Club D": 1, "Club E": 1, "Club F": 1, "Club G": 1})
        groups = split_competitors(roster, 4)

        per_group = [sum(1 for c in g if c.club == "Club A") for g in groups]
        assert all(count >= 1 for count in per_group)
        assert max(per_group) <= 2

    def test_default_limit_comes_from_settings(self, monkeypatch):
        from ringside.config import settings

        monkeypatch.setattr(settings, "carnival_max_group_size", 3)
        groups = split_competitors(_roster({"Club A": 7}))
        assert [len(g) for g in groups] == [3, 3, 1]

    def test_empty_roster(self):
        assert split_competitors([], 4) == [[]]
