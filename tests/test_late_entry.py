"""
Tests for late entries: bye fill (with retraction of stale bye advances) and
qualifier splicing with suffix numbering.
"""

import random

import pytest

from ringside.errors import MalformedBracketError
from ringside.models.bout import BYE, Bout, Bracket
from ringside.models.competitor import Competitor
from ringside.models.ring import Ring
from ringside.services.advancement_service import advance_winner
from ringside.services.bout_scheduler import assign_bout_numbers
from ringside.services.bracket_builder import build_bracket
from ringside.services.bracket_generation import generate_category
from ringside.services.late_entry import (
    ACTION_BYE_FILL,
    ACTION_QUALIFIER,
    ACTION_ROSTER_ONLY,
    ACTION_TABLE_ENTRY,
    insert_late_entry,
    next_qualifier_suffix,
    qualifier_root,
)
from ringside.services.seeding import seed_competitors

RING = Ring(id="ring-a", name="RING A", priority_groups={1: ["CAT"]})


def _person(pid: str, club: str = "Club X") -> Competitor:
    return Competitor(id=pid, name=f"Fighter {pid}", club=club, category_key="CAT")


def _fighters(n: int) -> list:
    return [_person(f"P{i}", club=f"Club {i % 2}") for i in range(1, n + 1)]


def _scheduled(slots) -> dict:
    brackets = {"CAT": build_bracket(slots, "CAT", ring_id="ring-a")}
    assign_bout_numbers([RING], brackets)
    return brackets


def _qualifiers(bracket):
    return [b for b in bracket if b.round == "Qualifier"]


class TestNumberHelpers:
    def test_qualifier_root(self):
        assert qualifier_root("A05") == "A05"
        assert qualifier_root("A05B") == "A05"
        assert qualifier_root("MAT12AA") == "MAT12"

    def test_next_suffix(self):
        bouts = [Bout(id="1", bout_number="A04"), Bout(id="2", bout_number="A04A"), Bout(id="3", bout_number="A040")]
        assert next_qualifier_suffix("A04", bouts) == "B"
        assert next_qualifier_suffix("A05", bouts) == "A"

    def test_suffix_falls_back_after_z(self):
        bouts = [Bout(id=str(i), bout_number=f"A04{chr(65 + i)}") for i in range(26)]
        assert next_qualifier_suffix("A04", bouts) == "AA"


class TestRosterOnly:
    def test_no_bracket_is_a_successful_no_op(self):
        brackets = {}
        result = insert_late_entry(brackets, _person("NEW"))
        assert result.action == ACTION_ROSTER_ONLY
        assert brackets == {}


class TestByeFill:
    def test_fills_remaining_bye_without_qualifier(self):
        p = _fighters(3)
        brackets = _scheduled([p[0], p[1], p[2], BYE])
        bracket = brackets["CAT"]
        newcomer = _person("NEW")

        result = insert_late_entry(brackets, newcomer, [RING])

        assert result.action == ACTION_BYE_FILL
        assert _qualifiers(bracket) == []
        filled = bracket.get(result.bout_id)
        assert (filled.red, filled.blue) == (p[2], newcomer)
        assert filled.winner is None
        assert len(bracket) == 3

    def test_retracts_stale_bye_advance(self):
        p = _fighters(3)
        brackets = _scheduled([p[0], p[1], p[2], BYE])
        bracket = brackets["CAT"]
        final = bracket.root()
        assert final.blue == p[2]

        insert_late_entry(brackets, _person("NEW"), [RING])

        assert final.blue is None
        assert final.winner is None

    def test_unwinds_cascaded_bye_advances(self):
        a = _person("A")
        c, d, e, f = (_person(x) for x in "CDEF")
        brackets = {"CAT": build_bracket([a, BYE, BYE, BYE, c, d, e, f], "CAT")}
        bracket = brackets["CAT"]
        semi_top = [b for b in bracket if b.round == "Semi Final"][0]
        assert semi_top.winner == a
        assert bracket.root().red == a

        newcomer = _person("G")
        first = insert_late_entry(brackets, newcomer)

        filled = bracket.get(first.bout_id)
        assert (filled.red, filled.blue) == (a, newcomer)
        assert filled.winner is None
        # Two levels of bye advance are walked back
        assert semi_top.red is None
        assert semi_top.winner is None
        assert bracket.root().red is None

    def test_second_entry_fills_double_bye_and_advances(self):
        a = _person("A")
        c, d, e, f = (_person(x) for x in "CDEF")
        brackets = {"CAT": build_bracket([a, BYE, BYE, BYE, c, d, e, f], "CAT")}
        bracket = brackets["CAT"]
        semi_top = [b for b in bracket if b.round == "Semi Final"][0]

        insert_late_entry(brackets, _person("G"))
        late = _person("H")
        second = insert_late_entry(brackets, late)

        filled = bracket.get(second.bout_id)
        assert (filled.red, filled.blue) == (late, BYE)
        assert filled.winner == late
        assert semi_top.blue == late
        assert semi_top.winner is None
        assert not semi_top.has_bye

    def test_assigns_missing_number(self):
        p = _fighters(3)
        brackets = _scheduled([p[0], p[1], p[2], BYE])
        bracket = brackets["CAT"]
        bye_bout = [b for b in bracket if b.has_bye][0]
        assert bye_bout.bout_number is None

        result = insert_late_entry(brackets, _person("NEW"), [RING])

        assert result.bout_number == "A01A"

        assign_bout_numbers([RING], brackets)
        assert [b.bout_number for b in bracket if b.round == "Semi Final"] == ["A01", "A02"]

    def test_fallback_number_skips_suffixes_already_taken(self):
        p = _fighters(7)
        brackets = _scheduled(p + [BYE])
        bracket = brackets["CAT"]
        assert [b.bout_number for b in bracket if b.round == "Quarter Final"] == ["A01", "A02", "A03", None]
        bracket.add(Bout(id="earlier-qualifier", red=p[5], blue=_person("Q"), round="Qualifier", bout_number="A03A"))

        result = insert_late_entry(brackets, _person("NEW"), [RING])

        assert result.action == ACTION_BYE_FILL
        assert result.bout_number == "A03B"
        numbers = [b.bout_number for b in bracket if b.bout_number]
        assert len(numbers) == len(set(numbers))

    def test_two_slot_bracket_bye_is_filled(self):
        solo = _person("SOLO")
        brackets = {"CAT": build_bracket([solo, BYE], "CAT")}
        final = brackets["CAT"].root()
        assert final.winner == solo

        result = insert_late_entry(brackets, _person("NEW"))

        assert result.action == ACTION_BYE_FILL
        assert final.blue.id == "NEW"
        assert final.winner is None


class TestQualifierSplice:
    def test_full_bracket_gets_one_qualifier(self):
        p = _fighters(4)
        brackets = _scheduled(p)
        bracket = brackets["CAT"]
        before = {b.id: b.bout_number for b in bracket}
        newcomer = _person("NEW")

        result = insert_late_entry(brackets, newcomer, [RING])

        assert result.action == ACTION_QUALIFIER
        qualifiers = _qualifiers(bracket)
        assert len(qualifiers) == 1
        qualifier = qualifiers[0]

        target = bracket.get(qualifier.parent_id)
        assert target.round == "Semi Final"
        assert target.bout_number == "A02"
        assert target.left_child_id == qualifier.id
        assert target.red is None
        assert (qualifier.red, qualifier.blue) == (p[2], newcomer)
        assert qualifier.bout_number == "A02A"
        assert result.bout_number == "A02A"

        assign_bout_numbers([RING], brackets)
        after = {b.id: b.bout_number for b in bracket if b.id in before}
        assert after == before
        assert qualifier.bout_number == "A02A"

    def test_numbers_outside_root_group_unchanged_after_reschedule(self):
        p = [_person(f"P{i}", club=f"Club {i}") for i in range(1, 17)]
        slots = seed_competitors(p, rng=random.Random(9))
        brackets = _scheduled(slots)
        bracket = brackets["CAT"]
        before = {b.id: b.bout_number for b in bracket}

        result = insert_late_entry(brackets, _person("NEW"), [RING])
        assign_bout_numbers([RING], brackets)

        root = result.bout_number[:-1]
        for bout in bracket:
            if bout.id in before and not (bout.bout_number or "").startswith(root):
                assert bout.bout_number == before[bout.id]

    def test_successive_qualifiers_chain_and_take_next_letters(self):
        brackets = _scheduled(_fighters(4))
        bracket = brackets["CAT"]

        first = insert_late_entry(brackets, _person("N1"), [RING])
        second = insert_late_entry(brackets, _person("N2"), [RING])
        third = insert_late_entry(brackets, _person("N3"), [RING])

        assert [first.bout_number, second.bout_number, third.bout_number] == ["A02A", "A02B", "A02C"]
        q1, q2, q3 = (bracket.get(r.bout_id) for r in (first, second, third))
        # Each new qualifier hangs under the previous one's red side
        assert q2.parent_id == q1.id and q1.left_child_id == q2.id
        assert q3.parent_id == q2.id and q2.left_child_id == q3.id
        assert q1.red is None and q2.red is None
        assert q3.red.id == "P3"

    def test_spliced_bout_still_propagates(self):
        brackets = _scheduled(_fighters(4))
        bracket = brackets["CAT"]
        result = insert_late_entry(brackets, _person("NEW"), [RING])
        qualifier = bracket.get(result.bout_id)

        parent = advance_winner(bracket, qualifier.id, qualifier.blue)
        assert parent.red.id == "NEW"

    def test_unnumbered_target_leaves_qualifier_unnumbered(self):
        brackets = {"CAT": build_bracket(_fighters(4), "CAT")}
        result = insert_late_entry(brackets, _person("NEW"))
        assert result.action == ACTION_QUALIFIER
        assert result.bout_number is None

    def test_no_first_round_raises(self):
        bracket = Bracket("CAT", [Bout(id="q", red=_person("X"), blue=_person("Y"), round="Qualifier")])
        with pytest.raises(MalformedBracketError):
            insert_late_entry({"CAT": bracket}, _person("NEW"))


class TestTableMode:
    def test_table_category_gets_a_new_entry(self):
        brackets = generate_category(_fighters(3), "CAT", ring_id="ring-a", bout_mode="table_pro")
        result = insert_late_entry(brackets, _person("NEW"))

        assert result.action == ACTION_TABLE_ENTRY
        entry = brackets["CAT"].get(result.bout_id)
        assert entry.is_table_mode
        assert entry.red.id == "NEW"
        assert entry.ring_id == "ring-a"
        assert len(brackets["CAT"]) == 4
