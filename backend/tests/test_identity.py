"""
Tests for reservation keys and numbering.
"""

from ticket_reserve.services.aggregator import NormalizedGroup
from ticket_reserve.services.identity import (
    assign_group_numbers,
    reservation_key,
    resolve_base_number,
)


def _group(name, number=None, companions=("guest",)):
    return NormalizedGroup(group_name=name, companions=tuple(companions), reservation_number=number)


def test_reservation_key_is_deterministic():
    assert reservation_key("live-1", "user-9") == "live-1_user-9"
    assert reservation_key("live-1", "user-9") == reservation_key("live-1", "user-9")


def test_base_number_is_reused():
    assert resolve_base_number("1234") == "1234"
    assert resolve_base_number("1234-2") == "1234"


def test_base_number_is_minted_as_four_digits():
    for _ in range(50):
        number = resolve_base_number(None)
        assert number.isdigit()
        assert 1000 <= int(number) <= 9999


def test_new_groups_numbered_by_position():
    groups = assign_group_numbers("1234", [_group("A"), _group("B")])
    assert [g["reservation_number"] for g in groups] == ["1234-1", "1234-2"]


def test_existing_group_numbers_survive_edits():
    prior = [
        {"group_name": "A", "companions": ["x"], "reservation_number": "1234-1"},
        {"group_name": "B", "companions": ["y"], "reservation_number": "1234-2"},
    ]
    groups = assign_group_numbers(
        "1234",
        [_group("A", "1234-1"), _group("B renamed", "1234-2"), _group("C")],
        prior,
    )
    assert [g["reservation_number"] for g in groups] == ["1234-1", "1234-2", "1234-3"]
    assert groups[1]["group_name"] == "B renamed"


def test_new_group_skips_number_held_by_kept_group():
    prior = [
        {"group_name": "A", "companions": ["x"], "reservation_number": "1234-1"},
        {"group_name": "B", "companions": ["y"], "reservation_number": "1234-2"},
    ]
    # "A" removed: "B" moves to position 1, the new group sits at position 2
    groups = assign_group_numbers("1234", [_group("B", "1234-2"), _group("New")], prior)
    assert [g["reservation_number"] for g in groups] == ["1234-2", "1234-3"]


def test_unknown_client_numbers_are_reminted():
    prior = [{"group_name": "A", "companions": ["x"], "reservation_number": "1234-1"}]
    groups = assign_group_numbers("1234", [_group("A", "1234-1"), _group("B", "9999-7")], prior)
    assert [g["reservation_number"] for g in groups] == ["1234-1", "1234-2"]


def test_duplicate_claims_keep_only_first():
    prior = [{"group_name": "A", "companions": ["x"], "reservation_number": "1234-1"}]
    groups = assign_group_numbers("1234", [_group("A", "1234-1"), _group("Copy", "1234-1")], prior)
    assert [g["reservation_number"] for g in groups] == ["1234-1", "1234-2"]
