"""
Tests for turning reservation form input into a headcount.
"""

import pytest

from ticket_reserve.core.exceptions import ValidationError
from ticket_reserve.schemas.reservation import (
    GeneralReservationIn,
    InvitedReservationIn,
    ReservationGroupIn,
)
from ticket_reserve.services.aggregator import UNNAMED_GROUP, aggregate


def test_general_counts_representative_and_companions():
    record = aggregate(GeneralReservationIn(
        representative_name="  Stereo Taro ",
        companions=["friend", "", "   ", "cousin"],
    ))
    assert record.kind == "general"
    assert record.representative_name == "Stereo Taro"
    assert record.companions == ("friend", "cousin")
    assert record.total_count == 3


def test_general_alone_counts_one():
    record = aggregate(GeneralReservationIn(representative_name="Solo", companions=["", ""]))
    assert record.total_count == 1
    assert record.companions == ()


def test_general_requires_representative():
    with pytest.raises(ValidationError, match="Representative"):
        aggregate(GeneralReservationIn(representative_name="   ", companions=["friend"]))


def test_invited_counts_only_guests():
    record = aggregate(InvitedReservationIn(groups=[
        ReservationGroupIn(group_name="Family", companions=["mom", "dad", ""]),
        ReservationGroupIn(group_name="Old friends", companions=["ken"]),
    ]))
    assert record.kind == "invited"
    assert record.total_count == 3
    assert [g.headcount for g in record.groups] == [2, 1]


def test_invited_keeps_unnamed_group_with_guests():
    record = aggregate(InvitedReservationIn(groups=[
        ReservationGroupIn(group_name="", companions=["ken"]),
    ]))
    assert record.groups[0].group_name == UNNAMED_GROUP
    assert record.total_count == 1


def test_invited_keeps_named_group_without_guests():
    record = aggregate(InvitedReservationIn(groups=[
        ReservationGroupIn(group_name="Placeholder", companions=["", ""]),
        ReservationGroupIn(group_name="Family", companions=["mom"]),
    ]))
    assert [g.group_name for g in record.groups] == ["Placeholder", "Family"]
    assert record.groups[0].headcount == 0
    assert record.total_count == 1


def test_invited_drops_blank_groups():
    record = aggregate(InvitedReservationIn(groups=[
        ReservationGroupIn(group_name="  ", companions=["", " "]),
        ReservationGroupIn(group_name="Family", companions=["mom"]),
    ]))
    assert len(record.groups) == 1


def test_invited_zero_headcount_rejected():
    with pytest.raises(ValidationError, match="zero"):
        aggregate(InvitedReservationIn(groups=[
            ReservationGroupIn(group_name="Placeholder", companions=[]),
        ]))


def test_companion_limit_enforced_per_group():
    payload = InvitedReservationIn(groups=[
        ReservationGroupIn(group_name="Big family", companions=["a", "b", "c"]),
    ])
    with pytest.raises(ValidationError, match="at most 2"):
        aggregate(payload, max_companions=2)


def test_companion_limit_ignores_blank_entries():
    record = aggregate(
        GeneralReservationIn(representative_name="Rep", companions=["a", "", "b", ""]),
        max_companions=2,
    )
    assert record.total_count == 3
