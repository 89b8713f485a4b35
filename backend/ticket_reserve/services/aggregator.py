"""
Turns raw reservation form input into a normalized record and a headcount.

Headcount rules:
- general: every named companion plus the representative
- invited: every named guest across all groups; the inviting member is not
  charged against capacity
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ticket_reserve.core.exceptions import ValidationError
from ticket_reserve.models.reservation import KIND_GENERAL, KIND_INVITED
from ticket_reserve.schemas.reservation import GeneralReservationIn, InvitedReservationIn

UNNAMED_GROUP = "Unnamed group"


@dataclass(frozen=True)
class NormalizedGroup:
    group_name: str
    companions: tuple[str, ...]
    reservation_number: Optional[str] = None

    @property
    def headcount(self) -> int:
        return len(self.companions)


@dataclass(frozen=True)
class NormalizedReservation:
    kind: str
    total_count: int
    representative_name: Optional[str] = None
    companions: tuple[str, ...] = ()
    groups: tuple[NormalizedGroup, ...] = ()


def clean_names(names: Iterable[str]) -> list[str]:
    """Trim names and drop blank entries, keeping order."""
    return [name.strip() for name in names if name and name.strip()]


def _check_companion_limit(count: int, max_companions: Optional[int], owner: str) -> None:
    if max_companions is not None and count > max_companions:
        raise ValidationError(
            f"{owner} lists {count} companions; at most {max_companions} are allowed"
        )


def aggregate_general(
    payload: GeneralReservationIn, max_companions: Optional[int] = None
) -> NormalizedReservation:
    representative = payload.representative_name.strip()
    if not representative:
        raise ValidationError("Representative name is required")

    companions = clean_names(payload.companions)
    _check_companion_limit(len(companions), max_companions, "Representative")

    return NormalizedReservation(
        kind=KIND_GENERAL,
        total_count=len(companions) + 1,
        representative_name=representative,
        companions=tuple(companions),
    )


def aggregate_invited(
    payload: InvitedReservationIn, max_companions: Optional[int] = None
) -> NormalizedReservation:
    groups: list[NormalizedGroup] = []
    for raw in payload.groups:
        name = raw.group_name.strip()
        companions = clean_names(raw.companions)
        if not name and not companions:
            continue
        name = name or UNNAMED_GROUP
        _check_companion_limit(len(companions), max_companions, f"Group '{name}'")
        groups.append(
            NormalizedGroup(
                group_name=name,
                companions=tuple(companions),
                reservation_number=(raw.reservation_number or "").strip() or None,
            )
        )

    total = sum(g.headcount for g in groups)
    if total == 0:
        raise ValidationError("Reservation headcount is zero; add at least one guest")

    return NormalizedReservation(kind=KIND_INVITED, total_count=total, groups=tuple(groups))


def aggregate(
    payload: Union[GeneralReservationIn, InvitedReservationIn],
    max_companions: Optional[int] = None,
) -> NormalizedReservation:
    """Normalize a submission; raises ValidationError for an empty headcount."""
    if isinstance(payload, InvitedReservationIn):
        return aggregate_invited(payload, max_companions)
    return aggregate_general(payload, max_companions)
