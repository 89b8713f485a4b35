"""
Reservation identity and numbering.

The record key is derived from (event, user), so repeated submissions always
land on the same row. The reservation number is only a human-facing label:
a 4-digit base, plus `-<ordinal>` per invited group. Group numbers end up in
shared ticket links, so once issued they never change.
"""

import secrets
from typing import Iterable, Optional, Sequence

from ticket_reserve.services.aggregator import NormalizedGroup


def reservation_key(event_id: str, user_id: str) -> str:
    return f"{event_id}_{user_id}"


def mint_reservation_number() -> str:
    # Labels only; collisions between users are harmless.
    return str(1000 + secrets.randbelow(9000))


def resolve_base_number(existing_number: Optional[str]) -> str:
    """Reuse the base of an existing number, or mint a new one."""
    if existing_number:
        base = existing_number.split("-", 1)[0].strip()
        if base:
            return base
    return mint_reservation_number()


def assign_group_numbers(
    base: str,
    groups: Sequence[NormalizedGroup],
    prior_groups: Optional[Iterable[dict]] = None,
) -> list[dict]:
    """
    Number each group `{base}-{position}`, keeping numbers issued before.

    Only numbers present on the stored record are honoured; anything else a
    client sends is re-minted. When a new group's positional number is already
    held by a kept group (e.g. an earlier group was removed), it takes the next
    free ordinal instead.
    """
    issued = {
        g.get("reservation_number")
        for g in (prior_groups or [])
        if g.get("reservation_number")
    }

    used: set[str] = set()
    numbers: list[Optional[str]] = []
    for group in groups:
        number = group.reservation_number
        if number and number in issued and number not in used:
            used.add(number)
            numbers.append(number)
        else:
            numbers.append(None)

    for position, number in enumerate(numbers, start=1):
        if number is not None:
            continue
        ordinal = position
        while f"{base}-{ordinal}" in used:
            ordinal += 1
        numbers[position - 1] = f"{base}-{ordinal}"
        used.add(numbers[position - 1])

    return [
        {
            "group_name": group.group_name,
            "companions": list(group.companions),
            "reservation_number": number,
        }
        for group, number in zip(groups, numbers)
    ]
