"""
Per-doctor slot ledger.

A ledger maps a date-label (``DD_MM_YYYY``) to the time-labels
(``hh:mm AM/PM``) already booked on that day::

    {"01_01_2030": ["10:00 AM", "11:30 AM"]}

The functions here never mutate their input. They return a fresh mapping so
the caller can assign it back to the JSON column and have SQLAlchemy see the
change.
"""
from typing import Dict, List, Optional

from ..core.errors import SlotUnavailable

Ledger = Dict[str, List[str]]


def _copy(ledger: Optional[Ledger]) -> Ledger:
    return {date: list(times) for date, times in (ledger or {}).items()}


def is_booked(ledger: Optional[Ledger], slot_date: str, slot_time: str) -> bool:
    """True iff ``slot_time`` is already taken on ``slot_date``."""
    return slot_time in (ledger or {}).get(slot_date, ())


def book(ledger: Optional[Ledger], slot_date: str, slot_time: str) -> Ledger:
    """Return a ledger with the slot taken.

    Raises:
        SlotUnavailable: if the slot is already booked.
    """
    if is_booked(ledger, slot_date, slot_time):
        raise SlotUnavailable()

    updated = _copy(ledger)
    updated.setdefault(slot_date, []).append(slot_time)
    return updated


def release(ledger: Optional[Ledger], slot_date: str, slot_time: str) -> Ledger:
    """Return a ledger with the slot freed. Releasing a free slot is a no-op."""
    updated = _copy(ledger)
    if slot_date in updated:
        # Empty dates are kept, not compacted
        updated[slot_date] = [t for t in updated[slot_date] if t != slot_time]
    return updated
