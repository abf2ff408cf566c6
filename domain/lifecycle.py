"""Reservation Lifecycle

Transition table for booking statuses. ``checked_out`` and ``cancelled``
are terminal. Guards raise InvalidTransition subclasses whose messages
name the current status.
"""
from typing import Dict, FrozenSet, Tuple

from domain.enums import BookingEvent, BookingStatus
from domain.exceptions import AlreadyCancelled, CannotCancelCompleted, InvalidTransition


TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CHECKED_OUT,
    BookingStatus.CANCELLED,
})

TRANSITIONS: Dict[Tuple[BookingStatus, BookingEvent], BookingStatus] = {
    (BookingStatus.PENDING, BookingEvent.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, BookingEvent.CHECK_IN): BookingStatus.CHECKED_IN,
    (BookingStatus.CONFIRMED, BookingEvent.CHECK_IN): BookingStatus.CHECKED_IN,
    (BookingStatus.CHECKED_IN, BookingEvent.CHECK_OUT): BookingStatus.CHECKED_OUT,
    (BookingStatus.PENDING, BookingEvent.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingEvent.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CHECKED_IN, BookingEvent.CANCEL): BookingStatus.CANCELLED,
}

_VERBS = {
    BookingEvent.CONFIRM: "confirm",
    BookingEvent.CHECK_IN: "check in",
    BookingEvent.CHECK_OUT: "check out",
    BookingEvent.CANCEL: "cancel",
}


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(status: BookingStatus, event: BookingEvent) -> bool:
    return (status, event) in TRANSITIONS


def next_status(status: BookingStatus, event: BookingEvent) -> BookingStatus:
    """Return the status reached by applying event, or raise InvalidTransition"""
    target = TRANSITIONS.get((status, event))
    if target is not None:
        return target

    if event == BookingEvent.CANCEL:
        if status == BookingStatus.CANCELLED:
            raise AlreadyCancelled(status)
        if status == BookingStatus.CHECKED_OUT:
            raise CannotCancelCompleted(status)

    raise InvalidTransition(
        f"Cannot {_VERBS[event]} a booking with status: {status.value}",
        status,
    )
