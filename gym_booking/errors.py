"""
Typed failures raised by the booking workflows.

Every failure carries a machine-readable ``kind`` separate from its
human-readable message, so the HTTP layer can map kinds to status codes
without parsing text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    INACTIVE = "Inactive"
    NOT_YET_AVAILABLE = "NotYetAvailable"
    ENDED = "Ended"
    UNAUTHORIZED = "Unauthorized"
    ALREADY_REGISTERED = "AlreadyRegistered"
    ALREADY_CANCELED = "AlreadyCanceled"
    INVALID_STATUS_TRANSITION = "InvalidStatusTransition"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    SLOT_FULL = "SlotFull"
    NO_AVAILABILITY_SLOT = "NoAvailabilitySlot"
    MEMBER_TIME_CONFLICT = "MemberTimeConflict"
    INVALID_INPUT = "InvalidInput"
    STORAGE_FAILURE = "StorageFailure"


class BookingError(Exception):
    """Base failure for every booking operation."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"BookingError({self.kind.value}, {self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.kind.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


def invalid_input(message: str, **details: Any) -> BookingError:
    return BookingError(ErrorKind.INVALID_INPUT, message, details)


def not_found(message: str, **details: Any) -> BookingError:
    return BookingError(ErrorKind.NOT_FOUND, message, details)
