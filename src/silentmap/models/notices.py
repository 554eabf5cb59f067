"""
Notice Codes
============

Fixed set of user-facing notifications raised by the application.

Every outcome the user must be told about maps to exactly ONE code.
Blocking notices correspond to modal alerts; the others are toasts.

Rules:
    - Messages are fixed per code
    - Notices are values, not exceptions
"""

from enum import Enum

from pydantic import BaseModel, Field


class NoticeCode(str, Enum):
    """
    Machine-readable notice codes.

    Attributes:
        AREA_SAVED: A new area was committed
        AREA_OVERLAP: Candidate area overlapped an existing one and was discarded
        MICROPHONE_UNAVAILABLE: Microphone access failed, routine aborted
        MICROPHONE_BUSY: Microphone held by another routine for too long
        COMMIT_IN_PROGRESS: A commit was requested while one is recording
        NO_AREA_SELECTED: A detail action was requested without a selection
        POSITION_NOT_STORED: Area added, but its snapshot could not be persisted
        COMMIT_FAILED: The commit routine failed unexpectedly
    """

    AREA_SAVED = "AREA_SAVED"
    AREA_OVERLAP = "AREA_OVERLAP"
    MICROPHONE_UNAVAILABLE = "MICROPHONE_UNAVAILABLE"
    MICROPHONE_BUSY = "MICROPHONE_BUSY"
    COMMIT_IN_PROGRESS = "COMMIT_IN_PROGRESS"
    NO_AREA_SELECTED = "NO_AREA_SELECTED"
    POSITION_NOT_STORED = "POSITION_NOT_STORED"
    COMMIT_FAILED = "COMMIT_FAILED"


_MESSAGES = {
    NoticeCode.AREA_SAVED: "Area saved.",
    NoticeCode.AREA_OVERLAP: "Cannot save area: It overlaps with an existing area.",
    NoticeCode.MICROPHONE_UNAVAILABLE: "Unable to access microphone. Please check your permissions.",
    NoticeCode.MICROPHONE_BUSY: "Microphone is in use. Please try again.",
    NoticeCode.COMMIT_IN_PROGRESS: "Already recording an area. Please wait.",
    NoticeCode.NO_AREA_SELECTED: "No area selected.",
    NoticeCode.POSITION_NOT_STORED: "Area saved, but its position could not be stored.",
    NoticeCode.COMMIT_FAILED: "Could not save area. Please try again.",
}

_BLOCKING = {
    NoticeCode.AREA_OVERLAP,
    NoticeCode.MICROPHONE_UNAVAILABLE,
    NoticeCode.COMMIT_FAILED,
}


class Notice(BaseModel):
    """A notification queued for the user interface."""

    code: NoticeCode = Field(..., description="Notice code")
    message: str = Field(..., description="Human-readable message")
    blocking: bool = Field(default=False, description="Render as a modal alert")

    @classmethod
    def of(cls, code: NoticeCode) -> "Notice":
        """Build the notice for a code with its fixed message."""
        return cls(code=code, message=_MESSAGES[code], blocking=code in _BLOCKING)
