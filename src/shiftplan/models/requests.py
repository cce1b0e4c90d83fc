"""Shift swap and vacation request records."""
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Optional

from .shift import parse_date


class SwapStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_final(self) -> bool:
        return self != SwapStatus.PENDING


class VacationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class ShiftSwapRequest:
    """A request by one user to exchange shifts with another on one date."""
    requesting_user_id: str
    requesting_entry_id: str
    target_user_id: str
    target_entry_id: str
    swap_date: date
    team_id: str
    status: SwapStatus = SwapStatus.PENDING
    reason: str = ""
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.swap_date = parse_date(self.swap_date)
        if isinstance(self.status, str):
            self.status = SwapStatus(self.status)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.requesting_user_id, self.target_user_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "requesting_user_id": self.requesting_user_id,
            "requesting_entry_id": self.requesting_entry_id,
            "target_user_id": self.target_user_id,
            "target_entry_id": self.target_entry_id,
            "swap_date": self.swap_date.isoformat(),
            "team_id": self.team_id,
            "status": self.status.value,
            "reason": self.reason,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "review_notes": self.review_notes,
        }


@dataclass
class VacationRequest:
    """One requested day off. Multi-day requests share a ``group_id``."""
    user_id: str
    team_id: str
    requested_date: date
    is_full_day: bool = True
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: str = ""
    status: VacationStatus = VacationStatus.PENDING
    approver_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    group_id: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.requested_date = parse_date(self.requested_date)
        if isinstance(self.status, str):
            self.status = VacationStatus(self.status)
        if isinstance(self.start_time, str) and self.start_time:
            self.start_time = time.fromisoformat(self.start_time)
        if isinstance(self.end_time, str) and self.end_time:
            self.end_time = time.fromisoformat(self.end_time)

    @property
    def time_label(self) -> str:
        if self.is_full_day or not (self.start_time and self.end_time):
            return "Full Day"
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"
