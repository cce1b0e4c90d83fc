"""People, teams and memberships."""
from dataclasses import dataclass, field
from typing import List, Optional

VALID_ROLES = ("admin", "planner", "manager", "teammember")


def format_user_name(first_name: str, last_name: str, initials: Optional[str] = None) -> str:
    """Display name: "First Last (IN)" when initials are known."""
    name = f"{(first_name or '').strip()} {(last_name or '').strip()}".strip()
    if initials:
        return f"{name} ({initials.strip()})" if name else initials.strip()
    return name


@dataclass
class Person:
    """A user profile."""

    user_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    initials: Optional[str] = None
    country_code: Optional[str] = None
    region_code: Optional[str] = None
    role: str = "teammember"

    def __post_init__(self):
        self.user_id = str(self.user_id).strip()
        self.first_name = str(self.first_name or "").strip()
        self.last_name = str(self.last_name or "").strip()
        self.email = str(self.email or "").strip()
        if self.country_code:
            self.country_code = self.country_code.strip().upper()
        if self.region_code:
            self.region_code = self.region_code.strip().upper()
        if self.role not in VALID_ROLES:
            self.role = "teammember"

    @property
    def display_name(self) -> str:
        return format_user_name(self.first_name, self.last_name, self.initials)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "initials": self.initials,
            "country_code": self.country_code,
            "region_code": self.region_code,
            "role": self.role,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Person":
        """Create from dictionary."""
        return cls(
            user_id=str(d.get("user_id", "")),
            first_name=d.get("first_name", "") or "",
            last_name=d.get("last_name", "") or "",
            email=d.get("email", "") or "",
            initials=d.get("initials") or None,
            country_code=d.get("country_code") or None,
            region_code=d.get("region_code") or None,
            role=d.get("role", "teammember") or "teammember",
        )


@dataclass
class TeamMember:
    team_id: str
    user_id: str
    is_manager: bool = False


@dataclass
class CapacityConfig:
    """Minimum/maximum staffing for a team."""
    team_id: str
    min_staff_required: int = 1
    max_staff_allowed: Optional[int] = None
    applies_to_weekends: bool = False
    notes: str = ""


@dataclass
class Team:
    id: str
    name: str
    description: str = ""
    parent_team_id: Optional[str] = None
    members: List[TeamMember] = field(default_factory=list)

    @property
    def member_ids(self) -> List[str]:
        return [m.user_id for m in self.members]

    @property
    def manager_ids(self) -> List[str]:
        return [m.user_id for m in self.members if m.is_manager]
