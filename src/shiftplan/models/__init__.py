# shiftplan/models - Data models for the scheduling system
from .config import AnalysisConfig, BurdenWeights, MailSettings
from .requests import ShiftSwapRequest, SwapStatus, VacationRequest, VacationStatus
from .schedule import Holiday, Schedule, ScheduleEntry
from .shift import ActivityType, AvailabilityStatus, ShiftType
from .team import CapacityConfig, Person, Team, TeamMember

__all__ = [
    "Person", "Team", "TeamMember", "CapacityConfig",
    "ShiftType", "ActivityType", "AvailabilityStatus",
    "Schedule", "ScheduleEntry", "Holiday",
    "ShiftSwapRequest", "SwapStatus", "VacationRequest", "VacationStatus",
    "AnalysisConfig", "BurdenWeights", "MailSettings",
]
