# shiftplan/workflow - Request workflows and team management
from .swaps import SwapService, ValidationResult, validate_swap_approval, validate_swap_request
from .teams import TeamService, weekend_shift_error
from .vacations import VacationService

__all__ = [
    "SwapService", "ValidationResult", "validate_swap_request", "validate_swap_approval",
    "TeamService", "weekend_shift_error", "VacationService",
]
