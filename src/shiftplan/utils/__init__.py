"""Utilities package for Shiftplan."""
from .logging_setup import (
    TRACE,
    WorkflowLogger,
    get_logger,
    init_logging,
    log_check,
    log_function_call,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_function_call",
    "log_check",
    "WorkflowLogger",
    "init_logging",
    "TRACE",
]
