"""
Structured events for shiftplan workflows, via structlog.

Workflow services emit one event per state change (``swap_requested``,
``swap_approved``, ``vacation_approved``...) carrying the request and team
ids bound with :func:`request_context`.
"""
import logging
from contextlib import contextmanager
from typing import Any, Iterator, List

import structlog
import structlog.contextvars


def _processors(json_output: bool) -> List[Any]:
    chain: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if json_output:
        chain += [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        chain += [
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    return chain


def configure_structlog(json_output: bool = False) -> None:
    """
    JSON lines (``json_output=True``, for deployments shipping logs) or a
    coloured console renderer for local runs.
    """
    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO if json_output else logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(name: str) -> Any:
    return structlog.get_logger(name)


def bind_context(**values: Any) -> None:
    """Attach ``values`` (e.g. ``request_id``, ``team_id``) to every following event."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def request_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` for the duration of one workflow operation."""
    tokens = structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
