"""Cooperative deadlines for task runs.

Manifesto:
    Tasks without time limits are a reliability anti-pattern, but a task
    cannot be preempted safely in the middle of ``work()``.  Deadlines are
    therefore cooperative:

    - the Timeout middleware pushes a deadline around a task run
    - the task body calls ``self.check_deadline()`` at safe points
    - an expired deadline raises :class:`TimeoutExpired`, which the
      executor turns into a failed Result with timeout metadata
    - a body that never checks is failed after it returns

    Nested deadlines compose: an inner deadline can shorten, never extend,
    the time left on the outer one.

Architecture:
    ::

        Timeout(seconds=5) middleware
          └── deadline_context(5.0, "ChargeCard")   push DeadlineContext
                └── ChargeCard.work()
                      └── self.check_deadline()     raise TimeoutExpired?
          on exit: expired and still success  ──▶ result.fail(timeout=True, ...)

        Deadline stack is thread-local; each thread has its own.

Examples:
    >>> with deadline_context(30.0) as ctx:
    ...     for item in items:
    ...         check_deadline()
    ...         process(item)

    >>> with deadline_context(30.0):      # outer: 30s
    ...     with deadline_context(60.0):  # effective: what is left of 30s
    ...         medium_task()

Tags:
    timeout, deadline, cooperative-cancellation, execution, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from taskspine.core.errors import ErrorCategory


class TimeoutExpired(TimeoutError):
    """Raised when a task run exceeds its deadline.

    Inherits from built-in TimeoutError for broad exception handling.

    Attributes:
        timeout: The limit that was exceeded (seconds)
        elapsed: How long the run had been going
        operation: Name of the task/operation
    """

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
    ):
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation

        msg = f"{operation} timed out after {timeout}s"
        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"

        super().__init__(msg)

    def to_metadata(self) -> dict[str, Any]:
        """Metadata recorded on the failed Result."""
        return timeout_metadata(self.timeout, self.elapsed)


def timeout_metadata(limit: float, elapsed: float | None) -> dict[str, Any]:
    return {
        "timeout": True,
        "category": ErrorCategory.TIMEOUT.value,
        "limit": limit,
        "elapsed": elapsed,
    }


@dataclass
class DeadlineContext:
    """Deadline state for one task run.

    Attributes:
        deadline: Absolute deadline (monotonic clock)
        timeout_seconds: Effective limit in seconds
        operation: Name of the task/operation
        start_time: When the deadline started
    """

    deadline: float
    timeout_seconds: float
    operation: str = "operation"
    start_time: float = field(default_factory=time.monotonic)

    def remaining(self) -> float:
        """Seconds until the deadline; negative once expired."""
        return self.deadline - time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def is_expired(self) -> bool:
        return time.monotonic() >= self.deadline

    def expired_error(self) -> TimeoutExpired:
        return TimeoutExpired(
            timeout=self.timeout_seconds,
            elapsed=self.elapsed,
            operation=self.operation,
        )

    def check(self) -> None:
        """Raise :class:`TimeoutExpired` if the deadline has passed."""
        if self.is_expired():
            raise self.expired_error()


# Thread-local storage for nested deadlines
_deadline_stack: threading.local = threading.local()


def _get_deadline_stack() -> list[DeadlineContext]:
    if not hasattr(_deadline_stack, "stack"):
        _deadline_stack.stack = []
    return _deadline_stack.stack


def get_current_deadline() -> DeadlineContext | None:
    """Innermost active deadline of this thread, if any."""
    stack = _get_deadline_stack()
    return stack[-1] if stack else None


def get_effective_timeout(requested: float) -> float:
    """``requested`` capped by the time left on the enclosing deadline."""
    current = get_current_deadline()
    if current is None:
        return requested
    return max(0.0, min(requested, current.remaining()))


def get_remaining_deadline() -> float | None:
    ctx = get_current_deadline()
    if ctx is None:
        return None
    return ctx.remaining()


def check_deadline() -> None:
    """Raise :class:`TimeoutExpired` if the current deadline has expired.

    Does nothing outside a deadline.
    """
    ctx = get_current_deadline()
    if ctx is not None:
        ctx.check()


@contextmanager
def deadline_context(seconds: float, operation: str | None = None) -> Iterator[DeadlineContext]:
    """Push a deadline for the block.

    Does not raise on exit; callers inspect ``ctx.is_expired()``.

    Raises:
        ValueError: If seconds <= 0
    """
    if seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {seconds}")

    effective = get_effective_timeout(seconds)
    now = time.monotonic()
    ctx = DeadlineContext(
        deadline=now + effective,
        timeout_seconds=effective,
        operation=operation or "operation",
        start_time=now,
    )

    stack = _get_deadline_stack()
    stack.append(ctx)
    try:
        yield ctx
    finally:
        stack.pop()


__all__ = [
    "TimeoutExpired",
    "DeadlineContext",
    "timeout_metadata",
    "get_current_deadline",
    "get_effective_timeout",
    "get_remaining_deadline",
    "check_deadline",
    "deadline_context",
]
