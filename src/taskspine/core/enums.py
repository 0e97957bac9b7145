"""
Shared execution enums for taskspine.

The three axes every Result is described by: lifecycle ``State``,
outcome ``Status`` and the combined ``Outcome``.  They live in core so
settings, results, faults and pipelines can all import them without
depending on each other.

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from enum import Enum


class State(str, Enum):
    """
    Lifecycle state of a Result.

    Monotonic: ``initialized -> executing -> complete | interrupted``.
    """

    INITIALIZED = "initialized"  # Allocated, not yet running
    EXECUTING = "executing"  # Task body (and middleware) running
    COMPLETE = "complete"  # Finished normally
    INTERRUPTED = "interrupted"  # Halted by a failure or halting skip

    @property
    def terminal(self) -> bool:
        return self in (State.COMPLETE, State.INTERRUPTED)


class Status(str, Enum):
    """Outcome status of a Result; set at most once away from ``success``."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class Outcome(str, Enum):
    """
    Closed set of valid ``state × status`` combinations.

    The value is the concatenation ``f"{state}_{status}"``, which makes an
    Outcome usable as a switch key (``match result.outcome: ...``) without
    combining several predicates.
    """

    INITIALIZED_SUCCESS = "initialized_success"
    EXECUTING_SUCCESS = "executing_success"
    EXECUTING_SKIPPED = "executing_skipped"
    EXECUTING_FAILED = "executing_failed"
    COMPLETE_SUCCESS = "complete_success"
    COMPLETE_SKIPPED = "complete_skipped"
    INTERRUPTED_SKIPPED = "interrupted_skipped"
    INTERRUPTED_FAILED = "interrupted_failed"

    @classmethod
    def of(cls, state: State, status: Status) -> Outcome:
        return cls(f"{state.value}_{status.value}")

    @property
    def state(self) -> State:
        return State(self.value.split("_", 1)[0])

    @property
    def status(self) -> Status:
        return Status(self.value.split("_", 1)[1])


__all__ = ["State", "Status", "Outcome"]
