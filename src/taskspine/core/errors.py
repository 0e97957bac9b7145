"""
Structured error types for the taskspine framework.

Provides a small hierarchy of typed errors with metadata for
categorisation, logging, and root cause analysis through error chaining.

The hierarchy separates three very different families:

- **State errors:** programming errors against the Result state machine
  (mutating a finished Result, setting a status twice, illegal transitions)
- **Definition errors:** a task or workflow class is declared incorrectly
- **Faults:** the control-flow wrappers around non-success Results, defined
  in :mod:`taskspine.execution.fault` on top of :class:`TaskSpineError`

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different domains
    - **Rich Context:** Errors carry metadata for logging and alerting
    - **Error Chaining:** Preserve original exceptions while adding context
    - **Never swallow:** Anything outside this hierarchy is a fatal error
      and propagates unchanged

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      TaskSpineError                          │
        │               (category, details, cause)                     │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  StateError              DefinitionError      ConfigError    │
        │  (STATE)                 (DEFINITION)         (CONFIG)       │
        │      │                        │                              │
        │  ImmutableError          UndefinedWorkError                  │
        │  AlreadySetError                                             │
        │  InvalidTransitionError                                      │
        │                                                              │
        │  Fault (EXECUTION) ── SkipFault / FailFault                  │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = AlreadySetError("status already set to failed")
    >>> error.category
    <ErrorCategory.STATE: 'STATE'>
    >>> error.with_context(task="ChargeCard").to_dict()["context"]
    {'task': 'ChargeCard'}

Tags:
    error-handling, exception-hierarchy, error-context, taskspine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    The same values are used as the ``category`` marker in Result metadata,
    e.g. a cooperative deadline breach fails a Result with
    ``category="TIMEOUT"``.
    """

    STATE = "STATE"  # Result state machine misuse
    DEFINITION = "DEFINITION"  # Task/workflow declared incorrectly
    CONFIG = "CONFIG"  # Missing or invalid settings
    EXECUTION = "EXECUTION"  # Skip/fail control flow (faults)
    TIMEOUT = "TIMEOUT"  # Cooperative deadline breach
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


class TaskSpineError(Exception):
    """
    Base exception for all taskspine errors.

    All instances carry:
    - **category:** ErrorCategory for classification
    - **details:** free-form metadata dict for logging (the ``context``
      argument; serialized under ``"context"``)
    - **cause:** optional underlying exception (also set as ``__cause__``)

    Subclasses set ``default_category``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.details: dict[str, Any] = dict(context or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TaskSpineError:
        """Add metadata to the error (returns self for chaining)."""
        self.details.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            result["context"] = dict(self.details)
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# =============================================================================
# State machine errors
# =============================================================================


class StateError(TaskSpineError):
    """Base class for misuse of the Result state machine."""

    default_category = ErrorCategory.STATE


class ImmutableError(StateError):
    """Raised when something tries to mutate a finished (frozen) object."""


class AlreadySetError(StateError):
    """Raised when a Result's status is changed a second time."""


class InvalidTransitionError(StateError):
    """Raised for a state transition the state machine does not allow."""

    def __init__(self, current: str, target: str, message: str | None = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Illegal transition: {current} -> {target}")


# =============================================================================
# Definition / configuration errors
# =============================================================================


class DefinitionError(TaskSpineError):
    """Raised when a task or workflow class is declared incorrectly."""

    default_category = ErrorCategory.DEFINITION


class UndefinedWorkError(DefinitionError):
    """Raised when a Task subclass does not implement ``work()``."""

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"work() is not defined in {task_name}")


class ConfigError(TaskSpineError):
    """Raised for invalid configuration values."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "TaskSpineError",
    "StateError",
    "ImmutableError",
    "AlreadySetError",
    "InvalidTransitionError",
    "DefinitionError",
    "UndefinedWorkError",
    "ConfigError",
]
