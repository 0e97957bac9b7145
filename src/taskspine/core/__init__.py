"""taskspine core -- errors, enums, context, identifiers, logging and settings.

Manifesto:
    ``taskspine.core`` holds everything the execution layer needs that is
    not itself about running tasks.  Nothing here imports from
    ``taskspine.execution`` or ``taskspine.orchestration``.

Architecture::

    errors.py       Structured error hierarchy (TaskSpineError, StateError, ...)
    enums.py        State / Status / Outcome
    context.py      Shared, freezable key/value Context
    identifier.py   Time-sortable IDs
    logging.py      structlog configuration + context helpers
    settings.py     pydantic-settings TaskSpineSettings
"""

from taskspine.core.context import Context
from taskspine.core.enums import Outcome, State, Status
from taskspine.core.errors import (
    AlreadySetError,
    ConfigError,
    DefinitionError,
    ErrorCategory,
    ImmutableError,
    InvalidTransitionError,
    StateError,
    TaskSpineError,
    UndefinedWorkError,
)
from taskspine.core.identifier import generate_id
from taskspine.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from taskspine.core.settings import TaskSpineSettings, get_settings, reset_settings

__all__ = [
    "Context",
    "State",
    "Status",
    "Outcome",
    "ErrorCategory",
    "TaskSpineError",
    "StateError",
    "ImmutableError",
    "AlreadySetError",
    "InvalidTransitionError",
    "DefinitionError",
    "UndefinedWorkError",
    "ConfigError",
    "generate_id",
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    "TaskSpineSettings",
    "get_settings",
    "reset_settings",
]
