"""
Centralized settings for taskspine.

Manifesto:
    Halt policy is configuration, not code.  ``TaskSpineSettings`` is the
    single validated source for the two halt sets (one for exception-based
    task calls, one for workflow pipelines), default deadlines and the
    freezing switch.  A settings value is resolved once per root call and
    travels down through every nested task inside the
    :class:`~taskspine.execution.chain.ExecutionScope`; nothing reads a
    mutable global in the middle of a run.

Features:
    - **Environment-driven:** ``TASKSPINE_*`` variables and ``.env`` files
    - **Lenient status sets:** JSON lists or comma separated strings,
      e.g. ``TASKSPINE_TASK_HALT=failed,skipped``
    - **Cached:** :func:`get_settings` builds one instance per process

Examples:
    >>> settings = TaskSpineSettings(task_halt={"failed", "skipped"})
    >>> Status.SKIPPED in settings.task_halt
    True

Tags:
    settings, configuration, pydantic, environment, taskspine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from taskspine.core.enums import Status

StatusSet = Annotated[frozenset[Status], NoDecode]


def parse_statuses(value: Any) -> Any:
    """Normalise a halt-set value into something pydantic can validate.

    Accepts a single status, an iterable of statuses, a JSON list or a
    comma separated string.  ``None`` and ``""`` mean the empty set.
    """
    if value is None:
        return frozenset()
    if isinstance(value, Status):
        return frozenset({value})
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return frozenset()
        if text.startswith("["):
            return frozenset(json.loads(text))
        return frozenset(part.strip().lower() for part in text.split(",") if part.strip())
    return frozenset(value)


class TaskSpineSettings(BaseSettings):
    """taskspine configuration.

    Fields
    ──────
    task_halt       : statuses that make ``execute_strict`` raise a Fault
    workflow_halt   : statuses that stop a workflow pipeline
    task_timeout    : default cooperative deadline for plain tasks (seconds)
    workflow_timeout: default cooperative deadline for workflows (seconds)
    freeze_results  : freeze Results/contexts/chains after completion
    dry_run         : mark new chains as dry runs
    log_level       : structlog log level
    log_json        : JSON logs (None = auto-detect from tty)
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Halt policy ──────────────────────────────────────────────
    task_halt: StatusSet = Field(default=frozenset({Status.FAILED}))
    workflow_halt: StatusSet = Field(default=frozenset({Status.FAILED}))

    # ── Deadlines ────────────────────────────────────────────────
    task_timeout: float | None = Field(default=None, gt=0)
    workflow_timeout: float | None = Field(default=None, gt=0)

    # ── Execution ────────────────────────────────────────────────
    freeze_results: bool = True
    dry_run: bool = False

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("task_halt", "workflow_halt", mode="before")
    @classmethod
    def _coerce_statuses(cls, value: Any) -> Any:
        return parse_statuses(value)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


_settings: TaskSpineSettings | None = None


def get_settings(*, _force_reload: bool = False) -> TaskSpineSettings:
    """Load, validate, and cache a :class:`TaskSpineSettings` instance."""
    global _settings
    if _settings is None or _force_reload:
        _settings = TaskSpineSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests, config reloads)."""
    global _settings
    _settings = None


__all__ = [
    "TaskSpineSettings",
    "get_settings",
    "reset_settings",
    "parse_statuses",
]
