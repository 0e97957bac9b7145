"""Built-in middlewares: Timeout, Correlate, Runtime.

Tags:
    middleware, timeout, correlation, timing, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog

from taskspine.core.errors import ConfigError
from taskspine.core.identifier import generate_id
from taskspine.core.logging import LogContext
from taskspine.execution.middleware import CallNext
from taskspine.execution.result import Result
from taskspine.execution.timeout import deadline_context, timeout_metadata


class Middleware:
    """Base for class-style middleware.

    One instance is created per task run with the registration options;
    subclasses implement :meth:`dispatch`.
    """

    def __init__(self, **options: Any) -> None:
        self.options = options

    def __call__(self, task: Any, call_next: CallNext) -> Result:
        return self.dispatch(task, call_next)

    def dispatch(self, task: Any, call_next: CallNext) -> Result:
        raise NotImplementedError


class Timeout(Middleware):
    """Cooperative deadline around the task run.

    ``seconds`` may be a number, a callable taking the task, or the name of
    a task attribute (or method) holding the limit.  ``None`` falls back to
    :attr:`DEFAULT_LIMIT`.

    A body that raises :class:`~taskspine.execution.timeout.TimeoutExpired`
    through ``check_deadline()`` is failed by the executor; a body that
    overruns without checking is failed here once it returns.
    """

    DEFAULT_LIMIT = 3.0

    def __init__(self, seconds: float | str | Callable[[Any], Any] | None = DEFAULT_LIMIT, **options: Any) -> None:
        super().__init__(**options)
        self.seconds = seconds

    def resolve_limit(self, task: Any) -> float:
        value = self.seconds
        if isinstance(value, str):
            value = getattr(task, value)
            if callable(value):
                value = value()
        elif callable(value):
            value = value(task)

        if value is None:
            return self.DEFAULT_LIMIT
        limit = float(value)
        if limit <= 0:
            raise ConfigError(f"timeout must be positive, got {value!r}", context={"task": type(task).__name__})
        return limit

    def dispatch(self, task: Any, call_next: CallNext) -> Result:
        limit = self.resolve_limit(task)
        with deadline_context(limit, type(task).__name__) as ctx:
            result = call_next(task)

        if ctx.is_expired() and result.executing and result.success:
            result.fail(
                f"{type(task).__name__} timed out after {ctx.timeout_seconds}s",
                **timeout_metadata(ctx.timeout_seconds, ctx.elapsed),
            )
        return result


class Correlate(Middleware):
    """Bind a correlation id and the chain id into the logging context.

    ``id`` may be a literal string or a callable taking the task.  Without
    one, an id already bound by an outer run is reused, else the chain id.
    """

    def __init__(self, id: str | Callable[[Any], str] | None = None, **options: Any) -> None:
        super().__init__(**options)
        self.id = id

    def resolve_id(self, task: Any) -> str:
        if callable(self.id):
            return str(self.id(task))
        if self.id is not None:
            return str(self.id)
        bound = structlog.contextvars.get_contextvars().get("correlation_id")
        if bound:
            return bound
        chain = task.chain
        return chain.id if chain is not None else generate_id()

    def dispatch(self, task: Any, call_next: CallNext) -> Result:
        correlation_id = self.resolve_id(task)
        chain = task.chain
        with LogContext(correlation_id=correlation_id, chain_id=chain.id if chain is not None else None):
            return call_next(task)


class Runtime(Middleware):
    """Record monotonic run time (seconds) on the Result."""

    def dispatch(self, task: Any, call_next: CallNext) -> Result:
        start = time.monotonic()
        result = call_next(task)
        if result.executing:
            result.record_runtime(time.monotonic() - start)
        return result


__all__ = ["Middleware", "Timeout", "Correlate", "Runtime"]
