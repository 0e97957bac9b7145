"""Middleware registry — ordered wrappers around a task run.

Manifesto:
    Cross-cutting concerns (deadlines, correlation ids, timing) wrap the
    task body without the task knowing about them.  A middleware receives
    the task and a ``call_next`` continuation, exactly like an ASGI
    ``dispatch(request, call_next)``, and must return the task's Result.

ARCHITECTURE
────────────
::

    registry = MiddlewareRegistry()
    registry.register(Correlate)            # outermost
    registry.register(Runtime)
    registry.register(Timeout, seconds=5)   # innermost

    registry.call(task, perform)

        Correlate ─▶ Runtime ─▶ Timeout ─▶ perform(task) ─▶ task.work()
            ◀────────── Result ◀───────── Result ◀──────────┘

    Two middleware shapes:
      - class       instantiated per invocation with ``**options``,
                    then called as ``instance(task, call_next)``
      - function    called as ``fn(task, call_next, **options)``

BEST PRACTICES
──────────────
- Never keep per-run state on a middleware function or module; classes
  get a fresh instance every run.
- Always return the Result from ``call_next``; do not build your own.
  The executor keeps ``task.result``, so a middleware rewrites a run by
  calling ``task.skip()`` / ``task.fail()`` (short-circuit) or the
  Result methods after ``call_next`` returns.

Related modules:
    middlewares.py — built-in Timeout / Correlate / Runtime
    executor.py    — builds the stack for every run

Tags:
    middleware, onion, execution, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from taskspine.execution.result import Result

#: ``call_next(task) -> Result``
CallNext = Callable[[Any], Result]


class MiddlewareRegistry:
    """Ordered list of ``(middleware, options)`` entries."""

    def __init__(self, entries: list[tuple[Any, dict[str, Any]]] | None = None) -> None:
        self._entries: list[tuple[Any, dict[str, Any]]] = list(entries or [])

    def register(self, middleware: Any, **options: Any) -> MiddlewareRegistry:
        """Append ``middleware``; earlier registrations wrap later ones."""
        if not callable(middleware):
            raise TypeError(f"middleware must be callable, got {type(middleware).__name__}")
        self._entries.append((middleware, dict(options)))
        return self

    def deregister(self, middleware: Any) -> bool:
        """Remove every entry of ``middleware``; False if it was not registered."""
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry[0] is not middleware]
        return len(self._entries) != before

    def copy(self) -> MiddlewareRegistry:
        return type(self)([(mw, dict(opts)) for mw, opts in self._entries])

    def __contains__(self, middleware: Any) -> bool:
        return any(mw is middleware for mw, _ in self._entries)

    def __iter__(self) -> Iterator[tuple[Any, dict[str, Any]]]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def call(self, task: Any, perform: CallNext) -> Result:
        """Run ``perform(task)`` wrapped in every registered middleware."""
        entries = tuple(self._entries)

        def dispatch(position: int, current: Any) -> Result:
            if position >= len(entries):
                return perform(current)

            middleware, options = entries[position]

            def call_next(next_task: Any) -> Result:
                return dispatch(position + 1, next_task)

            if isinstance(middleware, type):
                result = middleware(**options)(current, call_next)
            else:
                result = middleware(current, call_next, **options)

            if not isinstance(result, Result):
                name = getattr(middleware, "__name__", type(middleware).__name__)
                raise TypeError(f"middleware {name} must return a Result, got {type(result).__name__}")
            return result

        return dispatch(0, task)

    def __repr__(self) -> str:
        names = [getattr(mw, "__name__", repr(mw)) for mw, _ in self._entries]
        return f"<MiddlewareRegistry {names}>"


__all__ = ["MiddlewareRegistry", "CallNext"]
