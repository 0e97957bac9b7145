"""Lifecycle callbacks for tasks.

Callbacks are hooks the executor fires around a run:

    before_execution      before the middleware stack
    on_complete           \\
    on_interrupted         |
    on_executed            |  after finalization, in this order,
    on_success             |  each only when the Result matches
    on_skipped             |  the predicate of the same name
    on_failed              |
    on_good                |
    on_bad                /

A callback is a callable taking the task, or the name of a task method.
``when`` / ``unless`` conditions take the same shapes.

Example::

    class ChargeCard(Task):
        def work(self): ...
        def notify(self): ...

    ChargeCard.callbacks.register("on_failed", "notify")
    ChargeCard.callbacks.register("on_success", audit, unless=lambda t: t.dry_run)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

BEFORE_EXECUTION = "before_execution"

#: Post-run events in firing order; each maps to the Result predicate after ``on_``.
FINISHED_EVENTS = (
    "on_complete",
    "on_interrupted",
    "on_executed",
    "on_success",
    "on_skipped",
    "on_failed",
    "on_good",
    "on_bad",
)

EVENTS = (BEFORE_EXECUTION, *FINISHED_EVENTS)

Hook = str | Callable[[Any], Any]


def evaluate(hook: Hook, target: Any) -> Any:
    """Call ``hook`` against ``target``: a method name or a callable."""
    if isinstance(hook, str):
        return getattr(target, hook)()
    return hook(target)


def _check_hook(hook: Any, label: str) -> None:
    if not (isinstance(hook, str) or callable(hook)):
        raise TypeError(f"{label} must be a callable or a method name, got {type(hook).__name__}")


@dataclass(frozen=True)
class Callback:
    hook: Hook
    when: Hook | None = None
    unless: Hook | None = None

    def applies(self, target: Any) -> bool:
        if self.when is not None and not evaluate(self.when, target):
            return False
        if self.unless is not None and evaluate(self.unless, target):
            return False
        return True


class CallbackRegistry:
    """Event name -> ordered callbacks."""

    def __init__(self, callbacks: dict[str, list[Callback]] | None = None) -> None:
        self._callbacks: dict[str, list[Callback]] = {
            event: list(items) for event, items in (callbacks or {}).items()
        }

    def register(
        self,
        event: str,
        callback: Hook,
        *,
        when: Hook | None = None,
        unless: Hook | None = None,
    ) -> CallbackRegistry:
        if event not in EVENTS:
            raise ValueError(f"Unknown callback event {event!r}; expected one of {', '.join(EVENTS)}")
        _check_hook(callback, "callback")
        if when is not None:
            _check_hook(when, "when")
        if unless is not None:
            _check_hook(unless, "unless")
        self._callbacks.setdefault(event, []).append(Callback(callback, when, unless))
        return self

    def copy(self) -> CallbackRegistry:
        return type(self)(self._callbacks)

    def get(self, event: str) -> tuple[Callback, ...]:
        return tuple(self._callbacks.get(event, ()))

    def __iter__(self) -> Iterator[tuple[str, Callback]]:
        for event in EVENTS:
            for callback in self._callbacks.get(event, ()):
                yield event, callback

    def __len__(self) -> int:
        return sum(len(items) for items in self._callbacks.values())

    def invoke(self, event: str, task: Any) -> None:
        for callback in self.get(event):
            if callback.applies(task):
                evaluate(callback.hook, task)

    def invoke_finished(self, task: Any) -> None:
        """Fire the post-run events matching ``task.result``."""
        result = task.result
        for event in FINISHED_EVENTS:
            if getattr(result, event.removeprefix("on_")):
                self.invoke(event, task)


__all__ = [
    "BEFORE_EXECUTION",
    "FINISHED_EVENTS",
    "EVENTS",
    "Callback",
    "CallbackRegistry",
    "evaluate",
]
