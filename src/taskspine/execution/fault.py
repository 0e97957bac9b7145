"""Faults — exceptions that carry a skipped or failed Result.

Manifesto:
    Most callers branch on the returned :class:`Result`.  Faults exist for
    the two places where unwinding the stack is the natural thing to do:

    - inside ``work()``: ``self.skip()`` / ``self.fail()`` stop the body
    - around ``execute_strict()``: a halting status surfaces as an exception

    A Fault is always built from a Result, never the other way round, so
    the Result stays the single source of truth.

Architecture:
    ::

        TaskSpineError
          └── Fault                 (category EXECUTION, .result)
                ├── SkipFault       (result.status == skipped)
                └── FailFault       (result.status == failed)

        Fault.for_tasks(ChargeCard, Refund)  ──▶ FaultMatcher
        Fault.matching(lambda f: ...)         ──▶ FaultMatcher
        FailFault.for_tasks(ChargeCard)       ──▶ FaultMatcher (FailFault only)

    Python's ``except`` clause does not consult ``__instancecheck__``, so a
    matcher is used as a predicate or a context manager::

        with FailFault.for_tasks(ChargeCard).rescue() as caught:
            Checkout.execute_strict(order_id=1)
        if caught.fault:
            ...

Tags:
    fault, exception, execution, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from taskspine.core.enums import Status
from taskspine.core.errors import ErrorCategory, TaskSpineError

if TYPE_CHECKING:
    from types import TracebackType

    from taskspine.execution.result import Result


class Fault(TaskSpineError):
    """Exception wrapping a non-success :class:`Result`.

    Attributes:
        result: The skipped/failed Result this fault was built from
        task: ``result.task``
        context: ``result.context``
        chain: ``result.chain``
    """

    default_category = ErrorCategory.EXECUTION

    def __init__(self, result: Result, message: str | None = None, *, cause: BaseException | None = None):
        self.result = result
        super().__init__(
            message or result.reason or "no reason given",
            context={"task": type(result.task).__name__, "status": result.status.value},
            cause=cause if cause is not None else result.cause,
        )

    @classmethod
    def build(cls, result: Result) -> Fault:
        """Build the matching subclass for ``result``'s status.

        Raises:
            ValueError: the Result is successful
        """
        if result.status is Status.SKIPPED:
            fault_cls: type[Fault] = SkipFault
        elif result.status is Status.FAILED:
            fault_cls = FailFault
        else:
            raise ValueError(f"cannot build a Fault from a {result.status.value} result")
        return fault_cls(result)

    @property
    def task(self) -> Any:
        return self.result.task

    @property
    def context(self) -> Any:
        return self.result.context

    @property
    def chain(self) -> Any:
        return self.result.chain

    # =========================================================================
    # Matchers
    # =========================================================================

    @classmethod
    def for_tasks(cls, *task_classes: type) -> FaultMatcher:
        """Match faults of this class raised for any of ``task_classes``."""
        if not task_classes:
            raise ValueError("for_tasks() needs at least one task class")
        for task_class in task_classes:
            if not isinstance(task_class, type):
                raise TypeError(f"for_tasks() takes classes, got {task_class!r}")
        return FaultMatcher(
            cls,
            lambda fault: isinstance(fault.task, task_classes),
            description=", ".join(t.__name__ for t in task_classes),
        )

    @classmethod
    def matching(cls, predicate: Callable[[Fault], bool]) -> FaultMatcher:
        """Match faults of this class for which ``predicate(fault)`` is true."""
        if not callable(predicate):
            raise TypeError("predicate must be callable")
        return FaultMatcher(cls, predicate, description=getattr(predicate, "__name__", "predicate"))


class SkipFault(Fault):
    """Fault for a skipped Result."""


class FailFault(Fault):
    """Fault for a failed Result."""


class FaultMatcher:
    """Predicate over faults; also usable as a rescuing context manager."""

    def __init__(
        self,
        fault_class: type[Fault],
        predicate: Callable[[Fault], bool],
        *,
        description: str = "",
    ) -> None:
        self.fault_class = fault_class
        self.predicate = predicate
        self.description = description

    def matches(self, error: BaseException) -> bool:
        return isinstance(error, self.fault_class) and bool(self.predicate(error))

    __call__ = matches

    def rescue(self) -> Rescue:
        """Context manager suppressing matching faults (others propagate)."""
        return Rescue(self)

    def __repr__(self) -> str:
        return f"<FaultMatcher {self.fault_class.__name__}({self.description})>"


class Rescue:
    """Context manager returned by :meth:`FaultMatcher.rescue`.

    ``fault`` holds the suppressed fault, or None if the block finished
    normally.
    """

    def __init__(self, matcher: FaultMatcher) -> None:
        self.matcher = matcher
        self.fault: Fault | None = None

    def __enter__(self) -> Rescue:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is not None and self.matcher.matches(exc):
            self.fault = exc  # type: ignore[assignment]
            return True
        return False


__all__ = ["Fault", "SkipFault", "FailFault", "FaultMatcher", "Rescue"]
