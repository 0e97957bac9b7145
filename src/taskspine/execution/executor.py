"""Executor — runs exactly one task instance.

Manifesto:
    The executor is the only code that moves a Result through its state
    machine.  Tasks describe work; the executor decides how it is wrapped,
    how faults are mapped to statuses, when the Result is frozen, and
    whether the caller gets a value or an exception.

ARCHITECTURE
────────────
::

    Executor(task).run(strict=False)
      │
      ├─ scope = current_scope() or new root scope (bound in a ContextVar)
      ├─ chain.append(result)                      index = len(chain)
      ├─ result.start()                            initialized -> executing
      ├─ callbacks: before_execution               may skip/fail the run
      ├─ middlewares(task, perform)                Correlate ▶ Runtime ▶ Timeout ▶ perform
      │     perform: task.work()
      │        Fault (own)        -> status already set
      │        Fault (nested)     -> result.throw(nested, cause=fault)
      │        TimeoutExpired     -> result.fail(timeout=True, category="TIMEOUT", ...)
      │        anything else      -> propagates (fatal)
      │     a Fault out of a callback or middleware is mapped the same way
      ├─ result.finish(task.halt_statuses)         -> complete | interrupted
      ├─ callbacks: on_complete ... on_bad
      ├─ log "task.executed"
      ├─ result.freeze()
      └─ strict and status in halt set  ->  raise Fault.build(result)

    The root run also unbinds the scope and freezes the chain and every
    context it touched, even when the run raised.

Related modules:
    task.py        — Task.execute / execute_strict call in here
    chain.py       — ExecutionScope binding
    middleware.py  — onion composition

Tags:
    executor, lifecycle, middleware, fault-mapping, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskspine.core.errors import InvalidTransitionError
from taskspine.core.logging import get_logger
from taskspine.execution.callbacks import BEFORE_EXECUTION
from taskspine.execution.chain import ExecutionScope, bind_scope, current_scope, new_scope
from taskspine.execution.fault import Fault
from taskspine.execution.middleware import MiddlewareRegistry
from taskspine.execution.middlewares import Timeout
from taskspine.execution.result import Result
from taskspine.execution.timeout import TimeoutExpired

if TYPE_CHECKING:
    from taskspine.execution.task import Task

logger = get_logger(__name__)


class Executor:
    """Run one task instance and finalize its Result."""

    def __init__(self, task: Task, scope: ExecutionScope | None = None) -> None:
        self.task = task
        self.scope = scope

    @classmethod
    def execute(cls, task: Task, *, strict: bool = False, scope: ExecutionScope | None = None) -> Result:
        return cls(task, scope).run(strict=strict)

    def run(self, *, strict: bool = False) -> Result:
        """Execute the task.

        Args:
            strict: Raise a :class:`Fault` when the final status is in the
                task's halt set instead of returning the Result.
        """
        bound = current_scope()
        scope = self.scope or bound
        if scope is not None and scope is bound:
            return self._run(scope, strict)

        scope = scope or new_scope()
        with bind_scope(scope):
            try:
                return self._run(scope, strict)
            except Fault:
                raise
            except Exception:
                logger.exception(
                    "task.fatal",
                    task=type(self.task).__name__,
                    chain_id=scope.chain.id,
                )
                raise

    def _run(self, scope: ExecutionScope, strict: bool) -> Result:
        task = self.task
        result = task.result
        if not result.initialized:
            raise InvalidTransitionError(
                result.state.value,
                "executing",
                message=f"{type(task).__name__} instance was already executed",
            )

        scope.chain.append(result)
        result.start()
        try:
            task.callbacks.invoke(BEFORE_EXECUTION, task)
            # Middlewares rewrite a run through task.result; the returned
            # Result is only checked for type.
            self.middlewares(scope).call(task, self._perform)
        except Fault as fault:
            self._adopt(result, fault)

        halt = task.halt_statuses
        result.finish(halt)
        task.callbacks.invoke_finished(task)

        logger.info("task.executed", **result.to_dict())

        if scope.settings.freeze_results:
            result.freeze()

        if strict and result.bad and result.status in halt:
            raise Fault.build(result)
        return result

    def middlewares(self, scope: ExecutionScope) -> MiddlewareRegistry:
        """The task's registry, plus an innermost Timeout when a limit is configured."""
        registry = self.task.middlewares
        limit = self.task.timeout
        if limit is None:
            if self.task.is_workflow:
                limit = scope.settings.workflow_timeout
            else:
                limit = scope.settings.task_timeout

        if limit is not None and Timeout not in registry:
            registry = registry.copy().register(Timeout, seconds=limit)
        return registry

    @staticmethod
    def _adopt(result: Result, fault: Fault) -> None:
        """Map a Fault that unwound the run onto ``result``.

        A fault built from ``result`` itself already set the status; a
        fault from a nested call is thrown, unless the status is set.
        """
        if fault.result is not result and result.success:
            result.throw(fault.result, cause=fault)

    @staticmethod
    def _perform(task: Task) -> Result:
        result = task.result
        try:
            task.work()
        except Fault as fault:
            Executor._adopt(result, fault)
        except TimeoutExpired as exc:
            if result.success:
                result.fail(str(exc), **exc.to_metadata())
        return result


__all__ = ["Executor"]
