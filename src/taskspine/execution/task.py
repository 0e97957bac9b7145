"""Task — the unit of work.

Manifesto:
    A task is a class with a ``work()`` method.  It reads and writes its
    :class:`~taskspine.core.context.Context`, calls other tasks, and stops
    early with ``self.skip()`` or ``self.fail()``.  It never builds its own
    Result and never decides whether its caller gets an exception; the
    executor does both.

ARCHITECTURE
────────────
::

    class ChargeCard(Task):
        task_halt = {"failed", "skipped"}     # statuses that halt (None = settings)
        timeout = 5                           # cooperative deadline (None = settings)

        def work(self):
            if self.context.amount <= 0:
                self.skip("nothing to charge")
            self.context.charge_id = gateway.charge(self.context.amount)

    ChargeCard.execute(amount=10)          -> Result   (value based)
    ChargeCard.execute_strict(amount=10)   -> Result or raise Fault

    @task
    def reserve_stock(sku, quantity): ...  -> Task subclass "ReserveStock"

BEST PRACTICES
──────────────
- Register middlewares and callbacks on the subclass
  (``ChargeCard.middlewares.register(...)``); every subclass owns a copy
  of its parent's registries.
- Call nested tasks with ``execute_strict`` when their failure should
  become yours; call ``execute`` when you want to inspect the Result.
- Call ``self.check_deadline()`` inside long loops.

Related modules:
    executor.py                  — runs a task instance
    orchestration/workflow.py    — Task subclass running other tasks

Tags:
    task, work, halt, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Callable, Collection, Mapping
from typing import Any, ClassVar, NoReturn

from taskspine.core.context import Context
from taskspine.core.enums import Status
from taskspine.core.errors import ErrorCategory, UndefinedWorkError
from taskspine.core.identifier import generate_id
from taskspine.core.logging import get_logger
from taskspine.core.settings import TaskSpineSettings, get_settings, parse_statuses
from taskspine.execution.callbacks import CallbackRegistry
from taskspine.execution.chain import Chain, current_scope
from taskspine.execution.executor import Executor
from taskspine.execution.fault import Fault
from taskspine.execution.middleware import MiddlewareRegistry
from taskspine.execution.result import Result
from taskspine.execution.timeout import check_deadline


def statuses(value: Any) -> frozenset[Status]:
    """Coerce a halt declaration (``"failed"``, ``{"failed", "skipped"}``, ...)."""
    return frozenset(Status(item) for item in parse_statuses(value))


class Task:
    """Base class for tasks."""

    task_halt: ClassVar[Collection[Status | str] | str | None] = None
    timeout: ClassVar[float | str | Callable[[Any], Any] | None] = None
    middlewares: ClassVar[MiddlewareRegistry] = MiddlewareRegistry()
    callbacks: ClassVar[CallbackRegistry] = CallbackRegistry()
    is_workflow: ClassVar[bool] = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.middlewares = cls.middlewares.copy()
        cls.callbacks = cls.callbacks.copy()

    def __init__(self, context: Any = None, /, **inputs: Any) -> None:
        self.id = generate_id()
        self.context = Context.build(context, **inputs)
        self.result = Result(self)

    def work(self) -> Any:
        raise UndefinedWorkError(type(self).__name__)

    # =========================================================================
    # Entry points
    # =========================================================================

    @classmethod
    def execute(cls, context: Any = None, /, **inputs: Any) -> Result:
        """Run the task and return its Result."""
        return Executor.execute(cls(context, **inputs))

    @classmethod
    def execute_strict(cls, context: Any = None, /, **inputs: Any) -> Result:
        """Run the task; raise a :class:`Fault` if the status is in the halt set."""
        return Executor.execute(cls(context, **inputs), strict=True)

    # =========================================================================
    # Halting from inside work()
    # =========================================================================

    def skip(self, reason: str | None = None, *, halt: bool | None = None, **metadata: Any) -> NoReturn:
        self.result.skip(reason, halt=halt, **metadata)
        raise Fault.build(self.result)

    def fail(self, reason: str | None = None, *, halt: bool | None = None, **metadata: Any) -> NoReturn:
        self.result.fail(reason, halt=halt, **metadata)
        raise Fault.build(self.result)

    def throw(self, result: Result, *, halt: bool | None = None, **metadata: Any) -> NoReturn:
        """Adopt a nested Result's skip/fail and stop."""
        self.result.throw(result, halt=halt, **metadata)
        raise Fault.build(self.result)

    def check_deadline(self) -> None:
        check_deadline()

    # =========================================================================
    # Environment
    # =========================================================================

    @property
    def chain(self) -> Chain | None:
        return self.result.chain

    @property
    def settings(self) -> TaskSpineSettings:
        scope = current_scope()
        return scope.settings if scope is not None else get_settings()

    @property
    def dry_run(self) -> bool:
        chain = self.chain
        if chain is not None:
            return chain.dry_run
        scope = current_scope()
        return scope.dry_run if scope is not None else self.settings.dry_run

    @property
    def halt_statuses(self) -> frozenset[Status]:
        if self.task_halt is not None:
            return statuses(self.task_halt)
        return self.settings.task_halt

    @property
    def logger(self) -> Any:
        return get_logger(type(self).__module__).bind(task=type(self).__name__, task_id=self.id)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} {self.result.outcome.value}>"

    # =========================================================================
    # Plain functions
    # =========================================================================

    @classmethod
    def from_function(
        cls,
        fn: Callable[..., Any],
        *,
        name: str | None = None,
        output: str | None = None,
        strict: bool = False,
        **attrs: Any,
    ) -> type[Task]:
        """Build a Task subclass whose ``work()`` calls ``fn``.

        Parameters named ``task`` and ``context`` receive those objects;
        every other parameter is filled from the context key of the same
        name (all keys when ``fn`` takes ``**kwargs``).

        Return values:
            - a mapping is merged into the context
            - ``False`` fails the task
            - ``None`` is ignored
            - anything else is stored under ``output`` (default: ``fn.__name__``)

        With ``strict=True`` a required parameter missing from the context
        fails the task instead of raising ``TypeError`` from the call.
        """
        sig = inspect.signature(fn)
        output_key = output or fn.__name__
        has_var_keyword = any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values())

        def work(self: Task) -> None:
            special = {"task": self, "context": self.context}
            args: list[Any] = []
            kwargs: dict[str, Any] = {}
            for param_name, param in sig.parameters.items():
                if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                    continue
                if param_name in special:
                    value = special[param_name]
                elif param_name in self.context:
                    value = self.context[param_name]
                elif param.default is inspect.Parameter.empty and strict:
                    self.fail(
                        f"Missing required parameter: {param_name!r}",
                        category=ErrorCategory.CONFIG.value,
                        parameter=param_name,
                    )
                else:
                    continue
                if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                    args.append(value)
                else:
                    kwargs[param_name] = value

            if has_var_keyword:
                for key, value in self.context.items():
                    if key not in sig.parameters:
                        kwargs[key] = value

            returned = fn(*args, **kwargs)
            if returned is False:
                self.fail(f"{fn.__name__} returned False")
            elif isinstance(returned, Mapping):
                self.context.update(returned)
            elif returned is not None:
                self.context[output_key] = returned

        namespace: dict[str, Any] = {
            "work": work,
            "__doc__": fn.__doc__,
            "__module__": fn.__module__,
            "__wrapped__": fn,
            **attrs,
        }
        return type(name or _class_name(fn.__name__), (cls,), namespace)


def _class_name(function_name: str) -> str:
    return "".join(part.capitalize() for part in re.split(r"_+", function_name) if part) or "FunctionTask"


def task(
    fn: Callable[..., Any] | None = None,
    /,
    *,
    name: str | None = None,
    output: str | None = None,
    strict: bool = False,
    **attrs: Any,
) -> Any:
    """Decorator form of :meth:`Task.from_function`.

    Usable bare (``@task``) or with options (``@task(output="total")``).
    """

    def decorator(func: Callable[..., Any]) -> type[Task]:
        return Task.from_function(func, name=name, output=output, strict=strict, **attrs)

    if fn is not None:
        return decorator(fn)
    return decorator


__all__ = ["Task", "task", "statuses"]
