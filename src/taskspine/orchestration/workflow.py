"""Workflow — a Task that runs other tasks in order.

Manifesto:
    A workflow declares **what** runs and in which order; the
    :class:`~taskspine.orchestration.pipeline.Pipeline` decides **how**.
    Because a Workflow is itself a Task, it nests anywhere a task does,
    shares the caller's chain, and reports one Result whose ``cause``
    points at the member that stopped it.

ARCHITECTURE
────────────
::

    class Checkout(Workflow):
        workflow_halt = {"failed"}            # None = settings.workflow_halt
        propagate_skips = False

    Checkout.process(ValidateCart, ReserveStock)
    Checkout.process(ChargeCard, halt={"failed", "skipped"})
    Checkout.process(SendReceipt, when="wants_receipt")

    Checkout.groups
      ├── Group(ValidateCart, ReserveStock)
      ├── Group(ChargeCard, halt={failed, skipped})
      └── Group(SendReceipt, when="wants_receipt")

KEY CLASSES
───────────
- ``Workflow``  — Task subclass whose ``work()`` runs the pipeline
- ``Group``     — ordered members sharing one halt set and condition

Related modules:
    pipeline.py               — sequential execution + halt policy
    execution/task.py         — Task base class

Tags:
    workflow, orchestration, groups, halt-policy, taskspine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from taskspine.core.enums import Status
from taskspine.core.errors import DefinitionError
from taskspine.execution.callbacks import Hook, evaluate
from taskspine.execution.task import Task, statuses
from taskspine.orchestration.pipeline import Pipeline


@dataclass(frozen=True)
class Group:
    """Ordered workflow members with an optional halt set and condition."""

    tasks: tuple[type[Task], ...]
    halt: frozenset[Status] | None = None
    when: Hook | None = None
    unless: Hook | None = None

    def __post_init__(self) -> None:
        if not self.tasks:
            raise DefinitionError("a workflow group needs at least one task")
        for member in self.tasks:
            if not (isinstance(member, type) and issubclass(member, Task)):
                raise DefinitionError(f"workflow members must be Task subclasses, got {member!r}")

    def applies(self, workflow: Any) -> bool:
        if self.when is not None and not evaluate(self.when, workflow):
            return False
        if self.unless is not None and evaluate(self.unless, workflow):
            return False
        return True


class Workflow(Task):
    """Task composed of other tasks."""

    is_workflow: ClassVar[bool] = True
    workflow_halt: ClassVar[Any] = None
    propagate_skips: ClassVar[bool] = False
    groups: ClassVar[tuple[Group, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "work" in cls.__dict__:
            raise DefinitionError(
                f"{cls.__name__} must declare its members with process(), not work()"
            )

    @classmethod
    def process(
        cls,
        *tasks: type[Task],
        halt: Any = None,
        when: Hook | None = None,
        unless: Hook | None = None,
    ) -> type[Workflow]:
        """Append a group of members; returns the class for chaining."""
        if cls is Workflow:
            raise DefinitionError("declare groups on a Workflow subclass")
        group = Group(
            tuple(tasks),
            halt=statuses(halt) if halt is not None else None,
            when=when,
            unless=unless,
        )
        cls.groups = (*cls.groups, group)
        return cls

    @property
    def workflow_halt_statuses(self) -> frozenset[Status]:
        if self.workflow_halt is not None:
            return statuses(self.workflow_halt)
        return self.settings.workflow_halt

    def work(self) -> None:
        Pipeline(self).execute()


__all__ = ["Workflow", "Group"]
