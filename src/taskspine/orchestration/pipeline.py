"""Pipeline — sequential execution of a workflow's groups.

The pipeline runs every member of every applicable group against the
workflow's shared context, one after the other.  After each member it
checks the member's status against the group's halt set (falling back to
the workflow's, then to ``settings.workflow_halt``):

- matched: the workflow throws the member's Result with ``halt=True``;
  the workflow ends ``interrupted`` with the member's status, and its
  ``cause`` is the member's fault, so ``caused_failure`` is the member
- not matched: the next member runs and sees every prior context change

A run in which nothing halted leaves the workflow ``success``, unless
``propagate_skips`` is set and some member skipped; then the workflow is
marked ``skipped`` with the first skipped member as its cause.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskspine.core.enums import Status
from taskspine.core.logging import get_logger
from taskspine.execution.fault import Fault
from taskspine.execution.result import Result

if TYPE_CHECKING:
    from taskspine.orchestration.workflow import Group, Workflow

logger = get_logger(__name__)


class Pipeline:
    """Runs one workflow instance's members."""

    def __init__(self, workflow: Workflow) -> None:
        self.workflow = workflow

    def halt_statuses(self, group: Group) -> frozenset[Status]:
        if group.halt is not None:
            return group.halt
        return self.workflow.workflow_halt_statuses

    def execute(self) -> Result:
        workflow = self.workflow
        name = type(workflow).__name__
        groups = type(workflow).groups
        first_skip: Result | None = None
        executed = 0

        logger.info(
            "workflow.start",
            workflow=name,
            workflow_id=workflow.id,
            group_count=len(groups),
        )

        for position, group in enumerate(groups):
            if not group.applies(workflow):
                logger.debug("workflow.group_skipped", workflow=name, group=position)
                continue

            halt = self.halt_statuses(group)
            for member in group.tasks:
                result = member.execute(workflow.context)
                executed += 1

                if result.bad and result.status in halt:
                    logger.warning(
                        "workflow.halted",
                        workflow=name,
                        member=member.__name__,
                        member_index=result.index,
                        status=result.status.value,
                        reason=result.reason,
                    )
                    workflow.throw(result, halt=True)

                if result.skipped and first_skip is None:
                    first_skip = result

        if workflow.propagate_skips and first_skip is not None and workflow.result.success:
            workflow.result.skip(first_skip.reason, cause=Fault.build(first_skip))

        logger.info(
            "workflow.complete",
            workflow=name,
            workflow_id=workflow.id,
            status=workflow.result.status.value,
            executed_members=executed,
        )
        return workflow.result


__all__ = ["Pipeline"]
