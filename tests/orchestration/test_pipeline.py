"""Tests for Pipeline halt resolution and logging."""

from structlog.testing import capture_logs

from taskspine.core.enums import Status
from taskspine.core.settings import TaskSpineSettings
from taskspine.execution.chain import execution_scope
from taskspine.execution.task import Task
from taskspine.orchestration.pipeline import Pipeline
from taskspine.orchestration.workflow import Workflow


class Load(Task):
    def work(self):
        self.context.loaded = True


class Reject(Task):
    def work(self):
        self.fail("bad row", row=7)


class Report(Task):
    def work(self):
        self.context.reported = True


class Import(Workflow):
    def has_rows(self):
        return self.context.get("rows", 0) > 0


Import.process(Load)
Import.process(Reject, when="has_rows")
Import.process(Report)


class TestHaltResolution:
    """Group halt, then workflow_halt, then settings."""

    def test_group_halt_wins(self):
        class Flow(Workflow):
            workflow_halt = "failed"

        Flow.process(Load, halt="skipped")
        pipeline = Pipeline(Flow())
        assert pipeline.halt_statuses(Flow.groups[0]) == frozenset({Status.SKIPPED})

    def test_workflow_halt_next(self):
        class Flow(Workflow):
            workflow_halt = {"failed", "skipped"}

        Flow.process(Load)
        pipeline = Pipeline(Flow())
        assert pipeline.halt_statuses(Flow.groups[0]) == frozenset({Status.FAILED, Status.SKIPPED})

    def test_settings_last(self):
        class Flow(Workflow):
            pass

        Flow.process(Load)
        with execution_scope(TaskSpineSettings(workflow_halt="skipped")):
            pipeline = Pipeline(Flow())
            assert pipeline.halt_statuses(Flow.groups[0]) == frozenset({Status.SKIPPED})

    def test_success_in_halt_set_is_ignored(self):
        class Flow(Workflow):
            workflow_halt = "success,failed"

        Flow.process(Load, Report)
        result = Flow.execute()
        assert result.success
        assert result.context.reported is True


class TestLogging:
    """Structured pipeline events."""

    def test_complete_run(self):
        with capture_logs() as logs:
            result = Import.execute()
        events = [e["event"] for e in logs if e["event"].startswith("workflow.")]
        assert events == ["workflow.start", "workflow.group_skipped", "workflow.complete"]
        complete = [e for e in logs if e["event"] == "workflow.complete"][0]
        assert complete["workflow"] == "Import"
        assert complete["status"] == "success"
        assert complete["executed_members"] == 2
        assert result.context.reported is True

    def test_halt_logged(self):
        with capture_logs() as logs:
            result = Import.execute(rows=3)
        halted = [e for e in logs if e["event"] == "workflow.halted"]
        assert len(halted) == 1
        assert halted[0]["member"] == "Reject"
        assert halted[0]["status"] == "failed"
        assert halted[0]["reason"] == "bad row"
        assert halted[0]["member_index"] == 2
        assert halted[0]["log_level"] == "warning"
        assert result.failed
        assert result.metadata == {"row": 7}

    def test_member_results_logged_before_workflow(self):
        with capture_logs() as logs:
            Import.execute()
        executed = [e["class"] for e in logs if e["event"] == "task.executed"]
        assert executed == ["Load", "Report", "Import"]
