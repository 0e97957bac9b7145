"""taskspine orchestration -- workflows and the pipeline that runs them."""

from taskspine.orchestration.pipeline import Pipeline
from taskspine.orchestration.workflow import Group, Workflow

__all__ = ["Workflow", "Group", "Pipeline"]
