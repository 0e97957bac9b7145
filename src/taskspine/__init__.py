"""
taskspine - task results, fault propagation and workflows.

Tasks report a structured, immutable Result; nested calls share one Chain;
failures are classified as originating, re-thrown or received across any
depth of nesting; workflows compose tasks under a configurable halt policy.

    from taskspine import Task, Workflow

    class ChargeCard(Task):
        def work(self):
            if self.context.amount <= 0:
                self.skip("nothing to charge")
            self.context.charged = True

    result = ChargeCard.execute(amount=10)
    result.outcome          # Outcome.COMPLETE_SUCCESS
"""

__version__ = "0.1.0"

from taskspine.core import (  # noqa: E402
    AlreadySetError,
    ConfigError,
    Context,
    DefinitionError,
    ErrorCategory,
    ImmutableError,
    InvalidTransitionError,
    Outcome,
    State,
    StateError,
    Status,
    TaskSpineError,
    TaskSpineSettings,
    UndefinedWorkError,
    configure_logging,
    get_logger,
    get_settings,
    reset_settings,
)
from taskspine.execution import (  # noqa: E402
    CallbackRegistry,
    Chain,
    Correlate,
    ExecutionScope,
    Executor,
    FailFault,
    Fault,
    FaultMatcher,
    Middleware,
    MiddlewareRegistry,
    Result,
    Runtime,
    SkipFault,
    Task,
    Timeout,
    TimeoutExpired,
    check_deadline,
    current_scope,
    execution_scope,
    task,
)
from taskspine.orchestration import Group, Pipeline, Workflow  # noqa: E402

__all__ = [
    "__version__",
    # core
    "Context",
    "State",
    "Status",
    "Outcome",
    "ErrorCategory",
    "TaskSpineError",
    "StateError",
    "ImmutableError",
    "AlreadySetError",
    "InvalidTransitionError",
    "DefinitionError",
    "UndefinedWorkError",
    "ConfigError",
    "TaskSpineSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    # execution
    "Result",
    "Fault",
    "SkipFault",
    "FailFault",
    "FaultMatcher",
    "Chain",
    "ExecutionScope",
    "current_scope",
    "execution_scope",
    "TimeoutExpired",
    "check_deadline",
    "MiddlewareRegistry",
    "Middleware",
    "Timeout",
    "Correlate",
    "Runtime",
    "CallbackRegistry",
    "Executor",
    "Task",
    "task",
    # orchestration
    "Workflow",
    "Group",
    "Pipeline",
]
