"""taskspine execution -- Result, Fault, Chain, Executor, middleware and Task.

Architecture::

    result.py       Result state machine + failure classification
    fault.py        Fault / SkipFault / FailFault + matchers
    chain.py        Chain, ExecutionScope (ContextVar binding)
    timeout.py      Cooperative deadlines, TimeoutExpired
    middleware.py   MiddlewareRegistry (onion composition)
    middlewares.py  Timeout, Correlate, Runtime
    callbacks.py    Lifecycle callbacks
    executor.py     Executor: runs one task instance
    task.py         Task base class and @task adapter
"""

from taskspine.core.enums import Outcome, State, Status
from taskspine.execution.callbacks import CallbackRegistry
from taskspine.execution.chain import Chain, ExecutionScope, current_scope, execution_scope
from taskspine.execution.executor import Executor
from taskspine.execution.fault import FailFault, Fault, FaultMatcher, SkipFault
from taskspine.execution.middleware import MiddlewareRegistry
from taskspine.execution.middlewares import Correlate, Middleware, Runtime, Timeout
from taskspine.execution.result import Result
from taskspine.execution.task import Task, task
from taskspine.execution.timeout import TimeoutExpired, check_deadline, deadline_context

__all__ = [
    "State",
    "Status",
    "Outcome",
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
    "deadline_context",
    "MiddlewareRegistry",
    "Middleware",
    "Timeout",
    "Correlate",
    "Runtime",
    "CallbackRegistry",
    "Executor",
    "Task",
    "task",
]
