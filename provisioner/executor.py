"""
Executor - Per-task execution contract and a sequential job driver.

Each task moves through:

    BUILT -> RESOLVED -> VALIDATED -> EXECUTED -> MERGED
                         (any state) -> FAILED

1. BUILT: look the ref up in the registry and build its resource from the
   field store snapshot deep-merged with the task params (params win)
2. RESOLVED: resolve ${name} / $f:name placeholders in the params against
   the snapshot, i.e. only fields visible before the task started
3. VALIDATED: run the resource's schema checks; any error is fatal
4. EXECUTED: run the ref's action on the executor; any exception is
   recorded on the resource and re-raised as ActionExecutionError
5. MERGED: merge the action result into the resource, then the resource
   into the field store

The field store is written only in step 5, so a failed task leaves it
exactly as it was. Nothing here retries; the caller decides what happens
after a failure.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from provisioner.compiler import compile_task
from provisioner.errors import (
    ActionExecutionError,
    DefinitionError,
    FieldTypeError,
    ProvisionerError,
    ValidationError,
)
from provisioner.executors.base import UnknownActionError
from provisioner.fields import FieldStore, check_wire_value, deep_merge
from provisioner.registry import Registry, get_default_registry
from provisioner.resources.base import Resource
from provisioner.schemas import Definition, Job, Task
from provisioner.templates import resolve


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_trace_id() -> str:
    return uuid.uuid4().hex[:16]


class TaskState(str, Enum):
    """States a task passes through in the execution contract."""
    PENDING = "pending"
    BUILT = "built"
    RESOLVED = "resolved"
    VALIDATED = "validated"
    EXECUTED = "executed"
    MERGED = "merged"
    FAILED = "failed"


@dataclass
class TaskOutcome:
    """
    Result of running one task.

    Attributes:
        ref: The task ref
        state: Final state (MERGED on success, FAILED otherwise)
        failed_in: State the task was in when it failed
        resource: The resource built for the task, if it got that far
        result: Attribute mapping returned by the action
        fields: Field store snapshot after the merge (success only)
        error: The error that failed the task
    """
    ref: str
    state: TaskState = TaskState.PENDING
    failed_in: Optional[TaskState] = None
    resource: Optional[Resource] = None
    result: dict[str, Any] = field(default_factory=dict)
    fields: dict[str, Any] = field(default_factory=dict)
    error: Optional[ProvisionerError] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.state == TaskState.MERGED

    def to_dict(self) -> dict[str, Any]:
        return {
            "ref": self.ref,
            "state": self.state.value,
            **({"failed_in": self.failed_in.value} if self.failed_in else {}),
            **({"error": {"type": type(self.error).__name__, "message": str(self.error)}}
               if self.error else {}),
            **({"errors": [list(e) for e in self.resource.errors]}
               if self.resource is not None and self.resource.errors else {}),
            "result": self.result,
        }


class TaskRunner:
    """
    Runs single tasks through the execution contract.

    Usage:
        runner = TaskRunner(registry)
        store = FieldStore({"host": "db1"})
        outcome = runner.run(Task("connect_ssh", {"host": "${host}"}), store)
    """

    def __init__(self, registry: Optional[Registry] = None):
        self._registry = registry or get_default_registry()

    @property
    def registry(self) -> Registry:
        return self._registry

    def run(self, task: Task, store: FieldStore) -> TaskOutcome:
        """
        Run a task against a field store.

        Returns:
            TaskOutcome in the MERGED state

        Raises:
            ProvisionerError: Whatever failed the task; the store is unchanged
        """
        outcome = self.execute(task, store)
        if outcome.error is not None:
            raise outcome.error
        return outcome

    def execute(self, task: Task, store: FieldStore) -> TaskOutcome:
        """
        Run a task and capture failure on the outcome instead of raising.

        Only ProvisionerError is captured; anything else is a bug in the
        core and propagates.
        """
        outcome = TaskOutcome(ref=task.ref, started_at=_utcnow())
        try:
            self._execute(task, store, outcome)
        except ProvisionerError as e:
            outcome.failed_in = outcome.state
            outcome.state = TaskState.FAILED
            outcome.error = e
            logger.warning(
                "Task %s failed in state %s: %s", task.ref, outcome.failed_in.value, e,
                extra={"event": "task.failed", "metadata": {"ref": task.ref}},
            )
        outcome.completed_at = _utcnow()
        return outcome

    def _execute(self, task: Task, store: FieldStore, outcome: TaskOutcome) -> None:
        # Tasks built outside the compiler still must not carry non-wire params
        for name, value in task.params.items():
            try:
                check_wire_value(name, value)
            except FieldTypeError as e:
                raise DefinitionError(f"Task '{task.ref}': {e}") from e

        snapshot = store.snapshot()

        # BUILT
        action, entry = self._registry.resolve(task.ref)
        resource = entry.resource(deep_merge(snapshot, task.params))
        outcome.resource = resource
        outcome.state = TaskState.BUILT
        logger.debug(
            "Built %s for %s (action=%s)", type(resource).__name__, task.ref, action,
            extra={"event": "task.built", "metadata": {"ref": task.ref, "params": task.params}},
        )

        # RESOLVED
        resolved_params = resolve(task.params, snapshot)
        resource.attributes = deep_merge(snapshot, resolved_params)
        outcome.state = TaskState.RESOLVED
        logger.debug(
            "Resolved params for %s", task.ref,
            extra={"event": "task.resolved", "metadata": {"ref": task.ref, "params": resolved_params}},
        )

        # VALIDATED
        if not resource.validate():
            raise ValidationError(task.ref, resource.error_pairs(), resource)
        outcome.state = TaskState.VALIDATED

        # EXECUTED
        resource.errors.clear()
        executor = entry.executor(resource)
        try:
            result = executor.perform(action)
            check_wire_value("result", result)
        except Exception as e:
            trace_id = _new_trace_id()
            if isinstance(e, UnknownActionError):
                resource.add_error("action", "is not valid")
            resource.add_error("exception", str(e), trace_id)
            logger.error(
                "Action %s on %s failed: %s", action, task.ref, e,
                exc_info=True,
                extra={"event": "task.action_failed", "trace_id": trace_id,
                       "metadata": {"ref": task.ref, "action": action}},
            )
            raise ActionExecutionError(task.ref, action, e, trace_id, resource) from e
        outcome.result = result
        outcome.state = TaskState.EXECUTED

        # MERGED
        resource.update(result)
        store.merge(resource.attributes)
        outcome.fields = store.snapshot()
        outcome.state = TaskState.MERGED
        logger.debug(
            "Merged %d attributes from %s", len(resource.attributes), task.ref,
            extra={"event": "task.merged", "metadata": {"ref": task.ref, "result": result}},
        )


def run_task(
    ref: str,
    params: Mapping[str, Any],
    fields: Mapping[str, Any],
    registry: Optional[Registry] = None,
) -> dict[str, Any]:
    """
    Run one task against a field store snapshot.

    This is the entry point a workflow runtime calls once per task, in
    definition order, passing the params exactly as compiled.

    Args:
        ref: Task ref (e.g. "create_server")
        params: Raw params, placeholders unresolved
        fields: Current field store snapshot
        registry: Registry to dispatch through (defaults to the built-ins)

    Returns:
        The updated field store snapshot

    Raises:
        DefinitionError: If the ref or params are malformed; nothing runs
        FieldTypeError: If the snapshot holds a value outside the wire types
        ProvisionerError: If the task fails at any state
    """
    task = compile_task(0, (ref, params))
    store = FieldStore(fields)
    outcome = TaskRunner(registry).run(task, store)
    return outcome.fields


class ExecutionResult:
    """Result of running a job through the sequential driver."""

    def __init__(
        self,
        job: Job,
        success: bool,
        fields: dict[str, Any],
        outcomes: list[TaskOutcome],
        error: Optional[ProvisionerError] = None,
    ):
        self.job = job
        self.success = success
        self.fields = fields
        self.outcomes = outcomes
        self.error = error

    @property
    def failed_task(self) -> Optional[TaskOutcome]:
        for outcome in self.outcomes:
            if not outcome.success:
                return outcome
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "job": self.job.name,
            "definition": self.job.definition_name,
            "success": self.success,
            "fields": self.fields,
            "tasks": [o.to_dict() for o in self.outcomes],
        }


class JobExecutor:
    """
    Sequential driver for a whole job.

    Runs tasks strictly in definition order against one field store and
    stops at the first failure. Each call to execute() owns its own field
    store, so one JobExecutor may serve concurrent runs.

    Usage:
        executor = JobExecutor(registry)
        result = executor.execute(job, definition)
        if result.success:
            print(result.fields)
    """

    def __init__(self, registry: Optional[Registry] = None, library: Any = None):
        """
        Args:
            registry: Registry to dispatch through (defaults to the built-ins)
            library: Optional DefinitionLibrary used when execute() is not
                     given a definition
        """
        self._runner = TaskRunner(registry)
        self._library = library

    def execute(self, job: Job, definition: Optional[Definition] = None) -> ExecutionResult:
        """
        Run every task of the job's definition.

        Raises:
            DefinitionError: If no definition can be found for the job or it
                             does not match job.definition_name
        """
        if definition is None:
            if self._library is None:
                raise DefinitionError(
                    f"Job '{job.name}': no definition given and no library configured"
                )
            definition = self._library.load(job.definition_name)
        elif definition.name != job.definition_name:
            raise DefinitionError(
                f"Job '{job.name}' expects definition '{job.definition_name}', "
                f"got '{definition.name}'"
            )

        store = FieldStore(job.initial_fields())
        outcomes: list[TaskOutcome] = []
        logger.info(
            "Running job %s (%s, %d tasks)", job.name, definition.name, len(definition),
            extra={"event": "job.started", "metadata": {"job": job.name}},
        )

        for index, task in enumerate(definition.tasks):
            outcome = self._runner.execute(task, store)
            outcomes.append(outcome)
            if not outcome.success:
                logger.error(
                    "Job %s halted at task %d (%s): %s", job.name, index, task.ref, outcome.error,
                    extra={"event": "job.failed", "metadata": {"job": job.name, "ref": task.ref}},
                )
                return ExecutionResult(job, False, store.snapshot(), outcomes, outcome.error)

        logger.info(
            "Job %s completed", job.name,
            extra={"event": "job.completed", "metadata": {"job": job.name}},
        )
        return ExecutionResult(job, True, store.snapshot(), outcomes)
