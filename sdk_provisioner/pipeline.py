from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from .errors import ConsistencyError, IdentityError, StateStoreError, StepFailed
from .lib.privilege import ExecutionContext, Identity
from .state_store import StateStore

logger = logging.getLogger(__name__)


class StepStatus(str, enum.Enum):
    PENDING = "pending"
    SKIPPED = "skipped"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class RunStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class Step(Protocol):
    """A single checkpointed step.

    ``run`` returns the auxiliary values it discovered (keys listed in
    ``produces``), or None.
    """

    step_id: str
    title: str
    identity: str
    produces: Tuple[str, ...]

    def run(self, ctx: ExecutionContext) -> Optional[Mapping[str, str]]:
        ...


class Privileges(Protocol):
    def identity_for(self, kind: str) -> Identity:
        ...

    def run_as(
        self,
        identity: Identity,
        working_dir: Optional[str],
        action: Callable[[ExecutionContext], Optional[Mapping[str, str]]],
        *,
        aux: Optional[Mapping[str, str]] = None,
    ) -> Optional[Mapping[str, str]]:
        ...


Reporter = Callable[[Step, StepStatus], None]


@dataclass
class PipelineResult:
    status: RunStatus = RunStatus.RUNNING
    statuses: Dict[str, StepStatus] = field(default_factory=dict)
    ran_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    aux: Dict[str, str] = field(default_factory=dict)
    failed_step: Optional[str] = None


def validate_registry(steps: Sequence[Step]) -> None:
    seen = set()
    for step in steps:
        if step.step_id in seen:
            raise ValueError(f"Duplicate step id in registry: {step.step_id}")
        seen.add(step.step_id)


def _load_aux(store: StateStore, step: Step) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for key in step.produces:
        value = store.get_aux(key)
        if not value:
            raise ConsistencyError(
                f"Step {step.step_id} is marked complete but {key} is missing",
                state_dir=str(store.root),
            )
        values[key] = value
    return values


def run_pipeline(
    *,
    store: StateStore,
    steps: Sequence[Step],
    privileges: Privileges,
    reporter: Optional[Reporter] = None,
) -> PipelineResult:
    """Run steps in order with resume and fail-fast semantics.

    Completed steps are skipped without invoking their action. The first
    failure aborts the run (raised as StepFailed); nothing after it runs and
    nothing before it is undone.
    """

    validate_registry(steps)
    result = PipelineResult(statuses={s.step_id: StepStatus.PENDING for s in steps})

    def transition(step: Step, status: StepStatus) -> None:
        result.statuses[step.step_id] = status
        if reporter is not None:
            reporter(step, status)

    def fail(step: Step) -> None:
        result.failed_step = step.step_id
        transition(step, StepStatus.FAILED)

    try:
        for step in steps:
            if store.is_complete(step.step_id):
                try:
                    result.aux.update(_load_aux(store, step))
                except (ConsistencyError, StateStoreError):
                    fail(step)
                    raise
                logger.info("Skipping step %s (already completed)", step.step_id)
                transition(step, StepStatus.SKIPPED)
                result.skipped_steps.append(step.step_id)
                continue

            logger.info("Running step %s", step.step_id)
            transition(step, StepStatus.RUNNING)
            try:
                identity = privileges.identity_for(step.identity)
                produced = privileges.run_as(identity, None, step.run, aux=dict(result.aux)) or {}
            except IdentityError as e:
                fail(step)
                raise StepFailed(step.step_id, e, kind="identity") from e
            except Exception as e:
                fail(step)
                raise StepFailed(step.step_id, e) from e

            missing = [k for k in step.produces if not produced.get(k)]
            if missing:
                fail(step)
                raise ConsistencyError(f"Step {step.step_id} did not produce {', '.join(missing)}")

            # Values first: a marker must never exist without its data.
            try:
                for key in step.produces:
                    store.set_aux(key, produced[key])
                    result.aux[key] = produced[key]
                store.mark_complete(step.step_id)
            except StateStoreError:
                fail(step)
                raise

            transition(step, StepStatus.DONE)
            result.ran_steps.append(step.step_id)
    except BaseException:
        result.status = RunStatus.ABORTED
        logger.error("Run aborted at %s", result.failed_step or "checkpoint handling")
        raise

    result.status = RunStatus.COMPLETED
    return result
