from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol, Sequence, Tuple

from .errors import DetectionError, PrivilegeError, StepFailure, StepOrderError

if TYPE_CHECKING:
    from .context import BootstrapContext

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
APPLIED = "applied"
FAILED = "failed"

# Errors that abort the run even when raised by a best-effort step.
ALWAYS_FATAL = (DetectionError, PrivilegeError)


class Step(Protocol):
    """A single idempotent step.

    probe() must not change anything; apply() raises on failure.
    """

    step_id: str
    description: str
    fatal: bool
    requires: Tuple[str, ...]

    def probe(self, ctx: "BootstrapContext") -> bool:
        ...

    def apply(self, ctx: "BootstrapContext") -> None:
        ...


@dataclass(frozen=True)
class StepOutcome:
    step_id: str
    status: str
    error: Optional[str] = None


@dataclass
class RunResult:
    outcomes: List[StepOutcome] = field(default_factory=list)
    aborted_at: Optional[str] = None

    def _with(self, status: str) -> List[StepOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def applied(self) -> List[StepOutcome]:
        return self._with(APPLIED)

    @property
    def skipped(self) -> List[StepOutcome]:
        return self._with(SKIPPED)

    @property
    def failed(self) -> List[StepOutcome]:
        return self._with(FAILED)

    @property
    def ok(self) -> bool:
        return self.aborted_at is None

    def status_of(self, step_id: str) -> Optional[str]:
        for o in self.outcomes:
            if o.step_id == step_id:
                return o.status
        return None


def validate_steps(steps: Sequence[Step]) -> None:
    """Reject duplicate ids and prerequisites that are unknown or declared later."""

    seen: set[str] = set()
    all_ids = [s.step_id for s in steps]
    for step in steps:
        if step.step_id in seen:
            raise StepOrderError(f"Duplicate step id: {step.step_id}")
        for req in step.requires:
            if req == step.step_id:
                raise StepOrderError(f"Step {step.step_id} requires itself")
            if req not in all_ids:
                raise StepOrderError(f"Step {step.step_id} requires unknown step {req}")
            if req not in seen:
                raise StepOrderError(f"Step {step.step_id} requires {req}, which is declared after it")
        seen.add(step.step_id)


def with_prerequisites(steps: Sequence[Step], wanted: Iterable[str]) -> List[Step]:
    """Subset of steps needed for `wanted`, in declared order."""

    by_id = {s.step_id: s for s in steps}
    keep: set[str] = set()
    todo = list(wanted)
    while todo:
        sid = todo.pop()
        if sid in keep:
            continue
        if sid not in by_id:
            raise StepOrderError(f"Unknown step: {sid}")
        keep.add(sid)
        todo.extend(by_id[sid].requires)
    return [s for s in steps if s.step_id in keep]


def drop_steps(steps: Sequence[Step], unwanted: Iterable[str]) -> List[Step]:
    """Remove steps by id, plus anything that (transitively) requires them."""

    dropped = set(unwanted)
    out: List[Step] = []
    for step in steps:
        if step.step_id in dropped:
            continue
        blocked = [r for r in step.requires if r in dropped]
        if blocked:
            logger.warning("Skipping step %s (requires disabled %s)", step.step_id, ",".join(blocked))
            dropped.add(step.step_id)
            continue
        out.append(step)
    return out


def run_pipeline(
    *,
    ctx: "BootstrapContext",
    steps: Sequence[Step],
    stop_after: Optional[str] = None,
) -> RunResult:
    """Run steps in order: probe, then apply only when the probe is unsatisfied.

    A fatal step's failure raises StepFailure and nothing after it runs. A
    non-fatal failure is recorded and the next step is still attempted, even
    when it requires the step that failed.
    There is no rollback; re-running is the recovery path.
    """

    validate_steps(steps)
    result = RunResult()

    for step in steps:
        if step.probe(ctx):
            logger.debug("Skipping step %s (already satisfied)", step.step_id)
            result.outcomes.append(StepOutcome(step.step_id, SKIPPED))
        else:
            logger.info("%s", step.description)
            try:
                step.apply(ctx)
            except ALWAYS_FATAL as e:
                e.step_id = step.step_id
                result.outcomes.append(StepOutcome(step.step_id, FAILED, str(e)))
                result.aborted_at = step.step_id
                raise
            except Exception as e:
                if step.fatal:
                    result.outcomes.append(StepOutcome(step.step_id, FAILED, str(e)))
                    result.aborted_at = step.step_id
                    raise StepFailure(step.step_id, e, result=result) from e
                logger.warning("Optional step %s failed: %s", step.step_id, e)
                result.outcomes.append(StepOutcome(step.step_id, FAILED, str(e)))
            else:
                result.outcomes.append(StepOutcome(step.step_id, APPLIED))

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    return result
