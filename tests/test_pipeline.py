import pytest

from devbox_bootstrap.errors import DetectionError, StepFailure, StepOrderError
from devbox_bootstrap.pipeline import (
    APPLIED,
    FAILED,
    SKIPPED,
    drop_steps,
    run_pipeline,
    validate_steps,
    with_prerequisites,
)


class FakeStep:
    def __init__(self, step_id, *, satisfied=False, fatal=True, requires=(), error=None, log=None):
        self.step_id = step_id
        self.description = f"running {step_id}"
        self.fatal = fatal
        self.requires = tuple(requires)
        self.satisfied = satisfied
        self.error = error
        self.log = log if log is not None else []
        self.probes = 0

    def probe(self, ctx):
        self.probes += 1
        return self.satisfied

    def apply(self, ctx):
        self.log.append(self.step_id)
        if self.error is not None:
            raise self.error


def test_satisfied_steps_are_skipped_and_others_applied():
    log = []
    steps = [FakeStep("a", satisfied=True, log=log), FakeStep("b", log=log)]
    result = run_pipeline(ctx=None, steps=steps)
    assert log == ["b"]
    assert [(o.step_id, o.status) for o in result.outcomes] == [("a", SKIPPED), ("b", APPLIED)]
    assert result.ok


def test_fatal_failure_halts_everything_after_it():
    log = []
    steps = [
        FakeStep("a", log=log),
        FakeStep("b", error=RuntimeError("boom"), log=log),
        FakeStep("c", log=log),
    ]
    with pytest.raises(StepFailure) as excinfo:
        run_pipeline(ctx=None, steps=steps)
    assert log == ["a", "b"]
    assert excinfo.value.step_id == "b"
    assert "boom" in str(excinfo.value)
    assert excinfo.value.result.aborted_at == "b"
    assert excinfo.value.result.status_of("b") == FAILED
    assert steps[2].probes == 0


def test_non_fatal_failure_continues_with_next_step():
    log = []
    steps = [
        FakeStep("optional", fatal=False, error=RuntimeError("nope"), log=log),
        FakeStep("next", log=log),
    ]
    result = run_pipeline(ctx=None, steps=steps)
    assert log == ["optional", "next"]
    assert result.status_of("optional") == FAILED
    assert result.status_of("next") == APPLIED
    assert [o.step_id for o in result.failed] == ["optional"]
    assert result.ok


def test_dependants_of_failed_optional_step_are_still_attempted():
    log = []
    steps = [
        FakeStep("pkg", fatal=False, error=RuntimeError("no candidate"), log=log),
        FakeStep("svc", fatal=False, requires=("pkg",), log=log),
        FakeStep("other", log=log),
    ]
    result = run_pipeline(ctx=None, steps=steps)
    assert log == ["pkg", "svc", "other"]
    assert result.status_of("svc") == APPLIED
    assert result.ok


def test_fatal_dependant_of_failed_optional_step_aborts_when_it_fails():
    log = []
    steps = [
        FakeStep("rules", fatal=False, error=RuntimeError("allow failed"), log=log),
        FakeStep("enable", requires=("rules",), error=RuntimeError("enable failed"), log=log),
        FakeStep("after", log=log),
    ]
    with pytest.raises(StepFailure) as excinfo:
        run_pipeline(ctx=None, steps=steps)
    assert log == ["rules", "enable"]
    assert excinfo.value.step_id == "enable"
    assert excinfo.value.result.ok is False


def test_detection_error_is_fatal_even_for_optional_step():
    log = []
    steps = [
        FakeStep("repo", fatal=False, error=DetectionError("no codename"), log=log),
        FakeStep("after", log=log),
    ]
    with pytest.raises(DetectionError) as excinfo:
        run_pipeline(ctx=None, steps=steps)
    assert log == ["repo"]
    assert excinfo.value.step_id == "repo"


def test_stop_after():
    log = []
    steps = [FakeStep("a", log=log), FakeStep("b", log=log), FakeStep("c", log=log)]
    result = run_pipeline(ctx=None, steps=steps, stop_after="b")
    assert log == ["a", "b"]
    assert result.status_of("c") is None


@pytest.mark.parametrize(
    "steps, message",
    [
        ([FakeStep("a"), FakeStep("a")], "Duplicate"),
        ([FakeStep("a", requires=("missing",))], "unknown"),
        ([FakeStep("b", requires=("a",)), FakeStep("a")], "declared after"),
        ([FakeStep("a", requires=("a",))], "itself"),
    ],
)
def test_validate_steps_rejects_bad_ordering(steps, message):
    with pytest.raises(StepOrderError, match=message):
        validate_steps(steps)


def test_run_pipeline_validates_before_running():
    log = []
    steps = [FakeStep("b", requires=("a",), log=log), FakeStep("a", log=log)]
    with pytest.raises(StepOrderError):
        run_pipeline(ctx=None, steps=steps)
    assert log == []


def test_with_prerequisites_keeps_declared_order():
    steps = [
        FakeStep("base"),
        FakeStep("nvm", requires=("base",)),
        FakeStep("redis", requires=("base",)),
        FakeStep("node", requires=("nvm",)),
        FakeStep("codex", requires=("node",)),
    ]
    picked = with_prerequisites(steps, ["codex"])
    assert [s.step_id for s in picked] == ["base", "nvm", "node", "codex"]
    with pytest.raises(StepOrderError):
        with_prerequisites(steps, ["nope"])


def test_drop_steps_removes_dependants_transitively():
    steps = [
        FakeStep("base"),
        FakeStep("auditd", requires=("base",)),
        FakeStep("auditd_service", requires=("auditd",)),
        FakeStep("redis", requires=("base",)),
    ]
    kept = drop_steps(steps, ["auditd"])
    assert [s.step_id for s in kept] == ["base", "redis"]
