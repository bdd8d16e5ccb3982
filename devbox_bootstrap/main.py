from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import load_config
from .context import BootstrapContext, build_context
from .errors import ConfigError, DetectionError, PrivilegeError, StepFailure, StepOrderError
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import RunResult, run_pipeline
from .privilege import acquire_sudo, ensure_not_root
from .report import Reporter
from .steps import build_steps

logger = logging.getLogger(__name__)


def run(
    *,
    config_path: Optional[str] = None,
    log_path: str = DEFAULT_LOG_PATH,
    dry_run: bool = False,
    only: Optional[List[str]] = None,
    stop_after: Optional[str] = None,
    verbose: bool = False,
    ctx: Optional[BootstrapContext] = None,
    euid: Optional[int] = None,
    reporter: Optional[Reporter] = None,
) -> RunResult:
    """Check privileges, then run every step that is not yet satisfied."""

    reporter = reporter or Reporter()
    actual_log_path = configure_logging(log_path=log_path, level=logging.DEBUG if verbose else logging.INFO)

    ensure_not_root(euid)

    cfg = ctx.cfg if ctx is not None else load_config(config_path)
    steps = build_steps(cfg, only=only)
    if ctx is None:
        ctx = build_context(cfg, dry_run=dry_run)

    if dry_run:
        reporter.warn("Dry run: commands are logged, not executed")
    acquire_sudo(ctx.runner)

    result = run_pipeline(ctx=ctx, steps=steps, stop_after=stop_after)
    reporter.summary(result, log_path=actual_log_path)
    return result


def list_steps(config_path: Optional[str]) -> None:
    for step in build_steps(load_config(config_path)):
        kind = "fatal" if step.fatal else "optional"
        req = ", ".join(step.requires) or "-"
        print(f"{step.step_id:<28} {kind:<9} requires: {req}")


def _with_step(e: Exception) -> str:
    step_id = getattr(e, "step_id", None)
    return f"Step {step_id} failed: {e}" if step_id else str(e)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="devbox-bootstrap",
        description="Provision a Debian-family workstation into a development environment. Safe to re-run.",
    )
    p.add_argument("--config", default=None, help="YAML overrides (default: ~/.config/devbox-bootstrap/config.yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to bootstrap log")
    p.add_argument("--dry-run", action="store_true", help="Log commands without executing them")
    p.add_argument("--list-steps", action="store_true", help="Print the step order and exit")
    p.add_argument("--only", action="append", default=None, metavar="STEP",
                   help="Run only STEP and its prerequisites (repeatable)")
    p.add_argument("--stop-after", default=None, metavar="STEP", help="Stop after step_id")
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug output on the console")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    reporter = Reporter()

    try:
        if args.list_steps:
            list_steps(args.config)
            return 0
        run(
            config_path=args.config,
            log_path=args.log,
            dry_run=bool(args.dry_run),
            only=args.only,
            stop_after=args.stop_after,
            verbose=bool(args.verbose),
            reporter=reporter,
        )
        return 0
    except PrivilegeError as e:
        reporter.die("%s", _with_step(e), code=2)
    except (ConfigError, StepOrderError) as e:
        reporter.die("Configuration error: %s", e, code=2)
    except DetectionError as e:
        reporter.die("%s", _with_step(e))
    except StepFailure as e:
        logger.debug("Step failure detail", exc_info=e.cause)
        reporter.die("Step %s failed; fix the cause and re-run (completed steps are skipped): %s",
                     e.step_id, e.cause)
    except KeyboardInterrupt:
        reporter.warn("Interrupted; re-run to finish the remaining steps")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
