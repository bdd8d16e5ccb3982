from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    def __init__(self, result: CmdResult) -> None:
        self.result = result
        detail = result.stderr.strip()
        msg = f"Command failed ({result.returncode}): {fmt_argv(result.argv)}"
        if detail:
            msg += f"\n{detail}"
        super().__init__(msg)


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    interactive: bool = False,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr unless interactive (prompts must reach the tty).
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    pipe = None if interactive else subprocess.PIPE
    p = subprocess.run(
        argv_list,
        input=input_text,
        text=True,
        stdout=pipe,
        stderr=pipe,
        cwd=cwd,
        env=dict(os.environ, **(env or {})),
    )

    stdout = p.stdout or ""
    stderr = p.stderr or ""
    if stdout:
        logger.debug("STDOUT %s", stdout.strip())
    if stderr:
        logger.debug("STDERR %s", stderr.strip())

    result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=stdout, stderr=stderr)
    if check and p.returncode != 0:
        raise CommandError(result)
    return result


class CommandRunner:
    """run_cmd bound to a dry-run flag, with a sudo prefix helper.

    Tests swap this for a recorder; nothing below the steps calls
    subprocess directly except the read-only host probes.
    """

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run

    def run(
        self,
        argv: Sequence[str],
        *,
        sudo: bool = False,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
        interactive: bool = False,
    ) -> CmdResult:
        full = ["sudo", *argv] if sudo else list(argv)
        return run_cmd(
            full,
            check=check,
            env=env,
            input_text=input_text,
            interactive=interactive,
            dry_run=self.dry_run,
        )

    def shell(self, script: str, *, shell: str = "bash", check: bool = True, interactive: bool = False,
              env: Mapping[str, str] | None = None) -> CmdResult:
        return self.run([shell, "-c", script], check=check, interactive=interactive, env=env)
