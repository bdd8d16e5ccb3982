from __future__ import annotations

import logging
from typing import Sequence

from .command import CommandRunner

logger = logging.getLogger(__name__)


def apt_update(runner: CommandRunner) -> None:
    runner.run(["apt-get", "update", "-y"], sudo=True)


def apt_install(runner: CommandRunner, packages: Sequence[str]) -> None:
    if not packages:
        return
    runner.run(["apt-get", "install", "-y", *packages], sudo=True)


def apt_remove(runner: CommandRunner, packages: Sequence[str], *, check: bool = False) -> None:
    """Remove packages; by default a missing package is not an error."""

    if not packages:
        return
    r = runner.run(["apt-get", "remove", "-y", *packages], sudo=True, check=check)
    if not r.ok:
        logger.debug("apt-get remove %s returned %s (ignored)", " ".join(packages), r.returncode)


def missing_packages(state, packages: Sequence[str]) -> list[str]:
    return [p for p in packages if not state.package_installed(p)]
