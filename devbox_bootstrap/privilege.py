from __future__ import annotations

import logging
import os
from typing import Optional

from .errors import PrivilegeError
from .lib.command import CommandError, CommandRunner

logger = logging.getLogger(__name__)


def ensure_not_root(euid: Optional[int] = None) -> None:
    """Refuse to run as root: every per-user artifact would land in /root."""

    uid = os.geteuid() if euid is None else euid
    if uid == 0:
        raise PrivilegeError("Run as your normal user, not root")


def acquire_sudo(runner: CommandRunner) -> None:
    """Prompt for the sudo password once and cache it for the rest of the run."""

    try:
        runner.run(["sudo", "-v"], interactive=True)
    except CommandError as e:
        raise PrivilegeError("Could not obtain sudo credentials") from e
    except FileNotFoundError as e:
        raise PrivilegeError("sudo is not installed") from e
