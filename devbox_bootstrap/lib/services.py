from __future__ import annotations

import logging

from .command import CommandRunner

logger = logging.getLogger(__name__)


def enable_now(runner: CommandRunner, service: str) -> None:
    runner.run(["systemctl", "enable", "--now", service], sudo=True)


def service_running(state, service: str) -> bool:
    return state.service_enabled(service) and state.service_active(service)
