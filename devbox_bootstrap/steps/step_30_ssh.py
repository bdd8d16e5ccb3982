from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Dict

from ..context import BootstrapContext
from .base import BaseStep, ProfileBlockStep

logger = logging.getLogger(__name__)

AGENT_AUTOSTART_BLOCK = """\
# --- SSH agent auto-start ---
if [ -z "$SSH_AUTH_SOCK" ]; then
  eval "$(ssh-agent -s)" >/dev/null
fi
"""

_AGENT_VAR = re.compile(r"(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;\s]+);")


def parse_agent_env(output: str) -> Dict[str, str]:
    """Extract the variables `ssh-agent -s` prints for the caller to export."""

    return {m.group(1): m.group(2) for m in _AGENT_VAR.finditer(output)}


def _key_path(ctx: BootstrapContext) -> str:
    return ctx.home_path(ctx.cfg.ssh_key_path)


class SshKeyStep(BaseStep):
    """Generate a passphrase-protected key pair; never touches an existing key."""

    step_id = "ssh_key"
    description = "Setting up SSH keys"
    requires = ("base_packages",)

    def probe(self, ctx: BootstrapContext) -> bool:
        key = _key_path(ctx)
        exists = ctx.state.path_exists(key)
        if exists:
            logger.debug("SSH key already exists: %s", key)
        return exists

    def apply(self, ctx: BootstrapContext) -> None:
        key = _key_path(ctx)
        if not ctx.dry_run:
            ssh_dir = Path(key).parent
            ssh_dir.mkdir(parents=True, exist_ok=True)
            ssh_dir.chmod(0o700)

        logger.info("No SSH key found; you will now be prompted to create one (with a passphrase)")
        ctx.runner.run(
            ["ssh-keygen", "-t", ctx.cfg.ssh_key_type, "-a", str(ctx.cfg.ssh_kdf_rounds), "-f", key],
            interactive=True,
        )
        logger.info("SSH key created. Public key: %s.pub", key)


class SshAgentStep(BaseStep):
    """Load the key into an agent for this session (asks for the passphrase).

    Without SSH_AUTH_SOCK the agent lives on a fixed socket, so a re-run finds
    the agent an earlier run started instead of spawning another one.
    """

    step_id = "ssh_agent"
    description = "Adding SSH key to ssh-agent"
    fatal = False
    requires = ("ssh_key",)

    def _socket(self, ctx: BootstrapContext) -> str:
        return os.environ.get("SSH_AUTH_SOCK") or ctx.home_path(ctx.cfg.ssh_agent_socket)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.ssh_agent_has_key(_key_path(ctx) + ".pub", self._socket(ctx))

    def apply(self, ctx: BootstrapContext) -> None:
        env = None
        if not os.environ.get("SSH_AUTH_SOCK"):
            sock = self._socket(ctx)
            if ctx.state.ssh_agent_running(sock):
                logger.info("Reusing ssh-agent at %s", sock)
            else:
                if not ctx.dry_run:
                    # stale socket left by an agent that is gone
                    Path(sock).unlink(missing_ok=True)
                r = ctx.runner.run(["ssh-agent", "-a", sock, "-s"])
                agent_env = parse_agent_env(r.stdout)
                if not ctx.dry_run and "SSH_AUTH_SOCK" not in agent_env:
                    raise RuntimeError("ssh-agent did not report SSH_AUTH_SOCK")
                logger.info("Started ssh-agent (pid %s)", agent_env.get("SSH_AGENT_PID", "?"))
            env = {"SSH_AUTH_SOCK": sock}
        ctx.runner.run(["ssh-add", _key_path(ctx)], env=env, interactive=True)


def ssh_agent_autostart_step() -> ProfileBlockStep:
    return ProfileBlockStep(
        "ssh_agent_autostart",
        sentinel="ssh-agent -s",
        block=AGENT_AUTOSTART_BLOCK,
        description="Persisting ssh-agent usage across shells",
    )
