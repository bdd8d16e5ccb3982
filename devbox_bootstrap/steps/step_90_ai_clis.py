from __future__ import annotations

import logging
import shlex

from ..context import BootstrapContext
from ..lib.system_state import nvm_script
from .base import BaseStep

logger = logging.getLogger(__name__)


class NpmGlobalStep(BaseStep):
    """npm install -g into nvm's default Node."""

    requires = ("node_lts",)

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        self.description = f"Installing {step_id.replace('_', ' ')}"

    def probe(self, ctx: BootstrapContext) -> bool:
        command = ctx.cfg.npm_global(self.step_id)["command"]
        return ctx.state.nvm_command_exists(ctx.nvm_dir, command)

    def apply(self, ctx: BootstrapContext) -> None:
        package = ctx.cfg.npm_global(self.step_id)["package"]
        body = f"nvm use --silent default && npm install -g {shlex.quote(package)}"
        ctx.runner.shell(nvm_script(ctx.nvm_dir, body), interactive=True)


class ClaudeCliStep(BaseStep):
    step_id = "claude_cli"
    description = "Installing Claude Code CLI"
    requires = ("zsh",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.command_exists("claude") or ctx.state.path_exists(ctx.home_path(".local/bin/claude"))

    def apply(self, ctx: BootstrapContext) -> None:
        inst = ctx.cfg.installer("claude")
        ctx.installer.run("Claude Code CLI", inst.url, shell=inst.shell, env=inst.env)


def ai_cli_steps() -> list:
    return [
        NpmGlobalStep("codex_cli"),
        NpmGlobalStep("gemini_cli"),
        ClaudeCliStep(),
    ]
