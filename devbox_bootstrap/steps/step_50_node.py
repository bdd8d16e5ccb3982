from __future__ import annotations

import logging
import shlex

from ..context import BootstrapContext
from ..lib.system_state import nvm_script
from .base import BaseStep, ProfileBlockStep

logger = logging.getLogger(__name__)

NVM_PROFILE_BLOCK = """\
# --- NVM setup ---
export NVM_DIR="$HOME/.nvm"
[ -s "$NVM_DIR/nvm.sh" ] && \\. "$NVM_DIR/nvm.sh"
[ -s "$NVM_DIR/bash_completion" ] && \\. "$NVM_DIR/bash_completion"
"""


class NvmStep(BaseStep):
    step_id = "nvm"
    description = "Installing nvm"
    requires = ("base_packages",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.path_exists(ctx.nvm_dir)

    def apply(self, ctx: BootstrapContext) -> None:
        inst = ctx.cfg.installer("nvm")
        ctx.installer.run("nvm", inst.url, shell=inst.shell, env=inst.env)


def nvm_profile_step() -> ProfileBlockStep:
    return ProfileBlockStep(
        "nvm_profile",
        sentinel="NVM_DIR",
        block=NVM_PROFILE_BLOCK,
        requires=("nvm",),
        description="Adding nvm to bashrc and zshrc",
    )


class NodeLtsStep(BaseStep):
    """Install Node through nvm and make it the default; upgrades npm itself."""

    step_id = "node_lts"
    description = "Installing Node LTS"
    requires = ("nvm",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.nvm_ready(ctx.nvm_dir)

    def apply(self, ctx: BootstrapContext) -> None:
        version = ctx.cfg.node_version
        alias = shlex.quote(ctx.cfg.node_default_alias)
        body = f"nvm install {version} && nvm alias default {alias} && npm install -g npm@latest"
        ctx.runner.shell(nvm_script(ctx.nvm_dir, body), interactive=True)
