from __future__ import annotations

import logging

from ..context import BootstrapContext
from ..lib.profile import write_file
from .base import BaseStep, CommandPackageStep, ProfileBlockStep

logger = logging.getLogger(__name__)

ZSHRC_MARKER = "oh-my-zsh.sh"

ZSHRC_TEMPLATE = """\
export ZSH="$HOME/.oh-my-zsh"
ZSH_THEME="robbyrussell"
plugins=(git)
source "$ZSH/oh-my-zsh.sh"
"""

# Mint/GNOME Terminal can start bash regardless of the login shell.
AUTO_ZSH_BLOCK = """\
# --- Auto-switch to zsh (Linux Mint / GNOME Terminal) ---
if [ -t 1 ] && [ -z "${ZSH_VERSION:-}" ] && command -v zsh >/dev/null 2>&1; then
  if [ -z "${__AUTO_ZSH_DONE:-}" ]; then
    export __AUTO_ZSH_DONE=1
    exec zsh -l
  fi
fi
"""


def zsh_step() -> CommandPackageStep:
    return CommandPackageStep("zsh", "zsh", ["zsh"], description="Installing zsh")


class OhMyZshStep(BaseStep):
    step_id = "oh_my_zsh"
    description = "Installing Oh My Zsh"
    requires = ("zsh",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.path_exists(ctx.home_path(".oh-my-zsh"))

    def apply(self, ctx: BootstrapContext) -> None:
        inst = ctx.cfg.installer("oh_my_zsh")
        ctx.installer.run("Oh My Zsh", inst.url, shell=inst.shell, env=inst.env)


class ZshrcStep(BaseStep):
    """Write a minimal ~/.zshrc when it does not load oh-my-zsh yet."""

    step_id = "zshrc"
    description = "Creating ~/.zshrc"
    requires = ("oh_my_zsh",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.file_contains(ctx.home_path(".zshrc"), ZSHRC_MARKER)

    def apply(self, ctx: BootstrapContext) -> None:
        write_file(ctx.home_path(".zshrc"), ZSHRC_TEMPLATE, dry_run=ctx.dry_run)


def auto_zsh_switch_step() -> ProfileBlockStep:
    return ProfileBlockStep(
        "auto_zsh_switch",
        sentinel="__AUTO_ZSH_DONE",
        block=AUTO_ZSH_BLOCK,
        profiles=("~/.bashrc",),
        requires=("zsh",),
        description="Configuring bashrc to auto-switch to zsh",
    )


class DefaultShellStep(BaseStep):
    step_id = "default_shell"
    description = "Setting zsh as default shell (requires password)"
    requires = ("zsh",)

    def probe(self, ctx: BootstrapContext) -> bool:
        zsh = ctx.state.which("zsh")
        return zsh is not None and ctx.state.login_shell(ctx.user) == zsh

    def apply(self, ctx: BootstrapContext) -> None:
        zsh = ctx.state.which("zsh") or "/usr/bin/zsh"
        # Takes effect on next login.
        ctx.runner.run(["chsh", "-s", zsh], interactive=True)
