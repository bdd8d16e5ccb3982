from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import BootstrapConfig
from ..errors import ConfigError
from ..pipeline import Step, drop_steps, validate_steps, with_prerequisites
from .step_10_base_packages import BasePackagesStep
from .step_20_shell import DefaultShellStep, OhMyZshStep, ZshrcStep, auto_zsh_switch_step, zsh_step
from .step_30_ssh import SshAgentStep, SshKeyStep, ssh_agent_autostart_step
from .step_40_editor import vscode_steps
from .step_50_node import NodeLtsStep, NvmStep, nvm_profile_step
from .step_60_datastores import datastore_steps
from .step_70_containers import container_steps, github_cli_steps
from .step_80_web import web_steps
from .step_85_security import security_steps
from .step_90_ai_clis import ai_cli_steps


def all_steps(cfg: BootstrapConfig) -> List[Step]:
    """Every step, in run order. Later steps may rely on earlier ones' effects."""

    return [
        BasePackagesStep(cfg.base_packages),
        zsh_step(),
        OhMyZshStep(),
        ZshrcStep(),
        auto_zsh_switch_step(),
        DefaultShellStep(),
        SshKeyStep(),
        SshAgentStep(),
        ssh_agent_autostart_step(),
        *vscode_steps(),
        NvmStep(),
        nvm_profile_step(),
        NodeLtsStep(),
        *datastore_steps(),
        *container_steps(),
        *github_cli_steps(),
        *web_steps(),
        *security_steps(),
        *ai_cli_steps(),
    ]


def build_steps(cfg: BootstrapConfig, *, only: Optional[Sequence[str]] = None) -> List[Step]:
    """Steps for this run: config skips removed, optionally narrowed to `only`.

    Ordering is validated here, before anything touches the host.
    """

    steps = all_steps(cfg)
    validate_steps(steps)
    unknown = sorted(set(cfg.skip_steps) - {s.step_id for s in steps})
    if unknown:
        raise ConfigError(f"skip_steps lists unknown steps: {', '.join(unknown)}")
    steps = drop_steps(steps, cfg.skip_steps)
    if only:
        steps = with_prerequisites(steps, only)
    validate_steps(steps)
    return steps


__all__ = ["all_steps", "build_steps"]
