from __future__ import annotations

import getpass
import os
from dataclasses import dataclass
from pathlib import Path

from .config import BootstrapConfig
from .lib.command import CommandRunner
from .lib.installers import ExternalInstaller
from .lib.system_state import HostSystemState, SystemState


@dataclass
class BootstrapContext:
    cfg: BootstrapConfig
    state: SystemState
    runner: CommandRunner
    installer: ExternalInstaller
    home: Path
    user: str
    dry_run: bool = False

    def home_path(self, rel: str) -> str:
        if rel.startswith("~/"):
            rel = rel[2:]
        return str(self.home / rel)

    @property
    def nvm_dir(self) -> str:
        return self.home_path(".nvm")


def build_context(cfg: BootstrapConfig, *, dry_run: bool = False) -> BootstrapContext:
    runner = CommandRunner(dry_run=dry_run)
    return BootstrapContext(
        cfg=cfg,
        state=HostSystemState(),
        runner=runner,
        installer=ExternalInstaller(runner),
        home=Path(os.path.expanduser("~")),
        user=os.environ.get("USER") or getpass.getuser(),
        dry_run=dry_run,
    )
