from __future__ import annotations

import logging
from typing import Sequence, Tuple

from ..context import BootstrapContext
from ..lib.apt_repo import RepositorySource, register_repository, repository_satisfied
from ..lib.pkg import apt_install, missing_packages
from ..lib.profile import ShellProfile, ensure_block, profile_satisfied
from ..lib.services import enable_now, service_running

logger = logging.getLogger(__name__)


class BaseStep:
    step_id: str = ""
    description: str = ""
    fatal: bool = True
    requires: Tuple[str, ...] = ()

    def probe(self, ctx: BootstrapContext) -> bool:
        raise NotImplementedError

    def apply(self, ctx: BootstrapContext) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.step_id}>"


class PackagesStep(BaseStep):
    """Install apt packages that are not already installed."""

    def __init__(
        self,
        step_id: str,
        packages: Sequence[str],
        *,
        requires: Sequence[str] = ("base_packages",),
        fatal: bool = True,
        description: str | None = None,
    ) -> None:
        self.step_id = step_id
        self.packages = list(packages)
        self.requires = tuple(requires)
        self.fatal = fatal
        self.description = description or f"Installing {' '.join(self.packages)}"

    def probe(self, ctx: BootstrapContext) -> bool:
        return not missing_packages(ctx.state, self.packages)

    def apply(self, ctx: BootstrapContext) -> None:
        apt_install(ctx.runner, missing_packages(ctx.state, self.packages))


class ServiceStep(BaseStep):
    """systemctl enable --now, skipped when already enabled and running."""

    def __init__(self, step_id: str, service: str, *, requires: Sequence[str], fatal: bool = True) -> None:
        self.step_id = step_id
        self.service = service
        self.requires = tuple(requires)
        self.fatal = fatal
        self.description = f"Enabling {service}"

    def probe(self, ctx: BootstrapContext) -> bool:
        return service_running(ctx.state, self.service)

    def apply(self, ctx: BootstrapContext) -> None:
        enable_now(ctx.runner, self.service)


class ProfileBlockStep(BaseStep):
    """Append one sentinel-marked block to each of several shell startup files.

    Every file is checked on its own; a block present in ~/.bashrc says
    nothing about ~/.zshrc.
    """

    def __init__(
        self,
        step_id: str,
        *,
        sentinel: str,
        block: str,
        profiles: Sequence[str] = ("~/.bashrc", "~/.zshrc"),
        requires: Sequence[str] = (),
        description: str | None = None,
    ) -> None:
        self.step_id = step_id
        self.sentinel = sentinel
        self.block = block
        self.profiles = tuple(profiles)
        self.requires = tuple(requires)
        self.description = description or f"Updating shell profiles ({step_id})"

    def targets(self, ctx: BootstrapContext) -> list[ShellProfile]:
        return [ShellProfile(path=ctx.home_path(p), sentinel=self.sentinel, block=self.block) for p in self.profiles]

    def probe(self, ctx: BootstrapContext) -> bool:
        return all(profile_satisfied(ctx.state, t) for t in self.targets(ctx))

    def apply(self, ctx: BootstrapContext) -> None:
        for t in self.targets(ctx):
            ensure_block(t, dry_run=ctx.dry_run)


class RepositoryStep(BaseStep):
    """Register a third-party apt source.

    With unless_command set, the step is also satisfied once that command is
    installed; vendor packages may rewrite their own source file afterwards.
    """

    def __init__(
        self,
        step_id: str,
        repo_name: str,
        *,
        requires: Sequence[str] = ("base_packages",),
        unless_command: str | None = None,
    ) -> None:
        self.step_id = step_id
        self.repo_name = repo_name
        self.unless_command = unless_command
        self.requires = tuple(requires)
        self.description = f"Adding {repo_name} apt repository"

    def source(self, ctx: BootstrapContext) -> RepositorySource:
        return RepositorySource.from_config(ctx.cfg.repository(self.repo_name))

    def probe(self, ctx: BootstrapContext) -> bool:
        if self.unless_command and ctx.state.command_exists(self.unless_command):
            return True
        return repository_satisfied(ctx.state, self.source(ctx))

    def apply(self, ctx: BootstrapContext) -> None:
        register_repository(ctx.runner, ctx.state, self.source(ctx))


class CommandPackageStep(PackagesStep):
    """Install packages that provide a command; satisfied when the command resolves."""

    def __init__(self, step_id: str, command: str, packages: Sequence[str], **kw) -> None:
        super().__init__(step_id, packages, **kw)
        self.command = command

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.command_exists(self.command)

    def apply(self, ctx: BootstrapContext) -> None:
        apt_install(ctx.runner, self.packages)
        if not ctx.dry_run and not ctx.state.command_exists(self.command):
            raise RuntimeError(f"`{self.command}` command missing after install")
