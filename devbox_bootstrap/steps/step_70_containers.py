from __future__ import annotations

from ..context import BootstrapContext
from .base import BaseStep, CommandPackageStep, PackagesStep, RepositoryStep, ServiceStep


class DockerGroupStep(BaseStep):
    """Let the user talk to the docker daemon without sudo (after re-login)."""

    step_id = "docker_group"
    description = "Adding user to the docker group"
    fatal = False
    requires = ("docker",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.user_in_group(ctx.user, "docker")

    def apply(self, ctx: BootstrapContext) -> None:
        ctx.runner.run(["usermod", "-aG", "docker", ctx.user], sudo=True)


def container_steps() -> list:
    return [
        PackagesStep("docker", ["docker.io", "docker-compose-plugin"], description="Installing Docker"),
        ServiceStep("docker_service", "docker", requires=("docker",)),
        DockerGroupStep(),
    ]


def github_cli_steps() -> list:
    return [
        RepositoryStep("gh_repo", "github_cli", unless_command="gh"),
        CommandPackageStep("gh", "gh", ["gh"], requires=("gh_repo",), description="Installing GitHub CLI"),
    ]
