from __future__ import annotations

from .base import CommandPackageStep, RepositoryStep


def vscode_steps() -> list:
    """VS Code from Microsoft's apt repository (no snap)."""

    return [
        RepositoryStep("vscode_repo", "vscode", unless_command="code"),
        CommandPackageStep(
            "vscode",
            "code",
            ["code"],
            requires=("vscode_repo",),
            description="Installing VS Code (Microsoft APT repo)",
        ),
    ]
