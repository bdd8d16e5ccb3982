from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath

from ..errors import DetectionError
from .command import CommandRunner
from .osdetect import ubuntu_codename
from .pkg import apt_update

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositorySource:
    """A third-party apt source: signing key plus a one-line sources.list entry.

    entry_template may use {keyring}, {codename} and {arch}; codename and arch
    are looked up from the host only when the template needs them.
    """

    name: str
    key_url: str
    keyring_path: str
    entry_template: str
    list_path: str
    dearmor: bool = True

    @classmethod
    def from_config(cls, repo) -> "RepositorySource":
        return cls(
            name=repo.name,
            key_url=repo.key_url,
            keyring_path=repo.keyring,
            entry_template=repo.entry,
            list_path=repo.list_path,
            dearmor=repo.dearmor,
        )


def render_entry(source: RepositorySource, state) -> str:
    """Resolve the sources.list line for this host. Raises DetectionError."""

    values = {"keyring": source.keyring_path}
    if "{codename}" in source.entry_template:
        values["codename"] = ubuntu_codename(state.os_release())
    if "{arch}" in source.entry_template:
        values["arch"] = state.architecture()
    return source.entry_template.format(**values)


def repository_satisfied(state, source: RepositorySource) -> bool:
    """True when the keyring exists and the list file holds exactly our entry."""

    try:
        entry = render_entry(source, state)
    except DetectionError:
        return False
    if not state.path_exists(source.keyring_path):
        return False
    current = state.read_text(source.list_path)
    if current is None:
        return False
    lines = [ln.strip() for ln in current.splitlines() if ln.strip() and not ln.strip().startswith("#")]
    return lines == [entry]


def register_repository(runner: CommandRunner, state, source: RepositorySource) -> str:
    """Install the signing key and a fresh sources.list entry, then refresh apt.

    Host detection happens first so that a failure leaves nothing behind. Any
    previous list file is removed before the key is fetched: a stale entry
    with a different signed-by path makes apt refuse to update at all.
    Returns the entry written.
    """

    entry = render_entry(source, state)
    logger.info("Registering %s apt repository", source.name)

    runner.run(["rm", "-f", source.list_path], sudo=True)

    keyring_dir = str(PurePosixPath(source.keyring_path).parent)
    runner.run(["install", "-d", "-m", "0755", keyring_dir], sudo=True)
    if source.dearmor:
        fetch = f'curl -fsSL "{source.key_url}" | sudo gpg --dearmor --yes -o "{source.keyring_path}"'
    else:
        fetch = f'curl -fsSL "{source.key_url}" | sudo tee "{source.keyring_path}" >/dev/null'
    runner.run(["bash", "-o", "pipefail", "-c", fetch])
    runner.run(["chmod", "go+r", source.keyring_path], sudo=True)

    runner.run(["tee", source.list_path], sudo=True, input_text=entry + "\n")
    apt_update(runner)
    return entry
