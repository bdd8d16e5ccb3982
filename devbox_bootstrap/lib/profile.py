from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShellProfile:
    """A configuration block to append to one shell startup file.

    The sentinel is a substring of the block that marks it as already present.
    """

    path: str
    sentinel: str
    block: str

    def __post_init__(self) -> None:
        if not self.sentinel:
            raise ValueError("ShellProfile sentinel must be non-empty")
        if self.sentinel not in self.block:
            raise ValueError(f"Sentinel {self.sentinel!r} does not occur in its own block")

    @property
    def resolved(self) -> Path:
        return Path(self.path).expanduser()


def profile_satisfied(state, profile: ShellProfile) -> bool:
    return state.file_contains(str(profile.resolved), profile.sentinel)


def ensure_block(profile: ShellProfile, *, dry_run: bool = False) -> bool:
    """Append profile.block unless its sentinel is already in the file.

    The file is created if absent. Returns True when the file was changed.
    """

    p = profile.resolved
    current = p.read_text(encoding="utf-8", errors="replace") if p.exists() else None

    if current is not None and profile.sentinel in current:
        logger.debug("%s already contains %r", p, profile.sentinel)
        return False

    if dry_run:
        logger.info("Would append block %r to %s", profile.sentinel, p)
        return True

    p.parent.mkdir(parents=True, exist_ok=True)
    block = profile.block if profile.block.endswith("\n") else profile.block + "\n"
    prefix = ""
    if current and not current.endswith("\n"):
        prefix = "\n"
    with p.open("a", encoding="utf-8") as f:
        f.write(prefix + "\n" + block)
    logger.info("Appended %r block to %s", profile.sentinel, p)
    return True


def write_file(path: str, content: str, *, dry_run: bool = False) -> None:
    p = Path(path).expanduser()
    if dry_run:
        logger.info("Would write %s", p)
        return
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
