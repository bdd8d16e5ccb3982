from __future__ import annotations

import logging
import platform
import shlex
from pathlib import Path
from typing import Dict, Optional

from ..errors import DetectionError

logger = logging.getLogger(__name__)

OS_RELEASE_PATHS = ("/etc/os-release", "/usr/lib/os-release")


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "x86_64": "amd64",
        "amd64": "amd64",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "armhf",
        "armv6l": "armhf",
    }.get(m, m)


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release(5) KEY=value lines; values may be shell-quoted."""

    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        out[key.strip()] = parts[0] if parts else ""
    return out


def read_os_release(paths=OS_RELEASE_PATHS) -> Dict[str, str]:
    for candidate in paths:
        p = Path(candidate)
        if p.exists():
            return parse_os_release(p.read_text(encoding="utf-8", errors="ignore"))
    return {}


def ubuntu_codename(os_release: Optional[Dict[str, str]] = None) -> str:
    """Codename of the Ubuntu release this host is based on.

    Mint and other derivatives carry UBUNTU_CODENAME; plain Ubuntu/Debian only
    VERSION_CODENAME. Raises DetectionError when neither is set, since a
    guessed value silently produces a broken apt source.
    """

    info = read_os_release() if os_release is None else os_release
    codename = (info.get("UBUNTU_CODENAME") or info.get("VERSION_CODENAME") or "").strip()
    if not codename:
        raise DetectionError("Could not detect Ubuntu base codename from /etc/os-release")
    logger.debug("Ubuntu base codename detected: %s", codename)
    return codename


def dpkg_arch() -> str:
    return normalize_arch(platform.machine())
