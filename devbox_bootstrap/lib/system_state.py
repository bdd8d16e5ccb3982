from __future__ import annotations

import grp
import logging
import os
import pwd
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .osdetect import dpkg_arch, read_os_release

logger = logging.getLogger(__name__)


class SystemState(Protocol):
    """Read-only view of the host. Probes ask; they never change anything."""

    def command_exists(self, name: str) -> bool: ...

    def which(self, name: str) -> Optional[str]: ...

    def path_exists(self, path: str) -> bool: ...

    def file_contains(self, path: str, marker: str) -> bool: ...

    def read_text(self, path: str) -> Optional[str]: ...

    def package_installed(self, package: str) -> bool: ...

    def service_enabled(self, service: str) -> bool: ...

    def service_active(self, service: str) -> bool: ...

    def firewall_active(self) -> bool: ...

    def firewall_rules(self) -> List[str]: ...

    def login_shell(self, user: str) -> Optional[str]: ...

    def user_in_group(self, user: str, group: str) -> bool: ...

    def nvm_ready(self, nvm_dir: str) -> bool: ...

    def nvm_command_exists(self, nvm_dir: str, name: str) -> bool: ...

    def ssh_agent_has_key(self, public_key_path: str, socket: Optional[str] = None) -> bool: ...

    def ssh_agent_running(self, socket: str) -> bool: ...

    def os_release(self) -> Dict[str, str]: ...

    def architecture(self) -> str: ...


def _quiet(argv: Sequence[str], env: Optional[dict] = None) -> subprocess.CompletedProcess:
    logger.debug("PROBE %s", " ".join(argv))
    return subprocess.run(
        list(argv),
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        env=env,
    )


def nvm_script(nvm_dir: str, body: str) -> str:
    return f'export NVM_DIR="{nvm_dir}"; . "$NVM_DIR/nvm.sh" && {body}'


class HostSystemState:
    """SystemState backed by the live host. Nothing is cached."""

    def os_release(self) -> Dict[str, str]:
        return read_os_release()

    def architecture(self) -> str:
        if self.command_exists("dpkg"):
            r = _quiet(["dpkg", "--print-architecture"])
            if r.returncode == 0 and r.stdout.strip():
                return r.stdout.strip()
        return dpkg_arch()

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def command_exists(self, name: str) -> bool:
        return self.which(name) is not None

    def path_exists(self, path: str) -> bool:
        return Path(path).expanduser().exists()

    def read_text(self, path: str) -> Optional[str]:
        p = Path(path).expanduser()
        try:
            return p.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None

    def file_contains(self, path: str, marker: str) -> bool:
        text = self.read_text(path)
        return text is not None and marker in text

    def package_installed(self, package: str) -> bool:
        if not self.command_exists("dpkg-query"):
            return False
        r = _quiet(["dpkg-query", "-W", "-f=${Status}", package])
        return r.returncode == 0 and r.stdout.strip().endswith("installed") and "not-installed" not in r.stdout

    def service_enabled(self, service: str) -> bool:
        r = _quiet(["systemctl", "is-enabled", service])
        return r.returncode == 0 and r.stdout.strip() in {"enabled", "static", "alias"}

    def service_active(self, service: str) -> bool:
        return _quiet(["systemctl", "is-active", "--quiet", service]).returncode == 0

    def firewall_active(self) -> bool:
        # sudo credentials are cached by the privilege guard before any probe runs.
        r = _quiet(["sudo", "-n", "ufw", "status"])
        return r.returncode == 0 and "Status: active" in r.stdout

    def firewall_rules(self) -> List[str]:
        r = _quiet(["sudo", "-n", "ufw", "show", "added"])
        if r.returncode != 0:
            return []
        return [ln.strip() for ln in r.stdout.splitlines() if ln.strip().startswith("ufw ")]

    def login_shell(self, user: str) -> Optional[str]:
        try:
            return pwd.getpwnam(user).pw_shell
        except KeyError:
            return None

    def user_in_group(self, user: str, group: str) -> bool:
        try:
            g = grp.getgrnam(group)
        except KeyError:
            return False
        if user in g.gr_mem:
            return True
        try:
            return pwd.getpwnam(user).pw_gid == g.gr_gid
        except KeyError:
            return False

    def nvm_ready(self, nvm_dir: str) -> bool:
        if not self.path_exists(f"{nvm_dir}/nvm.sh"):
            return False
        r = _quiet(["bash", "-c", nvm_script(nvm_dir, "nvm which default >/dev/null 2>&1")])
        return r.returncode == 0

    def nvm_command_exists(self, nvm_dir: str, name: str) -> bool:
        if not self.path_exists(f"{nvm_dir}/nvm.sh"):
            return False
        script = nvm_script(nvm_dir, f"nvm use --silent default >/dev/null 2>&1; command -v {name}")
        return _quiet(["bash", "-c", script]).returncode == 0

    def ssh_agent_running(self, socket: str) -> bool:
        if not os.path.exists(socket):
            return False
        # ssh-add -l: 0 has keys, 1 empty agent, 2 cannot connect
        r = _quiet(["ssh-add", "-l"], env=dict(os.environ, SSH_AUTH_SOCK=socket))
        return r.returncode in (0, 1)

    def ssh_agent_has_key(self, public_key_path: str, socket: Optional[str] = None) -> bool:
        socket = socket or os.environ.get("SSH_AUTH_SOCK")
        if not socket:
            return False
        pub = self.read_text(public_key_path)
        if not pub:
            return False
        r = _quiet(["ssh-add", "-L"], env=dict(os.environ, SSH_AUTH_SOCK=socket))
        if r.returncode != 0:
            return False
        fields = pub.split()
        return len(fields) >= 2 and fields[1] in r.stdout
