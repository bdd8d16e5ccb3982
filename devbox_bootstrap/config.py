from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError

USER_CONFIG_PATH = "~/.config/devbox-bootstrap/config.yaml"


def _defaults_path() -> Path:
    return Path(__file__).resolve().parent / "defaults.yaml"


def _load_yaml(p: Path) -> Dict[str, Any]:
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML is required to read bootstrap configuration") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{p}: invalid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: configuration must contain a mapping/object")
    return raw


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base. Mappings merge, everything else replaces."""

    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


@dataclass(frozen=True)
class RepoConfig:
    name: str
    key_url: str
    keyring: str
    entry: str
    list_path: str
    dearmor: bool = True


@dataclass(frozen=True)
class InstallerConfig:
    name: str
    url: str
    shell: str
    env: Dict[str, str]


@dataclass(frozen=True)
class BootstrapConfig:
    raw: Dict[str, Any]

    @property
    def base_packages(self) -> List[str]:
        return [str(p) for p in (self.raw.get("base_packages") or [])]

    @property
    def skip_steps(self) -> List[str]:
        return [str(s) for s in (self.raw.get("skip_steps") or [])]

    @property
    def firewall_rules(self) -> List[str]:
        return [str(r) for r in ((self.raw.get("firewall") or {}).get("rules") or [])]

    @property
    def ssh_key_type(self) -> str:
        return str((self.raw.get("ssh") or {}).get("key_type") or "ed25519")

    @property
    def ssh_kdf_rounds(self) -> int:
        return int((self.raw.get("ssh") or {}).get("kdf_rounds") or 100)

    @property
    def ssh_key_path(self) -> str:
        return str((self.raw.get("ssh") or {}).get("key_path") or "~/.ssh/id_ed25519")

    @property
    def ssh_agent_socket(self) -> str:
        return str((self.raw.get("ssh") or {}).get("agent_socket") or "~/.ssh/agent.sock")

    @property
    def node_version(self) -> str:
        return str((self.raw.get("node") or {}).get("version") or "--lts")

    @property
    def node_default_alias(self) -> str:
        return str((self.raw.get("node") or {}).get("default_alias") or "lts/*")

    def npm_global(self, name: str) -> Dict[str, str]:
        entry = (self.raw.get("npm_globals") or {}).get(name)
        if not isinstance(entry, dict) or not entry.get("package") or not entry.get("command"):
            raise ConfigError(f"npm_globals.{name} needs 'package' and 'command'")
        return {"package": str(entry["package"]), "command": str(entry["command"])}

    def repository(self, name: str) -> RepoConfig:
        r = (self.raw.get("repositories") or {}).get(name)
        if not isinstance(r, dict):
            raise ConfigError(f"repositories.{name} missing")
        missing = [k for k in ("key_url", "keyring", "entry", "list") if not r.get(k)]
        if missing:
            raise ConfigError(f"repositories.{name} missing keys: {', '.join(missing)}")
        return RepoConfig(
            name=name,
            key_url=str(r["key_url"]),
            keyring=str(r["keyring"]),
            entry=str(r["entry"]),
            list_path=str(r["list"]),
            dearmor=bool(r.get("dearmor", True)),
        )

    def installer(self, name: str) -> InstallerConfig:
        i = (self.raw.get("installers") or {}).get(name)
        if not isinstance(i, dict) or not i.get("url"):
            raise ConfigError(f"installers.{name}.url missing")
        env = i.get("env") or {}
        if not isinstance(env, dict):
            raise ConfigError(f"installers.{name}.env must be a mapping")
        return InstallerConfig(
            name=name,
            url=str(i["url"]),
            shell=str(i.get("shell") or "sh"),
            env={str(k): str(v) for k, v in env.items()},
        )


def load_config(path: Optional[str] = None) -> BootstrapConfig:
    """Built-in defaults, overlaid with the user's YAML file if there is one.

    An explicit path must exist; the implicit per-user path is optional.
    """

    raw = _load_yaml(_defaults_path())

    if path is not None:
        p = Path(path).expanduser()
        if not p.exists():
            raise ConfigError(f"Config file not found: {path}")
    else:
        p = Path(USER_CONFIG_PATH).expanduser()
        if not p.exists():
            return BootstrapConfig(raw=raw)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("bootstrap config must be YAML")

    return BootstrapConfig(raw=deep_merge(raw, _load_yaml(p)))
