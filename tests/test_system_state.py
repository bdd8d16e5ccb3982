from types import SimpleNamespace

from devbox_bootstrap.lib import system_state
from devbox_bootstrap.lib.system_state import HostSystemState


def _fake_quiet(responses):
    calls = []

    def quiet(argv, env=None):
        calls.append(list(argv))
        for prefix, (rc, out) in responses.items():
            if " ".join(argv).startswith(prefix):
                return SimpleNamespace(returncode=rc, stdout=out, stderr="")
        return SimpleNamespace(returncode=1, stdout="", stderr="")

    return quiet, calls


def test_file_contains(tmp_path):
    rc = tmp_path / ".bashrc"
    host = HostSystemState()
    assert host.file_contains(str(rc), "NVM_DIR") is False
    rc.write_text('export NVM_DIR="$HOME/.nvm"\n')
    assert host.file_contains(str(rc), "NVM_DIR") is True
    assert host.path_exists(str(rc))


def test_package_installed_parses_dpkg_status(monkeypatch):
    quiet, _ = _fake_quiet({
        "dpkg-query -W -f=${Status} zsh": (0, "install ok installed"),
        "dpkg-query -W -f=${Status} mongodb": (0, "deinstall ok config-files"),
    })
    monkeypatch.setattr(system_state, "_quiet", quiet)
    monkeypatch.setattr(HostSystemState, "command_exists", lambda self, name: True)
    host = HostSystemState()
    assert host.package_installed("zsh") is True
    assert host.package_installed("mongodb") is False
    assert host.package_installed("redis-server") is False


def test_services_and_firewall(monkeypatch):
    quiet, calls = _fake_quiet({
        "systemctl is-enabled docker": (0, "enabled\n"),
        "systemctl is-active --quiet docker": (0, ""),
        "sudo -n ufw status": (0, "Status: inactive\n"),
        "sudo -n ufw show added": (0, "Added user rules (see 'ufw status' for running firewall):\nufw allow OpenSSH\n"),
    })
    monkeypatch.setattr(system_state, "_quiet", quiet)
    host = HostSystemState()
    assert host.service_enabled("docker") and host.service_active("docker")
    assert not host.service_enabled("mongod")
    assert host.firewall_active() is False
    assert host.firewall_rules() == ["ufw allow OpenSSH"]


def test_ssh_agent_has_key(tmp_path, monkeypatch):
    pub = tmp_path / "id_ed25519.pub"
    pub.write_text("ssh-ed25519 AAAAkeydata me@host\n")
    quiet, _ = _fake_quiet({"ssh-add -L": (0, "ssh-ed25519 AAAAkeydata me@host\n")})
    monkeypatch.setattr(system_state, "_quiet", quiet)
    host = HostSystemState()
    assert host.ssh_agent_has_key(str(pub)) is False
    monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
    assert host.ssh_agent_has_key(str(pub)) is True


def test_ssh_agent_on_explicit_socket(tmp_path, monkeypatch):
    pub = tmp_path / "id_ed25519.pub"
    pub.write_text("ssh-ed25519 AAAAkeydata me@host\n")
    sock = tmp_path / "agent.sock"
    envs = []

    def quiet(argv, env=None):
        envs.append((" ".join(argv), (env or {}).get("SSH_AUTH_SOCK")))
        if argv == ["ssh-add", "-l"]:
            return SimpleNamespace(returncode=1, stdout="", stderr="The agent has no identities.")
        return SimpleNamespace(returncode=0, stdout="ssh-ed25519 AAAAkeydata me@host\n", stderr="")

    monkeypatch.setattr(system_state, "_quiet", quiet)
    host = HostSystemState()
    assert host.ssh_agent_running(str(sock)) is False
    assert envs == []
    sock.write_text("")
    assert host.ssh_agent_running(str(sock)) is True
    assert host.ssh_agent_has_key(str(pub), str(sock)) is True
    assert envs == [("ssh-add -l", str(sock)), ("ssh-add -L", str(sock))]


def test_nvm_probes_need_nvm_sh(tmp_path, monkeypatch):
    quiet, calls = _fake_quiet({"bash -c": (0, "")})
    monkeypatch.setattr(system_state, "_quiet", quiet)
    host = HostSystemState()
    nvm_dir = tmp_path / ".nvm"
    assert host.nvm_ready(str(nvm_dir)) is False
    assert calls == []
    nvm_dir.mkdir()
    (nvm_dir / "nvm.sh").write_text("")
    assert host.nvm_ready(str(nvm_dir)) is True
    assert host.nvm_command_exists(str(nvm_dir), "codex") is True
    assert "command -v codex" in calls[-1][2]
