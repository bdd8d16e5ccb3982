import pytest

from devbox_bootstrap.errors import PrivilegeError
from devbox_bootstrap.privilege import acquire_sudo, ensure_not_root


def test_root_is_refused():
    with pytest.raises(PrivilegeError, match="not root"):
        ensure_not_root(0)


def test_normal_user_passes():
    ensure_not_root(1000)


def test_sudo_prompt_once(runner):
    acquire_sudo(runner)
    assert runner.calls == [["sudo", "-v"]]


def test_sudo_failure_is_privilege_error(runner):
    runner.fail_on.append("sudo -v")
    with pytest.raises(PrivilegeError):
        acquire_sudo(runner)
