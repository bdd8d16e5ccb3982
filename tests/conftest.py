import logging
import os

import pytest

from devbox_bootstrap.config import load_config
from devbox_bootstrap.context import BootstrapContext
from devbox_bootstrap.lib.installers import ExternalInstaller

from fakes import FakeSystemState, RecordingRunner, simulate_host


@pytest.fixture(autouse=True)
def _isolate(tmp_path, monkeypatch):
    """Keep the user's real config and ssh-agent out of every test."""

    monkeypatch.setattr("devbox_bootstrap.config.USER_CONFIG_PATH", str(tmp_path / "no-such-config.yaml"))
    saved = {k: os.environ.get(k) for k in ("SSH_AUTH_SOCK", "SSH_AGENT_PID")}
    for k in saved:
        os.environ.pop(k, None)
    yield
    for k, v in saved.items():
        if v is None:
            os.environ.pop(k, None)
        else:
            os.environ[k] = v


@pytest.fixture(autouse=True)
def _reset_logging():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_devbox_configured", "_devbox_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def home(tmp_path):
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def cfg():
    return load_config()


@pytest.fixture
def fake_state():
    return FakeSystemState()


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def ctx(cfg, fake_state, runner, home):
    return BootstrapContext(
        cfg=cfg,
        state=fake_state,
        runner=runner,
        installer=ExternalInstaller(runner),
        home=home,
        user="dev",
    )


@pytest.fixture
def host(ctx, fake_state, runner, home, cfg):
    """ctx wired so that recorded commands update the fake host."""

    simulate_host(fake_state, runner, home, cfg, user=ctx.user)
    return ctx
