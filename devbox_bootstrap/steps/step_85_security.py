from __future__ import annotations

import logging
import shlex
from typing import Iterable, Set

from ..context import BootstrapContext
from .base import BaseStep, PackagesStep, ServiceStep

logger = logging.getLogger(__name__)

AUTO_UPGRADES_CONF = "/etc/apt/apt.conf.d/20auto-upgrades"


def allowed_rules(lines: Iterable[str]) -> Set[str]:
    """Rule names from `ufw show added` lines such as: ufw allow 'Apache Full'."""

    out: Set[str] = set()
    for line in lines:
        try:
            parts = shlex.split(line)
        except ValueError:
            continue
        if len(parts) >= 3 and parts[0] == "ufw" and parts[1] == "allow":
            out.add(" ".join(parts[2:]))
    return out


class UfwRulesStep(BaseStep):
    """Allow SSH before the firewall goes up so the host stays reachable."""

    step_id = "ufw_rules"
    description = "Adding ufw allow rules"
    fatal = False
    requires = ("ufw",)

    def _missing(self, ctx: BootstrapContext) -> list[str]:
        have = allowed_rules(ctx.state.firewall_rules())
        return [r for r in ctx.cfg.firewall_rules if r not in have]

    def probe(self, ctx: BootstrapContext) -> bool:
        return not self._missing(ctx)

    def apply(self, ctx: BootstrapContext) -> None:
        for rule in self._missing(ctx):
            ctx.runner.run(["ufw", "allow", rule], sudo=True)


class UfwEnableStep(BaseStep):
    step_id = "ufw_enable"
    description = "Enabling ufw firewall"
    requires = ("ufw",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.firewall_active()

    def apply(self, ctx: BootstrapContext) -> None:
        ctx.runner.run(["ufw", "--force", "enable"], sudo=True)


class UnattendedUpgradesConfigStep(BaseStep):
    step_id = "unattended_upgrades_config"
    description = "Enabling unattended upgrades (security updates)"
    fatal = False
    requires = ("unattended_upgrades",)

    def probe(self, ctx: BootstrapContext) -> bool:
        return ctx.state.path_exists(AUTO_UPGRADES_CONF)

    def apply(self, ctx: BootstrapContext) -> None:
        ctx.runner.run(["dpkg-reconfigure", "-f", "noninteractive", "unattended-upgrades"], sudo=True)


def security_steps() -> list:
    return [
        PackagesStep("fail2ban", ["fail2ban"], description="Installing fail2ban"),
        ServiceStep("fail2ban_service", "fail2ban", requires=("fail2ban",)),
        PackagesStep("ufw", ["ufw"], description="Installing and configuring ufw firewall"),
        UfwRulesStep(),
        UfwEnableStep(),
        PackagesStep("unattended_upgrades", ["unattended-upgrades"]),
        UnattendedUpgradesConfigStep(),
        # Optional baseline auditing; some kernels/containers cannot run it.
        PackagesStep(
            "auditd",
            ["auditd"],
            fatal=False,
            description="Installing auditd (optional baseline auditing)",
        ),
        ServiceStep("auditd_service", "auditd", requires=("auditd",), fatal=False),
    ]
