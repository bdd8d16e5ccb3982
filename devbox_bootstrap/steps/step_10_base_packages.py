from __future__ import annotations

import logging

from ..context import BootstrapContext
from ..lib.pkg import apt_install, apt_update, missing_packages
from .base import PackagesStep

logger = logging.getLogger(__name__)


class BasePackagesStep(PackagesStep):
    def __init__(self, packages) -> None:
        super().__init__("base_packages", packages, requires=(), description="Installing base packages")

    def apply(self, ctx: BootstrapContext) -> None:
        apt_update(ctx.runner)
        missing = missing_packages(ctx.state, self.packages)
        logger.debug("Missing base packages: %s", ", ".join(missing))
        apt_install(ctx.runner, missing)
