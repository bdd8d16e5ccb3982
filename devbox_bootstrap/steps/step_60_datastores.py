from __future__ import annotations

import logging

from ..context import BootstrapContext
from ..lib.pkg import apt_install, apt_remove
from .base import PackagesStep, RepositoryStep, ServiceStep

logger = logging.getLogger(__name__)


class MongoDbStep(PackagesStep):
    """mongodb-org from MongoDB's repo; Ubuntu's legacy `mongodb` conflicts with it."""

    def __init__(self) -> None:
        super().__init__(
            "mongodb",
            ["mongodb-org"],
            requires=("mongodb_repo",),
            description="Installing MongoDB (using Ubuntu base codename)",
        )

    def apply(self, ctx: BootstrapContext) -> None:
        apt_remove(ctx.runner, ["mongodb"])
        apt_install(ctx.runner, self.packages)


def datastore_steps() -> list:
    return [
        RepositoryStep("mongodb_repo", "mongodb"),
        MongoDbStep(),
        ServiceStep("mongod_service", "mongod", requires=("mongodb",)),
        PackagesStep("redis", ["redis-server"], description="Installing Redis"),
        ServiceStep("redis_service", "redis-server", requires=("redis",)),
    ]
