from __future__ import annotations

import logging
from typing import Mapping, Optional

from .command import CmdResult, CommandRunner

logger = logging.getLogger(__name__)


class ExternalInstaller:
    """Fetch a vendor install script and pipe it into a shell.

    Only used for components without a Debian package. The script's own
    success or failure is the result; a non-zero exit raises CommandError.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def run(
        self,
        name: str,
        url: str,
        *,
        shell: str = "sh",
        env: Optional[Mapping[str, str]] = None,
    ) -> CmdResult:
        logger.info("Running %s installer from %s", name, url)
        script = f'curl -fsSL "{url}" | {shell}'
        # pipefail so a failed download is not masked by the shell exiting 0
        return self.runner.run(
            ["bash", "-o", "pipefail", "-c", script],
            env=env,
            interactive=True,
        )
