from __future__ import annotations

import logging
from typing import NoReturn, Optional

from .pipeline import RunResult

logger = logging.getLogger("devbox_bootstrap")

FOLLOW_UP = """\
==========================================
IMPORTANT: Log out and log back in for zsh to become your default shell.
==========================================

After logging back in, verify:
  echo $0                    # Should show 'zsh' or '-zsh'
  ps -p $$ -o comm=          # Should show 'zsh'

Other checks:
  code .                      # Launch VS Code
  node --version              # Check Node.js
  sudo ufw status             # Check firewall

To issue a Let's Encrypt cert (once DNS points to this box):
  sudo certbot --apache -d yourdomain.com -d www.yourdomain.com
"""


class Reporter:
    """Operator-facing messages: log (info), warn, die (fatal)."""

    def __init__(self, log: Optional[logging.Logger] = None, out=None) -> None:
        self._log = log or logger
        self._out = out

    def log(self, msg: str, *args: object) -> None:
        self._log.info(msg, *args)

    def warn(self, msg: str, *args: object) -> None:
        self._log.warning(msg, *args)

    def die(self, msg: str, *args: object, code: int = 1) -> NoReturn:
        self._log.critical(msg, *args)
        raise SystemExit(code)

    def _print(self, text: str) -> None:
        print(text, file=self._out)

    def summary(self, result: RunResult, *, log_path: Optional[str] = None) -> None:
        self.log(
            "Bootstrap complete (applied=%d skipped=%d failed=%d)",
            len(result.applied),
            len(result.skipped),
            len(result.failed),
        )
        for o in result.failed:
            self.warn("Optional step %s failed: %s", o.step_id, o.error or "unknown error")
        if log_path:
            self.log("Full log: %s", log_path)
        self._print("")
        self._print(FOLLOW_UP)
