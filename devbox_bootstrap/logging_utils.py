from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console, Group
from rich.logging import RichHandler
from rich.text import Text
from rich.theme import Theme

DEFAULT_LOG_PATH = str(Path.home() / ".local/state/devbox-bootstrap/bootstrap.log")

_MARKERS = {
    logging.DEBUG: ("  ", "marker.debug"),
    logging.INFO: ("==>", "marker.info"),
    logging.WARNING: ("!!", "marker.warning"),
    logging.ERROR: ("xx", "marker.error"),
    logging.CRITICAL: ("xx", "marker.error"),
}

MARKER_THEME = Theme(
    {
        "marker.debug": "dim",
        "marker.info": "bold green",
        "marker.warning": "bold yellow",
        "marker.error": "bold red",
    }
)


def use_color(stream=None) -> bool:
    stream = stream or sys.stderr
    if os.environ.get("NO_COLOR"):
        return False
    return bool(getattr(stream, "isatty", lambda: False)())


def make_console(stream=None) -> Console:
    """Themed console on stderr; plain text when piped or NO_COLOR is set."""

    stream = stream or sys.stderr
    return Console(
        file=stream,
        theme=MARKER_THEME,
        color_system="auto" if use_color(stream) else None,
        soft_wrap=True,
        highlight=False,
    )


class MarkerHandler(RichHandler):
    """Console handler: a severity marker, then the message."""

    def __init__(self, console: Optional[Console] = None, level: int = logging.NOTSET) -> None:
        super().__init__(
            level=level,
            console=console or make_console(),
            show_time=False,
            show_level=False,
            show_path=False,
            markup=False,
        )

    def render(self, *, record, traceback, message_renderable):
        marker, style = _MARKERS.get(record.levelno, _MARKERS[logging.INFO])
        line = Text.assemble((marker, style), " ", message_renderable)
        if traceback is None:
            return line
        return Group(line, traceback)



def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging.

    The file handler records every command and decision with timestamps; the
    console handler shows operator-facing markers only.

    Notes:
    - If the requested log file cannot be created we fall back to a file in
      the current working directory, and report the path actually used.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_devbox_configured", False):
        return getattr(logger, "_devbox_log_path", log_path)

    chosen_path = log_path
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        chosen_path = log_path
    except OSError:
        fallback = str(Path.cwd() / "devbox-bootstrap.log")
        file_handler = logging.FileHandler(fallback)
        chosen_path = fallback
    file_handler.setFormatter(fmt)
    file_handler.setLevel(logging.DEBUG)
    handlers.append(file_handler)

    if also_console:
        console = MarkerHandler()
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_devbox_configured", True)
    setattr(logger, "_devbox_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
