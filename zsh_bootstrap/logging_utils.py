from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

DEFAULT_LOG_PATH = "~/.local/state/zsh-bootstrap/bootstrap.log"

INFO = "INFO"
DONE = "DONE"
SKIP = "SKIP"
FAIL = "FAIL"
SECTION = "SECTION"

_TAG_STYLES = {
    INFO: "blue",
    DONE: "green",
    SKIP: "yellow",
    FAIL: "red",
}


class StatusHandler(logging.Handler):
    """Console handler printing colour-tagged status lines.

    The tag comes from ``record.status`` when set, otherwise from the level.
    """

    def __init__(self, console: Optional[Console] = None, level: int = logging.NOTSET):
        super().__init__(level)
        self.console = console or Console(highlight=False)

    def tag_for(self, record: logging.LogRecord) -> str:
        status = getattr(record, "status", None)
        if status:
            return str(status)
        if record.levelno >= logging.WARNING:
            return FAIL
        return INFO

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = record.getMessage()
            tag = self.tag_for(record)
            if tag == SECTION:
                self.console.print()
                self.console.rule(Text(msg, style="bold blue"), style="blue", align="left")
                return
            line = Text.assemble((f"[{tag}]", _TAG_STYLES.get(tag, "blue")), " ", msg)
            self.console.print(line)
        except Exception:
            self.handleError(record)


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
    console: Optional[Console] = None,
) -> str:
    """Configure logging.

    Every decision is recorded to the log file; the console only gets the
    tagged status lines.

    If the requested log location is not writable we fall back to a file in
    the working directory and keep going.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_zsh_bootstrap_configured", False):
        return getattr(logger, "_zsh_bootstrap_log_path", log_path)

    requested = os.path.expanduser(log_path)
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    try:
        Path(os.path.dirname(requested) or ".").mkdir(parents=True, exist_ok=True)
        file_handler: logging.Handler = logging.FileHandler(requested)
        chosen_path = requested
    except OSError:
        chosen_path = str(Path.cwd() / "zsh-bootstrap.log")
        file_handler = logging.FileHandler(chosen_path)
    file_handler.setFormatter(fmt)
    file_handler.setLevel(logging.DEBUG)
    handlers.append(file_handler)

    if also_console:
        status = StatusHandler(console=console, level=level)
        status.setFormatter(fmt)
        handlers.append(status)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_zsh_bootstrap_configured", True)
    setattr(logger, "_zsh_bootstrap_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
