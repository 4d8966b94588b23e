"""
Console logging. Records may carry extra={"color_message": ...}, a variant of the message with click
styling in it (see Server._log_startup_message); it is only used when the stream is a terminal.
"""
import logging
import sys
from copy import copy
import click

LEVEL_COLORS = {
    logging.DEBUG: "cyan",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bright_red",
}

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


class ColourizedFormatter(logging.Formatter):

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, use_colors: bool | None = None):
        if use_colors is None:
            use_colors = sys.stderr.isatty()
        self.use_colors = use_colors
        super().__init__(fmt=fmt, datefmt=datefmt)

    def formatMessage(self, record: logging.LogRecord) -> str:
        record = copy(record)
        if self.use_colors:
            record.__dict__["levelprefix"] = click.style(
                record.levelname + ":", fg=LEVEL_COLORS.get(record.levelno)
            )
            if "color_message" in record.__dict__:
                record.msg = record.__dict__["color_message"]
                record.message = record.getMessage()
        else:
            record.__dict__["levelprefix"] = record.levelname + ":"
        return super().formatMessage(record)


def configure_logging(level: str | int = "info", use_colors: bool | None = None) -> logging.Logger:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColourizedFormatter("%(levelprefix)-9s %(message)s", use_colors=use_colors))
    logger = logging.getLogger("relaychat")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False
    return logger
