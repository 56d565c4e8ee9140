import logging
from rich.logging import RichHandler
from rich.console import Console
from rich.theme import Theme

from dpanel.core.config import LOG_LEVEL

panel_theme = Theme({
    "logging.level.debug": "cyan",
    "logging.level.info": "bold #FFFFFF on #61AD00",
    "logging.level.warning": "bold #FFFFFF on #DB6900",
    "logging.level.error": "bold #FFFFFF on #d70000",
    "logging.level.critical": "bold #FFFFFF on red",
    "log.time": "#A3A3A3",
})

# stderr keeps the console out of any piped command output
console = Console(theme=panel_theme, stderr=True)

_loggers = []


class PanelRichHandler(RichHandler):
    def render_message(self, record, message):
        """Colour the message text by level."""
        text = super().render_message(record, message)

        if record.levelno >= logging.ERROR:
            text.style = "#FF7878"
        elif record.levelno >= logging.WARNING:
            text.style = "#FFD078"

        return text


def setup_logger(name: str = "DPanel") -> logging.Logger:
    """
    Return a logger rendered through the shared rich console.

    Handlers are attached once per name, so calling this at import time
    in several modules is safe.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = PanelRichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=True,
            omit_repeated_times=False,
            show_path=False,
            markup=False,
            enable_link_path=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    logger.propagate = False

    if logger not in _loggers:
        _loggers.append(logger)

    return logger


def set_debug_mode(enabled: bool):
    """Toggle DEBUG level for every logger created through setup_logger."""
    level = logging.DEBUG if enabled else logging.INFO
    for logger in _loggers:
        logger.setLevel(level)
