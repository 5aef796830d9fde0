# logging_config.py
# Console logging for the proxy service and the Streamlit frontend.
# Call setup_logging() once at startup.

import logging
import os
from datetime import datetime


class HumanFormatter(logging.Formatter):
    """Readable console format with color."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record):
        ts = datetime.now().strftime("%H:%M:%S")
        line = f"{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[0]:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        if not self.color:
            return line
        return f"{self.COLORS.get(record.levelname, '')}{line}{self.RESET}"


def setup_logging(level=None, color=None):
    """
    Configure the root logger.

    Args:
        level: Override log level (default: from LOG_LEVEL env or INFO)
        color: Force ANSI colors on or off (default: off when NO_COLOR is set)
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if color is None:
        color = "NO_COLOR" not in os.environ

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level), logging.INFO))
    for handler in list(root.handlers):
        if getattr(handler, "_procureflow", False):
            root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(HumanFormatter(color=color))
    console._procureflow = True
    root.addHandler(console)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return root
