import logging

RESET = "\x1b[0m"
GREEN = "\x1b[32m"
BOLD_GREEN = "\x1b[1;32m"
YELLOW = "\x1b[33;20m"
BOLD_YELLOW = "\x1b[33;1m"
RED = "\x1b[31;20m"
BOLD_RED = "\x1b[31;1m"
BOLD_BLUE = "\x1b[1;34m"

# Colors of the date, level name and message parts of a record
LEVEL_STYLES = {
    logging.DEBUG: (GREEN, GREEN, GREEN),
    logging.INFO: (GREEN, BOLD_GREEN, ""),
    logging.WARNING: (YELLOW, BOLD_YELLOW, YELLOW),
    logging.ERROR: (RED, BOLD_RED, RED),
    logging.CRITICAL: (RED, BOLD_RED, BOLD_RED),
}

# Leading words of progress messages, with the color they are rendered in
STATUS_TOKENS = {
    "PARSING": BOLD_BLUE,
    "QUERYING": BOLD_BLUE,
    "PACKING": BOLD_BLUE,
    "COMPLETED": BOLD_GREEN,
    "SKIPPED": BOLD_YELLOW,
    "FAILED": BOLD_RED,
}


class CustomFormatter(logging.Formatter):
    """Colors the date, level and message of each record according to its level."""

    def __init__(self) -> None:
        super().__init__()
        self.formatters: dict[int, logging.Formatter] = {
            level: logging.Formatter(
                f"{date}%(asctime)s{RESET}{name} %(levelname)-8s{RESET}"
                f"{message}%(message)s{RESET}"
            )
            for level, (date, name, message) in LEVEL_STYLES.items()
        }

    def format(self, record):
        formatter = self.formatters.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


class HighlitingFilter(logging.Filter):
    """Highlights the status token that opens progress messages."""

    def filter(self, record):
        record.msg = self.highlight(record.msg)
        return True

    def highlight(self, msg) -> str:
        msg = str(msg)
        token, separator, rest = msg.partition(" ")
        if (color := STATUS_TOKENS.get(token)) is None:
            return msg
        # Failures keep the red of error records after the token
        trailer = RED if token == "FAILED" else ""
        return f"{color}{token}{RESET}{trailer}{separator}{rest}"


logger = logging.getLogger("cwlview")
defaultStreamHandler = logging.StreamHandler()
formatter = logging.Formatter(
    fmt="%(asctime)s.%(msecs)03d %(levelname)-8s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
defaultStreamHandler.setFormatter(formatter)
logger.addHandler(defaultStreamHandler)
logger.setLevel(logging.INFO)
logger.propagate = False
