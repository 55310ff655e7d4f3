import logging

from .config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None):
    resolved = (level or LOG_LEVEL or "INFO").upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    if resolved == "DEBUG":
        # pypdf and reportlab are chatty at DEBUG
        for noisy in ("pypdf", "reportlab"):
            logging.getLogger(noisy).setLevel(logging.INFO)
    return logging.getLogger("traintrack")
