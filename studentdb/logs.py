import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(path: Optional[str] = None, level: int = logging.INFO) -> None:
    """
    Send log records to `path`, or to stderr at WARNING when no path is set.
    Nothing is ever logged to stdout, which carries command output.
    """
    if path:
        logging.basicConfig(filename=path, level=level, format=LOG_FORMAT, encoding="utf-8")
    else:
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
