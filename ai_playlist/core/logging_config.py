import logging
import sys


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging for the playlist generator.

    - Logs go to stdout
    - One line per record with time, level, and logger name
    - When a host (uvicorn, pytest) already installed handlers, only the
      level is adjusted
    """
    root = logging.getLogger()

    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root.addHandler(handler)
    root.setLevel(level)
