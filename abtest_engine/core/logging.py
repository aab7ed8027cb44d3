import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stdout handler to the package logger."""
    root = logging.getLogger("abtest_engine")
    root.setLevel(level.upper())

    if any(getattr(h, "_abtest_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._abtest_handler = True
    root.addHandler(handler)
