import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

# Client libraries that log every reconnect and rebalance at INFO
NOISY_LOGGERS = ("aiokafka", "kafka", "sqlalchemy.engine")

_handler: Optional[logging.Handler] = None


def setup_logging(service_name: str, level: str = "INFO") -> None:
    """Send JSON lines to stdout, each tagged with the emitting service."""
    global _handler

    root = logging.getLogger()
    root.setLevel(level)

    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"service": service_name}
    ))
    root.addHandler(_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))
