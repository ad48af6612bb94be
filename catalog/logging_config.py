import logging
import sys

from catalog.middleware import request_id_var

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [request_id=%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stdout handler on the ``catalog`` logger.

    Safe to call more than once; an existing handler is replaced rather
    than duplicated.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    package_logger = logging.getLogger("catalog")
    package_logger.handlers = [handler]
    package_logger.setLevel(level.upper())
