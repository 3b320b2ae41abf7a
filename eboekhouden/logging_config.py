import logging

from eboekhouden.request_id import RequestIdFilter


def configure_logging(level: int = logging.INFO) -> None:
    """Apply one log format to the whole process."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s",
    )
    # Filter on the handlers, not the root logger: records from child loggers
    # only pass through handler filters.
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())
