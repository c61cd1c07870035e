import logging

from cloud_gateway.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    resolved = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    root.setLevel(resolved)
    logging.getLogger("cloud_gateway").setLevel(resolved)
    # keep driver chatter out of request logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
