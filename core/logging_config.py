import logging.config
import structlog
from pythonjsonlogger import jsonlogger
import coloredlogs

from core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

LEVEL_STYLES = {
    'DEBUG': {'color': 'blue'},
    'INFO': {'color': 'green'},
    'WARNING': {'color': 'yellow'},
    'ERROR': {'color': 'red'},
    'CRITICAL': {'bold': True, 'color': 'red'}
}


def build_formatter(log_format: str) -> dict:
    """dictConfig formatter entry, JSON lines for log shippers or colored text for a terminal"""
    if log_format == "json":
        return {"()": jsonlogger.JsonFormatter, "fmt": LOG_FORMAT}
    return {
        "()": coloredlogs.ColoredFormatter,
        "fmt": LOG_FORMAT,
        "level_styles": LEVEL_STYLES,
        "field_styles": {'asctime': {'color': 'green'}, 'levelname': {'bold': True, 'color': 'cyan'}},
    }


def setup_logging(log_format: str | None = None, level: str | None = None):
    settings = get_settings()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": build_formatter(log_format or settings.LOG_FORMAT)},
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            "": {"handlers": ["default"], "level": level or settings.LOG_LEVEL},
            # SQL echo is controlled by DB_ECHO
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })

    # structlog renders through the same stdlib handler
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
