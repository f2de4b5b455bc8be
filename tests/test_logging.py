import logging

import coloredlogs
from pythonjsonlogger import jsonlogger

from core.logging_config import setup_logging


def root_formatter():
    handler = next(h for h in logging.getLogger().handlers if h.name == "default")
    return handler.formatter


def test_log_format_selects_the_formatter():
    try:
        setup_logging("json", "DEBUG")
        assert isinstance(root_formatter(), jsonlogger.JsonFormatter)
        assert logging.getLogger().level == logging.DEBUG

        setup_logging("console")
        assert isinstance(root_formatter(), coloredlogs.ColoredFormatter)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        setup_logging()
