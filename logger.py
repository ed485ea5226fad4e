import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = '%(asctime)s:%(levelname)s:%(name)s: %(message)s'


def setup_logging(log_file: Optional[str] = None, level: Optional[str] = None):
    log_file = log_file or os.getenv('LOG_FILE', 'linguaku.log')
    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    log_formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Called again (tests, re-entry): only adjust the level
    own_handlers = [h for h in root_logger.handlers if getattr(h, '_linguaku', False)]
    if own_handlers:
        for handler in own_handlers:
            handler.setLevel(log_level)
        return

    # File Handler
    file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=2)

    # Stream Handler
    stream_handler = logging.StreamHandler()

    for handler in (file_handler, stream_handler):
        handler.setFormatter(log_formatter)
        handler.setLevel(log_level)
        handler._linguaku = True
        root_logger.addHandler(handler)

    # aiohttp client chatter stays at WARNING
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncpg').setLevel(logging.WARNING)
