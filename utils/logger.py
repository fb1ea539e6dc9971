import logging
import os
from logging.handlers import RotatingFileHandler

from config import settings


def setup_api_logger(log_path: str | None = None) -> logging.Logger:
    """Setup and return the application-wide logger.

    Creates a rotating file handler at `log_path`, falling back to the
    LOG_PATH setting and then to ./logs/api.log. Ledger mutations, degraded
    collaborator calls and API failures all go through this logger.
    """
    if log_path is None:
        log_path = settings.log_path
    if log_path is None:
        base = os.path.abspath(os.path.dirname(__file__))
        logs_dir = os.path.join(base, '..', 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_path = os.path.join(logs_dir, 'api.log')

    logger = logging.getLogger('tripfund.api')
    logger.setLevel(logging.INFO)

    # avoid adding multiple handlers if called multiple times
    if not logger.handlers:
        handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
        formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
