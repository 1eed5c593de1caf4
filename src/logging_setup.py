import logging
import os
from datetime import datetime

# urllib3 logs full request URLs at DEBUG, including the geocoding API key
QUIET_LOGGERS = ("urllib3",)


def quiet_http_loggers():
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(log_dir="logs", level="INFO"):
    """
    Configure root logging with a dated file handler and a console handler.

    Returns the path of the log file.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_filename = os.path.join(log_dir, f'enrichment_{datetime.now().strftime("%Y%m%d")}.log')

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )
    quiet_http_loggers()
    return log_filename
