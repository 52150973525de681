"""
Logging and console output shared by the foldertree CLI and the mock backend.

Functions:
    setup_logging      - Configure the root logger (file or syslog) and return it.
    set_print_logger   - Set the logger mirrored by print_and_log and print_error.
    print_and_log      - Print a message and log it at info level.
    print_error        - Print a message in red to stderr and log it at error level.
"""

import logging
import logging.handlers
import os
import sys
from typing import Optional

from rich import print as rich_print
from rich.markup import escape

# logger used by print_and_log and print_error
_print_logger: Optional[logging.Logger] = None

LOG_FORMAT = '%(asctime)s %(levelname)s %(process)d %(name)s %(message)s'

# third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def _build_handler(app_name: str, daemon: bool, logfile: Optional[str]) -> logging.Handler:
    if daemon:
        try:
            handler: logging.Handler = logging.handlers.SysLogHandler(address='/dev/log')
        except OSError:
            # no syslog socket (containers, macOS)
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(f'%(asctime)s %(levelname)s %(process)d [{app_name}] %(name)s %(message)s'))
        return handler

    if logfile is None:
        log_dir = os.path.expanduser(f"~/.{app_name}")
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, "log.txt")
    handler = logging.FileHandler(logfile)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(app_name: str = "foldertree", daemon: bool = False, loglevel: int | str = logging.INFO,
                  logfile: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for the application.
    - daemon=True logs to syslog, or to stderr when there is no syslog.
    - Otherwise logs go to ``logfile``, by default ~/.<app_name>/log.txt.
    Any handler already on the root logger is replaced. The root logger is
    returned and registered for print_and_log.
    """
    logger = logging.getLogger()
    logger.setLevel(loglevel)
    handler = _build_handler(app_name, daemon, logfile)
    for old in logger.handlers[:]:
        logger.removeHandler(old)
    logger.addHandler(handler)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    set_print_logger(logger)
    logger.debug("Logger initialized for %s", app_name)
    return logger


def set_print_logger(logger: Optional[logging.Logger]):
    """
    Set the logger mirrored by print_and_log and print_error (None to stop logging).
    """
    global _print_logger
    _print_logger = logger


def print_and_log(message: str, **kwargs):
    print(message, **kwargs)
    if _print_logger is not None:
        _print_logger.info(message)


def print_error(message: str, **kwargs):
    """
    Print to stderr in bold red and log at error level.
    """
    rich_print(f'[bold red]{escape(message)}[/bold red]', file=sys.stderr, **kwargs)
    if _print_logger is not None:
        _print_logger.error(message)
