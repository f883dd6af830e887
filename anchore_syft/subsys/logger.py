import inspect
import logging
import sys
import threading
import traceback
from datetime import datetime, timezone

from pythonjsonlogger import jsonlogger

DEFAULT_TESTLOG_FORMAT = "[{}] %(asctime)s [-] [%(name)s] [%(levelname)s] %(message)s"
DEFAULT_FORMAT = "%(asctime)s [-] [%(name)s] [%(levelname)s] %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S+0000"

SPEW = 5
logging.addLevelName(SPEW, "SPEW")

LOGGER_NAME = "anchore_syft"

log_level_map = {
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "SPEW": SPEW,
}

# numeric level of the package logger, kept in sync by configure_logging()
log_level = logging.INFO

_logger = logging.getLogger(LOGGER_NAME)

DEFAULT_LOGGERS = [logging.getLogger(), _logger]

SUPPRESSED_LIBRARY_LOGGERS = ["urllib3.connectionpool"]


def enable_test_logging(level="WARN", outfile=None):
    """
    Use the root logger for logging in test code, for intercept by pytest etc. This code should *only* ever be called
    in code from tests/

    :return:
    """
    global log_level

    prefix = "test"
    if outfile:
        logging.basicConfig(
            level=level,
            filename=outfile,
            format=DEFAULT_TESTLOG_FORMAT.format(prefix),
            datefmt=DEFAULT_DATE_FORMAT,
        )
    else:
        logging.basicConfig(
            level=level,
            stream=sys.stdout,
            format=DEFAULT_TESTLOG_FORMAT.format(prefix),
            datefmt=DEFAULT_DATE_FORMAT,
        )
    log_level = log_level_map.get(str(level).upper(), logging.WARNING)


def configure_logging(new_log_level, json_logging_enabled=False):
    """
    Setup standard lib logging for the package
    :param new_log_level: a string name of log level, e.g. 'INFO', 'DEBUG'
    :param json_logging_enabled: whether to enable json logging or not
    :return:
    """
    global log_level

    level = log_level_map.get(str(new_log_level).upper())
    if level is None:
        raise ValueError("unknown log level: {}".format(new_log_level))

    logging.basicConfig(level=level, force=True)
    for logger in DEFAULT_LOGGERS:
        if json_logging_enabled:
            formatter = SyftJsonLogFormatter()
        else:
            formatter = logging.Formatter(DEFAULT_FORMAT)
            formatter.datefmt = DEFAULT_DATE_FORMAT

        setup_log_handler(level, logger, formatter)

    _logger.setLevel(level)
    log_level = level

    # Some libraries spew out lots of warning logs in normal execution, so we'll suppress them here
    for logger_name in SUPPRESSED_LIBRARY_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.CRITICAL)

    logging.getLogger().info("Logging Configuration complete")


def setup_log_handler(level, logger, formatter):

    logger.handlers = []
    log_handler = logging.StreamHandler(sys.stdout)
    log_handler.setFormatter(formatter)
    log_handler.setLevel(level)
    logger.addHandler(log_handler)
    if logger is not logging.getLogger():
        logger.propagate = False


class SyftJsonLogFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(SyftJsonLogFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            # this doesn't use record.created, so it is slightly off
            now = datetime.now(timezone.utc).strftime(DEFAULT_DATE_FORMAT)
            log_record["timestamp"] = now

        if log_record.get("level"):
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname

        thread_name, caller_file, caller_name = self.get_syft_log_data()
        log_record["syft_data"] = {
            "thread": thread_name,
            "file": caller_file,
            "name": caller_name,
        }

    @staticmethod
    def get_syft_log_data():
        tname = threading.current_thread().name
        caller_file = "-"
        caller_name = "-"
        try:
            current_frame = inspect.currentframe()
            outer_frame = inspect.getouterframes(current_frame, 3)
            frame = inspect.stack()[3]
            module = inspect.getmodule(frame[0])
            caller_file = module.__name__
            caller_name = outer_frame[3][3]
        except Exception:
            pass

        return tname, caller_file, caller_name


def _log(level, msg, *args, **kwargs):
    # stacklevel points the record at the caller of the public helper
    kwargs.setdefault("stacklevel", 3)
    _logger.log(level, msg, *args, **kwargs)


def spew(msg, *args, **kwargs):
    _log(SPEW, msg, *args, **kwargs)


def debug(msg, *args, **kwargs):
    _log(logging.DEBUG, msg, *args, **kwargs)


def info(msg, *args, **kwargs):
    _log(logging.INFO, msg, *args, **kwargs)


def warn(msg, *args, **kwargs):
    _log(logging.WARNING, msg, *args, **kwargs)


warning = warn


def error(msg, *args, **kwargs):
    _log(logging.ERROR, msg, *args, **kwargs)


def exception(msg, *args, **kwargs):
    kwargs.setdefault("exc_info", True)
    _log(logging.ERROR, msg, *args, **kwargs)


def debug_exception(msg, *args, **kwargs):
    """
    Log the message at debug level along with the traceback of the exception currently being handled
    """
    if log_level <= logging.DEBUG:
        msg = "{}\n{}".format(msg, traceback.format_exc())
    _log(logging.DEBUG, msg, *args, **kwargs)
