import logging
import os
import sys
from logging.config import dictConfig
from typing import Optional

from pythonjsonlogger.json import JsonFormatter as BaseJsonFormatter

from .config import Settings, get_settings


class JsonFormatter(BaseJsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(JsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = record.created
        if log_record.get("level"):
            log_record["level"] = log_record["level"].upper()
        else:
            log_record["level"] = record.levelname
        if not log_record.get("logger"):
            log_record["logger"] = record.name


def build_logging_config(settings: Settings) -> dict:
    """Build the dictConfig payload for the given settings."""
    log_level = settings.effective_log_level
    handlers = ["console"]

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(levelname)-8s %(asctime)s | %(name)s:%(lineno)d | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JsonFormatter,
                "format": "%(timestamp)s %(level)s %(name)s %(message)s %(lineno)d",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {},
        "root": {
            "handlers": handlers,
            "level": log_level,
        },
    }

    if settings.log_to_file:
        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": "json",
            "filename": os.path.join(settings.log_dir, "vectordata.log"),
            "when": "midnight",
            "interval": 1,
            "backupCount": 30,
            "encoding": "utf-8",
        }
        handlers.append("file")

    logging_config["loggers"]["vectordata_core"] = {
        "handlers": list(handlers),
        "level": log_level,
        "propagate": False,
    }
    return logging_config


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure library logging with safe fallback.

    If the file handler cannot be configured (e.g. the log directory is not
    writable), the configuration degrades to console-only logging instead of
    raising.
    """
    settings = settings or get_settings()

    if settings.log_to_file:
        try:
            os.makedirs(settings.log_dir, exist_ok=True)
        except OSError as e:
            print(
                f"[logging] Unable to create log directory '{settings.log_dir}': {e}",
                file=sys.stderr,
            )

    logging_config = build_logging_config(settings)

    try:
        dictConfig(logging_config)
    except (ValueError, OSError) as e:
        # Remove file handler and retry with console-only.
        for logger_name in list(logging_config.get("loggers", {}).keys()):
            handlers = logging_config["loggers"][logger_name].get("handlers", [])
            logging_config["loggers"][logger_name]["handlers"] = [
                h for h in handlers if h != "file"
            ]
        logging_config["root"]["handlers"] = [
            h for h in logging_config["root"]["handlers"] if h != "file"
        ]
        logging_config["handlers"].pop("file", None)
        dictConfig(logging_config)
        logging.getLogger(__name__).warning(
            "File logging disabled; falling back to console only (%s)", e
        )
