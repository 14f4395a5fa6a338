"""
Logging configuration for the school fee ledger.
Provides console, JSON and rotating file handlers through dictConfig.
"""

import logging
import logging.config
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from schoolfees.config.settings import Settings, settings as default_settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = default_settings.ENVIRONMENT

        if getattr(record, 'request_id', None):
            log_record['request_id'] = record.request_id

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }


def build_logging_config(config: Optional[Settings] = None) -> Dict[str, Any]:
    """Build the dictConfig payload for the given settings."""
    config = config or default_settings

    if config.LOG_FORMAT == "json":
        console_formatter = 'json'
    elif config.is_development():
        console_formatter = 'colored'
    else:
        console_formatter = 'standard'

    handlers: Dict[str, Any] = {
        'console': {
            'level': 'DEBUG' if config.DEBUG else config.LOG_LEVEL,
            'class': 'logging.StreamHandler',
            'formatter': console_formatter,
            'filters': ['request_id'],
        },
    }

    if config.LOG_FILE:
        Path(config.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        handlers['file'] = {
            'level': config.LOG_LEVEL,
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': config.LOG_FILE,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 10,
            'formatter': 'json' if config.LOG_FORMAT == "json" else 'standard',
            'filters': ['request_id'],
            'encoding': 'utf8'
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request_id': {
                '()': 'schoolfees.core.logging.RequestIdFilter',
            },
        },
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            }
        },
        'handlers': handlers,
        'loggers': {
            '': {
                'handlers': list(handlers),
                'level': config.LOG_LEVEL,
            },
            'sqlalchemy.engine': {
                'level': 'INFO' if config.DB_ECHO else 'WARNING',
                'propagate': True,
            },
            'uvicorn.access': {
                'level': 'WARNING',
                'propagate': True,
            },
        },
    }


def setup_logging(config: Optional[Settings] = None) -> None:
    """Initialize logging configuration"""
    logging.config.dictConfig(build_logging_config(config))
    logging.getLogger(__name__).info(
        "Logging system initialized",
        extra={'log_level': (config or default_settings).LOG_LEVEL},
    )
