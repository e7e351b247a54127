"""Logging configuration for Quantify application."""

import logging
import logging.config
import os

from flask import has_request_context, request
from pythonjsonlogger import jsonlogger

SECURITY_LOGGER = 'quantify.security'
ERROR_LOGGER = 'quantify.errors'

SECURITY_FIELDS = '%(asctime)s %(levelname)s %(message)s %(event_type)s %(user_id)s %(ip_address)s %(details)s %(method)s %(path)s'

MAX_LOG_BYTES = 10 * 1024 * 1024


class RequestContextFilter(logging.Filter):
    """Stamp records with the method and path of the request being served."""

    def filter(self, record):
        if has_request_context():
            record.method = request.method
            record.path = request.path
        else:
            record.method = None
            record.path = None
        return True


def _rotating(filename, level, formatter, log_dir):
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'level': level,
        'formatter': formatter,
        'filename': os.path.join(log_dir, filename),
        'maxBytes': MAX_LOG_BYTES,
        'backupCount': 5,
        'filters': ['request'],
    }


def setup_logging(log_level='INFO', log_dir='logs', log_to_file=True):
    """Configure the root, security and error loggers.

    Security events are written as JSON lines so they can be shipped and
    queried; everything else uses plain text. With ``log_to_file`` off
    (tests) every logger writes to stdout only.
    """
    handlers = {
        'console': {
            'class': 'logging.StreamHandler',
            'level': log_level,
            'formatter': 'plain',
            'stream': 'ext://sys.stdout',
            'filters': ['request'],
        },
    }
    security_handlers = ['console']
    error_handlers = ['console']
    root_handlers = ['console']

    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)
        handlers['app_file'] = _rotating('quantify.log', log_level, 'verbose', log_dir)
        handlers['security_file'] = _rotating('security.log', 'INFO', 'json', log_dir)
        handlers['error_file'] = _rotating('errors.log', 'WARNING', 'verbose', log_dir)
        root_handlers = ['console', 'app_file']
        security_handlers = ['security_file']
        error_handlers = ['console', 'error_file']

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request': {'()': RequestContextFilter},
        },
        'formatters': {
            'plain': {
                'format': '%(asctime)s %(levelname)-8s %(name)s: %(message)s'
            },
            'verbose': {
                'format': '%(asctime)s %(levelname)-8s %(name)s [%(method)s %(path)s] %(module)s:%(lineno)d %(message)s'
            },
            'json': {
                '()': jsonlogger.JsonFormatter,
                'format': SECURITY_FIELDS
            },
        },
        'handlers': handlers,
        'loggers': {
            '': {'handlers': root_handlers, 'level': log_level},
            SECURITY_LOGGER: {'handlers': security_handlers, 'level': 'INFO', 'propagate': False},
            ERROR_LOGGER: {'handlers': error_handlers, 'level': 'INFO', 'propagate': False},
        },
    })

    # Third-party chatter
    for name, level in (('werkzeug', logging.WARNING), ('sqlalchemy.engine', logging.WARNING),
                        ('passlib', logging.ERROR)):
        logging.getLogger(name).setLevel(level)


def get_logger(name):
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def log_security_event(event_type, user_id=None, ip_address=None, details=None):
    """Record an authentication or authorization event on the security log."""
    get_logger(SECURITY_LOGGER).info(
        event_type,
        extra={
            'event_type': event_type,
            'user_id': user_id,
            'ip_address': ip_address,
            'details': details,
        }
    )
