"""
Logging configuration.

- Development: human-readable console output
- Production: JSON lines to stdout

Settings (read through python-decouple):
- LOG_FORMAT: "json" or "console" (default: console when DEBUG, else json)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO, DEBUG when DEBUG)
"""
import json
import logging

from decouple import config


class RequestIdFilter(logging.Filter):
    """Attach the current request's correlation id to every record."""

    def filter(self, record):
        from apps.core.middleware import get_request_id
        record.request_id = get_request_id() or '-'
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        payload = {
            'timestamp': self.formatTime(record, '%Y-%m-%dT%H:%M:%S'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'request_id': getattr(record, 'request_id', '-'),
        }
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def get_logging_config(debug=False):
    """
    Build the Django LOGGING dict.

    Args:
        debug: Whether running in debug mode

    Returns:
        dict: Django LOGGING configuration
    """
    log_level = config('LOG_LEVEL', default='DEBUG' if debug else 'INFO')
    log_format = config('LOG_FORMAT', default='console' if debug else 'json')

    if log_format == 'json':
        formatters = {
            'json': {'()': 'apps.core.logging_config.JsonFormatter'},
        }
        formatter = 'json'
    else:
        formatters = {
            'verbose': {
                'format': '[{asctime}] {levelname} {name} [{request_id}] {message}',
                'style': '{',
            },
        }
        formatter = 'verbose'

    app_logger = {
        'handlers': ['console'],
        'level': log_level,
        'propagate': False,
    }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request_id': {'()': 'apps.core.logging_config.RequestIdFilter'},
        },
        'formatters': formatters,
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': formatter,
                'filters': ['request_id'],
            },
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': log_level,
            },
            'django': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            },
            'django.request': {
                'handlers': ['console'],
                'level': 'ERROR' if not debug else log_level,
                'propagate': False,
            },
            'apps': app_logger,
            'celery': app_logger,
        },
    }
