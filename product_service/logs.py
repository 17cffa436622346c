import datetime
import json
import logging

EXTRA_FIELDS = ('product_id', 'endpoint', 'status_code')


# Structured logging
class JSONFormatter(logging.Formatter):
    def format(self, record):
        timestamp = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
        log_entry = {
            'timestamp': timestamp.isoformat() + 'Z',
            'level': record.levelname,
            'service': 'product_service',
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Add extra fields if present
        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        return json.dumps(log_entry)


logger = logging.getLogger('product_service')


def configure_logging(level='INFO'):
    logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    return logger
