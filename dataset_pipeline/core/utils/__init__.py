from .helpers import log_message, setup_logging, get_logger, save_json_atomic

__all__ = [
    'log_message',
    'setup_logging',
    'get_logger',
    'save_json_atomic',
]
