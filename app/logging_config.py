"""Logging configuration for Beekeeper application."""

import os
import logging
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler


class LogConfig:
    LOG_DIR = 'logs'

    APP_LOG_FILE = 'app.log'
    ERROR_LOG_FILE = 'error.log'
    MODERATION_LOG_FILE = 'moderation.log'
    SECURITY_LOG_FILE = 'security.log'

    LOG_LEVELS = {
        'development': logging.DEBUG,
        'testing': logging.WARNING,
        'production': logging.INFO,
    }

    MAX_BYTES = 10 * 1024 * 1024
    BACKUP_COUNT = 10

    DETAILED_FORMAT = (
        '%(asctime)s - %(name)s - %(levelname)s - '
        '[%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s'
    )
    SIMPLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
    MODERATION_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

    @classmethod
    def get_log_level(cls, env='development'):
        return cls.LOG_LEVELS.get(env, logging.INFO)


def setup_logging(app):
    env = app.config.get('ENV', 'development')
    log_level = LogConfig.get_log_level(env)

    app.logger.handlers.clear()
    app.logger.setLevel(log_level)

    if env in ('development', 'testing'):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(LogConfig.SIMPLE_FORMAT))
        app.logger.addHandler(console_handler)

    # Tests must not leave log files behind
    if env == 'testing':
        for name in ('moderation', 'security'):
            named_logger = logging.getLogger(name)
            named_logger.handlers.clear()
            named_logger.propagate = True
        return

    log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, '..', LogConfig.LOG_DIR)
    os.makedirs(log_dir, exist_ok=True)

    app_handler = RotatingFileHandler(
        os.path.join(log_dir, LogConfig.APP_LOG_FILE),
        maxBytes=LogConfig.MAX_BYTES,
        backupCount=LogConfig.BACKUP_COUNT
    )
    app_handler.setLevel(log_level)
    app_handler.setFormatter(logging.Formatter(LogConfig.DETAILED_FORMAT))
    app.logger.addHandler(app_handler)

    error_handler = RotatingFileHandler(
        os.path.join(log_dir, LogConfig.ERROR_LOG_FILE),
        maxBytes=LogConfig.MAX_BYTES,
        backupCount=LogConfig.BACKUP_COUNT
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(LogConfig.DETAILED_FORMAT))
    app.logger.addHandler(error_handler)

    moderation_handler = TimedRotatingFileHandler(
        os.path.join(log_dir, LogConfig.MODERATION_LOG_FILE),
        when='midnight',
        interval=1,
        backupCount=365
    )
    moderation_handler.setLevel(logging.INFO)
    moderation_handler.setFormatter(logging.Formatter(LogConfig.MODERATION_FORMAT))

    moderation_logger = logging.getLogger('moderation')
    moderation_logger.setLevel(logging.INFO)
    moderation_logger.handlers.clear()
    moderation_logger.addHandler(moderation_handler)
    moderation_logger.propagate = False

    security_handler = TimedRotatingFileHandler(
        os.path.join(log_dir, LogConfig.SECURITY_LOG_FILE),
        when='midnight',
        interval=1,
        backupCount=365
    )
    security_handler.setLevel(logging.WARNING)
    security_handler.setFormatter(logging.Formatter(LogConfig.DETAILED_FORMAT))

    security_logger = logging.getLogger('security')
    security_logger.setLevel(logging.WARNING)
    security_logger.handlers.clear()
    security_logger.addHandler(security_handler)
    security_logger.propagate = False

    # Module loggers (logging.getLogger(__name__)) share the app log files
    package_logger = logging.getLogger('app')
    package_logger.setLevel(log_level)
    package_logger.handlers.clear()
    package_logger.addHandler(app_handler)
    package_logger.addHandler(error_handler)

    app.logger.info('=' * 80)
    app.logger.info(f"{app.config.get('SITE_NAME', 'Beekeeper')} Application Starting")
    app.logger.info(f'Environment: {env}')
    app.logger.info(f'Log Level: {logging.getLevelName(log_level)}')
    app.logger.info(f'Log Directory: {log_dir}')
    app.logger.info('=' * 80)


def get_moderation_logger():
    return logging.getLogger('moderation')


def get_security_logger():
    return logging.getLogger('security')


def log_moderation_action(moderator_id, action, target_type, target_id, reason='', **kwargs):
    """Record one moderator action (block, lock, ban, status change...) in the moderation log."""
    logger = get_moderation_logger()

    metadata = ' | '.join([f'{k}={v}' for k, v in kwargs.items()])
    log_message = (
        f"MODERATOR:{moderator_id} | ACTION:{action} | "
        f"TARGET:{target_type}#{target_id}"
    )
    if reason:
        log_message += f" | REASON:{reason}"
    if metadata:
        log_message += f" | {metadata}"

    logger.info(log_message)


def log_security_event(event_type, user_id=None, ip_address=None, description='', severity='WARNING'):
    logger = get_security_logger()

    log_message = f"EVENT:{event_type}"
    if user_id:
        log_message += f" | USER:{user_id}"
    if ip_address:
        log_message += f" | IP:{ip_address}"
    if description:
        log_message += f" | DESC:{description}"

    log_func = getattr(logger, severity.lower(), logger.warning)
    log_func(log_message)


def log_error_with_context(error, context=None):
    logger = logging.getLogger(__name__)

    log_message = f"ERROR: {str(error)}"
    if context:
        context_str = ' | '.join([f'{k}={v}' for k, v in context.items()])
        log_message += f" | CONTEXT: {context_str}"

    logger.error(log_message, exc_info=True)
