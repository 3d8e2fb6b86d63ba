# Guest Check-in System Configuration

import os
import logging
from datetime import timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).parent.parent.absolute()

LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'guestlist-secret-key-2026'

    # Administrator credentials (single operator)
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME') or 'jesusandia124'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'andia124'

    # Remote store (Supabase / PostgREST). Left blank -> local store only
    SUPABASE_URL = os.environ.get('SUPABASE_URL', '')
    SUPABASE_KEY = os.environ.get('SUPABASE_ANON_KEY', '')
    REMOTE_TABLE = 'invitados'
    REMOTE_STORE_TIMEOUT = 30  # seconds

    # Local store
    LOCAL_STORE_PATH = BASE_DIR / 'database' / 'guestlist.db'
    LOCAL_STORE_KEY = 'invitados_sistema_v1'
    SEED_SAMPLE_GUESTS = _env_flag('SEED_SAMPLE_GUESTS', 'True')

    # QR Code Configuration
    QR_CODE_SIZE = 10
    QR_CODE_BORDER = 4
    QR_CODE_ERROR_CORRECT = 'M'  # Medium error correction

    # Badge card Configuration
    CARD_WIDTH = 640
    CARD_HEIGHT = 960
    CARD_QR_SIZE = 300

    # Scanner Configuration
    SCAN_DUPLICATE_WINDOW_SECONDS = 3

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = BASE_DIR / 'logs' / 'guestlist.log'
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5

    # Development Configuration
    DEBUG = _env_flag('DEBUG')
    TESTING = False

    @classmethod
    def init_app(cls, app):
        """Initialize application configuration"""
        app.config.from_object(cls)

        # Create the local store directory
        local_store_path = str(app.config['LOCAL_STORE_PATH'])
        if local_store_path != ':memory:':
            Path(local_store_path).parent.mkdir(parents=True, exist_ok=True)

        logging.basicConfig(
            level=getattr(logging, app.config['LOG_LEVEL'], logging.INFO),
            format=LOG_FORMAT
        )


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False

    LOCAL_STORE_PATH = BASE_DIR / 'database' / 'guestlist_dev.db'

    # More verbose logging
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True

    # Never talk to a real remote store from tests
    SUPABASE_URL = ''
    SUPABASE_KEY = ''
    REMOTE_STORE_TIMEOUT = 1

    LOCAL_STORE_PATH = ':memory:'

    SEED_SAMPLE_GUESTS = False
    SCAN_DUPLICATE_WINDOW_SECONDS = 0


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SESSION_COOKIE_SECURE = True  # Requires HTTPS
    SEED_SAMPLE_GUESTS = False

    LOCAL_STORE_PATH = BASE_DIR / 'database' / 'guestlist_prod.db'

    LOG_LEVEL = 'WARNING'

    @classmethod
    def init_app(cls, app):
        super().init_app(app)

        # Setup file logging
        if not app.debug:
            log_file = Path(app.config['LOG_FILE'])
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=cls.LOG_MAX_BYTES,
                backupCount=cls.LOG_BACKUP_COUNT
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            file_handler.setLevel(logging.INFO)
            app.logger.addHandler(file_handler)

            app.logger.setLevel(logging.INFO)
            app.logger.info('Guest check-in system startup')


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on environment variable"""
    return config.get(os.environ.get('FLASK_ENV', 'default'), DevelopmentConfig)


def validate_config(app_config):
    """Validate configuration settings"""
    errors = []

    if not app_config.get('SECRET_KEY'):
        errors.append("SECRET_KEY must be set")

    if not app_config.get('ADMIN_USERNAME') or not app_config.get('ADMIN_PASSWORD'):
        errors.append("ADMIN_USERNAME and ADMIN_PASSWORD must both be set")

    # Remote store needs both values or neither
    if bool(app_config.get('SUPABASE_URL')) != bool(app_config.get('SUPABASE_KEY')):
        errors.append("SUPABASE_URL and SUPABASE_ANON_KEY must be provided together")

    if not app_config.get('LOCAL_STORE_KEY'):
        errors.append("LOCAL_STORE_KEY must not be empty")

    return errors


def init_config(app, config_name=None):
    """Initialize application with configuration"""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')

    config_class = config.get(config_name, DevelopmentConfig)
    config_class.init_app(app)

    errors = validate_config(app.config)
    if errors:
        for error in errors:
            app.logger.error(f"Configuration error: {error}")
        raise RuntimeError("Configuration validation failed")

    return config_class
