# Guest Check-in System - App Package
"""
Main application package for the Guest Check-in System.
An administrator manages the guest list, issues QR codes and badge cards,
and admits guests at the entrance by scanning their codes.
"""

__version__ = "1.0.0"
__author__ = "Guest Check-in Team"
__description__ = "A Flask-based guest list and entrance check-in tool using QR codes"

import logging

from flask import Flask

from .config import init_config
from .modules.auth_manager import AuthManager
from .modules.card_generator import CardGenerator
from .modules.invitee_manager import InviteeManager
from .modules.invitee_store import create_invitee_store
from .modules.qr_generator import QRGenerator
from .modules.report_generator import ReportGenerator
from .modules.scan_manager import ScanManager


def create_app(config_name=None, overrides=None, store=None):
    """
    Build the Flask application.

    Args:
        config_name (str): Key of guestlist.config.config, defaults to FLASK_ENV
        overrides (dict): Config values applied after the config class
        store: Pre-built InviteeStore, otherwise selected from configuration

    Returns:
        Flask: Configured application
    """
    app = Flask(__name__)
    init_config(app, config_name)
    if overrides:
        app.config.update(overrides)

    logger = logging.getLogger(__name__)

    # Storage backend is chosen once here and injected everywhere else
    if store is None:
        store = create_invitee_store(app.config)

    qr_generator = QRGenerator(
        box_size=app.config['QR_CODE_SIZE'],
        border=app.config['QR_CODE_BORDER'],
        error_correct=app.config['QR_CODE_ERROR_CORRECT']
    )
    invitee_manager = InviteeManager(store)

    app.extensions['guestlist'] = {
        'store': store,
        'qr_generator': qr_generator,
        'invitee_manager': invitee_manager,
        'scan_manager': ScanManager(
            invitee_manager,
            qr_generator,
            app.config['SCAN_DUPLICATE_WINDOW_SECONDS']
        ),
        'auth_manager': AuthManager(
            app.config['ADMIN_USERNAME'],
            app.config['ADMIN_PASSWORD']
        ),
        'card_generator': CardGenerator(
            qr_generator,
            width=app.config['CARD_WIDTH'],
            height=app.config['CARD_HEIGHT'],
            qr_size=app.config['CARD_QR_SIZE']
        ),
        'report_generator': ReportGenerator()
    }

    from .views import auth_bp, main_bp, register_error_handlers
    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    register_error_handlers(app)

    @app.teardown_appcontext
    def close_store(exception):
        store.close()

    logger.info(f"Guest check-in system ready ({type(store).__name__})")
    return app


__all__ = [
    'create_app',
    'AuthManager',
    'CardGenerator',
    'InviteeManager',
    'QRGenerator',
    'ReportGenerator',
    'ScanManager'
]
