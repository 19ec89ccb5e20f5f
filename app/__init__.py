"""
JobFlow - Application Package

This package contains the modular backend structure:
- api/: HTTP route handlers (Flask Blueprints) and Socket.IO chat events
- utils/: Shared utility functions

The app factory and core Flask setup remain in app_init.py at the project root.
In-memory repositories and external-service clients live in the top-level
services package.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.auth_routes import auth_bp
from app.api.jobs import jobs_bp
from app.api.dashboard import dashboard_bp
from app.api.forms import forms_bp
from app.api.admin_forms import admin_forms_bp
from app.api.photos import photos_bp
from app.api.email import email_bp
from app.api.chat import chat_bp, socketio


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from create_app after the services are attached.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(auth_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(forms_bp)
    app.register_blueprint(admin_forms_bp)
    app.register_blueprint(photos_bp)
    app.register_blueprint(email_bp)
    app.register_blueprint(chat_bp)
    logger.info(f"✅ Registered {len(app.blueprints)} blueprints")


__all__ = [
    'register_blueprints', 'socketio', 'auth_bp', 'jobs_bp', 'dashboard_bp', 'forms_bp',
    'admin_forms_bp', 'photos_bp', 'email_bp', 'chat_bp',
]
