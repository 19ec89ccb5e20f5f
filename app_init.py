"""
Application Initialization Module
Initializes the Flask app with its infrastructure, services and Socket.IO
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
from auth import seed_demo_users
from app import register_blueprints, socketio
from app.utils.helpers import load_json_file
from services import (
    UsersRepository, JobsRepository, CompaniesRepository, FormsRepository,
    PhotosRepository, PhotoStorage, ChatService, NotificationService, PdfTemplateStore,
)
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None, config_overrides=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Configuration class (defaults to the FLASK_ENV selection)
        config_overrides: Extra settings applied after the class, e.g. in tests

    Returns:
        Configured Flask application instance
    """
    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class or get_config())
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("🚀 Initializing JobFlow Application")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    # Create required directories
    create_required_directories(app)

    # In-memory stores and external service clients
    initialize_services(app)
    seed_data(app)

    # Realtime chat
    initialize_socketio(app)

    register_blueprints(app)

    # Register health check endpoints
    register_health_checks(app)

    logger.info("✅ Application initialization complete")
    logger.info("=" * 60)

    return app


def create_required_directories(app):
    """
    Create all required application directories

    Args:
        app: Flask application instance
    """
    directories = [
        app.config['PDF_FORMS_FOLDER'],
        'logs'
    ]

    for directory in directories:
        try:
            os.makedirs(directory, exist_ok=True)
            logger.debug(f"Directory ensured: {directory}")
        except OSError as e:
            logger.error(f"Failed to create directory {directory}: {e}")

    logger.info(f"✅ Created {len(directories)} required directories")


def initialize_services(app):
    """
    Attach repositories and service clients to the app

    Args:
        app: Flask application instance
    """
    config = app.config

    app.users_repo = UsersRepository(hash_method=config['PASSWORD_HASH_METHOD'])
    app.jobs_repo = JobsRepository()
    app.companies_repo = CompaniesRepository()
    app.forms_repo = FormsRepository(max_submissions_per_form=config['MAX_SUBMISSIONS_PER_FORM'])
    app.photos_repo = PhotosRepository(max_per_job=config['MAX_PHOTOS_PER_JOB'])
    app.pdf_templates = PdfTemplateStore(config['PDF_FORMS_FOLDER'])
    app.chat_service = ChatService(
        history_limit=config['CHAT_HISTORY_LIMIT'],
        replay_size=config['CHAT_HISTORY_REPLAY'],
        notify_roles=config['CHAT_NOTIFY_ROLES'],
    )

    app.photo_storage = PhotoStorage.from_config(config)
    if app.photo_storage.is_configured:
        logger.info(f"✅ Photo storage: s3://{app.photo_storage.bucket}/{app.photo_storage.folder_prefix}")
    else:
        logger.warning("⚠️  Photo storage not configured - set S3_BUCKET")

    app.notification_service = NotificationService.from_config(config)
    if app.notification_service.email_enabled:
        logger.info(f"✅ Email configured via {config['SMTP_HOST']}:{config['SMTP_PORT']}")
    else:
        logger.warning("⚠️  Email not configured - set SMTP_HOST and SMTP_USER")


def seed_data(app):
    """
    Load predefined form templates and demo users

    Args:
        app: Flask application instance
    """
    templates = load_json_file(app.config['PREDEFINED_FORMS_FILE'], default=[])
    app.forms_repo.load_templates(templates)
    seed_demo_users(app.users_repo)


def initialize_socketio(app):
    """
    Bind the shared Socket.IO server to this app

    Args:
        app: Flask application instance
    """
    origins = app.config.get('CORS_ORIGINS', ['*'])
    socketio.init_app(
        app,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        cors_allowed_origins='*' if '*' in origins else origins,
    )
    logger.info(f"✅ Socket.IO initialized (async_mode={app.config['SOCKETIO_ASYNC_MODE']})")
