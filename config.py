"""
Centralized Configuration for JobFlow
Manages environment-specific settings, secrets, and service configurations.
"""
import os
from datetime import timedelta


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25MB max request body

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Realtime (Socket.IO)
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')
    CHAT_HISTORY_LIMIT = int(os.environ.get('CHAT_HISTORY_LIMIT', '1000'))
    CHAT_HISTORY_REPLAY = int(os.environ.get('CHAT_HISTORY_REPLAY', '50'))
    CHAT_NOTIFY_ROLES = ['admin', 'apollo']

    # File Storage Paths
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    PDF_FORMS_FOLDER = os.environ.get('PDF_FORMS_FOLDER', os.path.join('public', 'forms'))
    PREDEFINED_FORMS_FILE = os.path.join(BASE_DIR, 'data', 'predefined_forms.json')

    # Upload limits
    MAX_PHOTOS_PER_JOB = 13
    MAX_PHOTO_SIZE = 10 * 1024 * 1024  # 10MB
    MAX_PDF_SIZE = 10 * 1024 * 1024  # 10MB
    PHOTO_MAX_DIMENSION = 1200
    PHOTO_JPEG_QUALITY = 85

    # Forms
    MAX_SUBMISSIONS_PER_FORM = 3

    # Object storage (S3) for job photos
    S3_BUCKET = os.environ.get('S3_BUCKET', '')
    AWS_REGION = os.environ.get('AWS_REGION', 'af-south-1')
    S3_PUBLIC_BASE_URL = os.environ.get('S3_PUBLIC_BASE_URL', '')
    PHOTO_FOLDER_PREFIX = os.environ.get('PHOTO_FOLDER_PREFIX', 'bbp-jobs')

    # Outbound email
    SMTP_HOST = os.environ.get('SMTP_HOST', '')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_USER = os.environ.get('SMTP_USER', '')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD', '')
    SMTP_USE_TLS = os.environ.get('SMTP_USE_TLS', 'true').lower() == 'true'
    FROM_EMAIL = os.environ.get('FROM_EMAIL', '"BBP BlockBusters" <info@bbplumbers.co.za>')
    COMPLETION_EMAIL_TO = os.environ.get('COMPLETION_EMAIL_TO', 'info@bbplumbers.co.za')
    COMPANY_SIGNATURE = 'BBP BlockBusters & Partners (PTY) Ltd.'
    PHOTO_FETCH_TIMEOUT = int(os.environ.get('PHOTO_FETCH_TIMEOUT', '15'))  # seconds

    # Auth
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256'
    TOKEN_PREFIX = 'mock-token-'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://jobflow.bbplumbers.co.za').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    SECRET_KEY = 'test-secret-key-minimum-32-chars-long-for-security'
    # Cheap hashes keep the seeded users fast to build per test
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    S3_BUCKET = 'test-bucket'
    SMTP_HOST = 'smtp.test.local'
    SMTP_USER = 'jobs@test.local'
    SMTP_PASSWORD = 'test-password'
    LOG_FILE = 'test.log'


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
