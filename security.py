"""
Security Utilities & Middleware
Provides security hardening for production deployment
"""
import os
import secrets
from typing import Dict, Any, Optional
from urllib.parse import urlparse
from flask import Flask, request, jsonify, Response
from flask_cors import CORS
import logging

logger = logging.getLogger(__name__)

QUIET_PATHS = ('/api/health', '/api/ping')


class SecurityConfig:
    """Security configuration and validation"""

    @staticmethod
    def generate_secret_key() -> str:
        """Generate a cryptographically secure hex secret key"""
        return secrets.token_hex(32)

    @staticmethod
    def validate_secret_key(secret_key: str) -> bool:
        """
        Validate that secret key is sufficiently secure

        Args:
            secret_key: Secret key to validate

        Returns:
            True if key is secure, False otherwise
        """
        if not secret_key:
            return False

        if len(secret_key) < 32:
            logger.warning("Secret key is too short (minimum 32 characters)")
            return False

        weak_keys = ['password', '12345', 'changeme']
        if any(weak in secret_key.lower() for weak in weak_keys):
            logger.warning("Secret key appears to be weak or default")
            return False

        return True

    @staticmethod
    def ensure_secret_key(config: Dict[str, Any]) -> str:
        """
        Ensure a secure secret key is configured

        Args:
            config: Application configuration dictionary

        Returns:
            Secure secret key
        """
        secret_key = config.get('SECRET_KEY')

        if not secret_key or not SecurityConfig.validate_secret_key(secret_key):
            if os.environ.get('FLASK_ENV') == 'production':
                logger.error("No secure SECRET_KEY in production! Generating one...")

            secret_key = SecurityConfig.generate_secret_key()
            logger.warning(f"Generated new secret key (length: {len(secret_key)})")

        return secret_key


def photo_origin(config: Dict[str, Any]) -> Optional[str]:
    """Origin job photos are served from: the public base URL, else the S3 bucket host."""
    public_base_url = config.get('S3_PUBLIC_BASE_URL')
    if public_base_url:
        parsed = urlparse(public_base_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    bucket = config.get('S3_BUCKET')
    if bucket:
        return f"https://{bucket}.s3.{config.get('AWS_REGION') or 'af-south-1'}.amazonaws.com"
    return None


def build_content_security_policy(config: Dict[str, Any]) -> str:
    """
    Build the Content-Security-Policy for API responses and served PDFs

    Args:
        config: Application configuration dictionary

    Returns:
        CSP header value allowing the photo origin and Socket.IO connections
    """
    img_sources = ["'self'", 'data:', 'blob:']
    origin = photo_origin(config)
    if origin:
        img_sources.append(origin)

    return (
        "default-src 'self'; "
        f"img-src {' '.join(img_sources)}; "
        "connect-src 'self' ws: wss:; "
        "object-src 'self'; "
        "frame-ancestors 'self'"
    )


def setup_security_headers(app: Flask, config: Dict[str, Any]):
    """
    Add security headers to all responses

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    csp = build_content_security_policy(config)

    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(self), microphone=(), camera=(self)'
        response.headers['Content-Security-Policy'] = csp

        # Authenticated responses are never cached
        if request.headers.get('Authorization'):
            response.headers['Cache-Control'] = 'no-store'

        # HTTPS only in production
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the REST API

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_methods = config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])
    cors_headers = config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization'])

    if not app.debug and '*' in cors_origins:
        logger.warning("⚠️  Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        origins=cors_origins,
        methods=cors_methods,
        allow_headers=cors_headers,
        supports_credentials=True,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def sanitize_error_response(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    Sanitize error response to prevent information leakage

    Args:
        error: Exception object
        include_details: Whether to include detailed error info (dev only)

    Returns:
        Sanitized error response dictionary
    """
    error_response = {
        'success': False,
        'error': 'Internal Server Error',
        'message': 'An error occurred while processing your request'
    }

    if include_details:
        error_response['details'] = str(error)
        error_response['type'] = type(error).__name__

    return error_response


def _error(status: int, title: str, message: str):
    return jsonify({'success': False, 'error': title, 'message': message}), status


def setup_error_handlers(app: Flask):
    """
    Register JSON error handlers that don't expose stack traces

    Args:
        app: Flask application instance
    """
    include_details = app.debug

    @app.errorhandler(400)
    def bad_request(error):
        return _error(400, 'Bad Request',
                      'The request could not be understood or was missing required parameters')

    @app.errorhandler(401)
    def unauthorized(error):
        return _error(401, 'Unauthorized', 'Authentication required')

    @app.errorhandler(403)
    def forbidden(error):
        return _error(403, 'Forbidden', 'You do not have permission to access this resource')

    @app.errorhandler(404)
    def not_found(error):
        return _error(404, 'Not Found', 'The requested resource was not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error(405, 'Method Not Allowed', 'The method is not allowed for the requested URL')

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return _error(413, 'Payload Too Large', 'The uploaded file or request is too large')

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify(sanitize_error_response(error, include_details)), 500

    @app.errorhandler(503)
    def service_unavailable(error):
        return _error(503, 'Service Unavailable',
                      'The service is temporarily unavailable. Please try again later')

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """
    Setup request/response logging

    Args:
        app: Flask application instance
    """
    @app.before_request
    def log_request():
        if request.path in QUIET_PATHS:
            return

        logger.info(
            f"Request: {request.method} {request.path} "
            f"from {request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path in QUIET_PATHS:
            return response

        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={response.status_code} "
            f"size={response.content_length}"
        )

        return response

    logger.info("Request logging configured")


def validate_environment_variables(required_vars: list, app: Flask):
    """
    Validate that required environment variables are set

    Args:
        required_vars: List of required environment variable names
        app: Flask application instance
    """
    missing_vars = [var for var in required_vars if not os.environ.get(var)]

    for var in missing_vars:
        logger.warning(f"Missing environment variable: {var}")

    if missing_vars and not app.debug:
        logger.error(f"Missing required environment variables in production: {missing_vars}")

    return len(missing_vars) == 0


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    logger.info("Configuring application security...")

    app.secret_key = SecurityConfig.ensure_secret_key(config)

    setup_cors(app, config)
    setup_security_headers(app, config)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug:
        validate_environment_variables(
            ['SECRET_KEY', 'S3_BUCKET', 'SMTP_HOST'],
            app
        )

    logger.info("✅ Security configuration complete")
