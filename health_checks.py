"""
Health Check & Monitoring Endpoints
Provides endpoints for deployment health checks and monitoring
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify, current_app
import logging

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

# Track application start time
START_TIME = time.time()

SERVICE_NAME = 'jobflow'


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic system metrics

    Returns:
        Dictionary of system metrics
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': process.memory_info().rss / 1024 / 1024,
            'memory_percent': process.memory_percent(),
            'threads': process.num_threads(),
            'open_files': len(process.open_files()),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    """
    Get application uptime

    Returns:
        Dictionary with uptime information
    """
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_minutes': round(uptime_seconds / 60, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_external_services(app) -> Dict[str, bool]:
    """
    Check if the object store and SMTP are configured

    Args:
        app: Flask application instance

    Returns:
        Dictionary of service availability
    """
    return {
        'photo_storage': app.photo_storage.is_configured,
        'email': app.notification_service.email_enabled,
    }


def check_filesystem(app) -> Dict[str, Dict[str, bool]]:
    """
    Check if required directories exist and are writable

    Returns:
        Dictionary of filesystem checks
    """
    required_dirs = {
        'pdf_forms': app.config['PDF_FORMS_FOLDER'],
        'logs': 'logs',
    }

    filesystem_status = {}

    for name, dir_path in required_dirs.items():
        exists = os.path.isdir(dir_path)
        writable = os.access(dir_path, os.W_OK) if exists else False

        filesystem_status[name] = {
            'exists': exists,
            'writable': writable,
            'healthy': exists and writable
        }

    return filesystem_status


def get_app_counts(app) -> Dict[str, int]:
    """In-memory collection sizes"""
    return {
        'users': app.users_repo.count(),
        'jobs': app.jobs_repo.stats()['totalJobs'],
        'forms': app.forms_repo.count(),
        'chat_messages': app.chat_service.message_count(),
        'connected_users': len(app.chat_service.connected_users()),
    }


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 if photo storage, email and directories are usable
    """
    try:
        services = check_external_services(current_app)
        filesystem = check_filesystem(current_app)
        filesystem_healthy = all(
            status['healthy'] for status in filesystem.values()
        )

        # Overall readiness
        is_ready = all(services.values()) and filesystem_healthy

        response = {
            'status': 'ready' if is_ready else 'not_ready',
            'timestamp': datetime.utcnow().isoformat(),
            'checks': {
                'services': services,
                'filesystem': filesystem,
                'filesystem_healthy': filesystem_healthy
            }
        }

        status_code = 200 if is_ready else 503

        return jsonify(response), status_code

    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': datetime.utcnow().isoformat()
        }), 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Basic metrics endpoint
    Returns system metrics and in-memory collection sizes
    """
    try:
        response = {
            'timestamp': datetime.utcnow().isoformat(),
            'service': SERVICE_NAME,
            'version': '1.0.0',
            'environment': os.environ.get('FLASK_ENV', 'production'),
            'uptime': get_uptime(),
            'system': get_system_metrics(),
            'services': check_external_services(current_app),
            'counts': get_app_counts(current_app),
            'python_version': sys.version.split()[0]
        }

        return jsonify(response), 200

    except Exception as e:
        logger.error(f"Metrics collection failed: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e),
            'timestamp': datetime.utcnow().isoformat()
        }), 500


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint
    Returns immediate response for basic connectivity tests
    """
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered")
    logger.info("Available endpoints: /api/health, /api/ready, /api/metrics, /api/ping")
