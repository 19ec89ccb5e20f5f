"""
Email Routes Blueprint

- /api/email/job-completion: Notify the office that a job was completed
"""

import smtplib
from flask import Blueprint, request, jsonify, current_app
import logging

from auth import login_required
from services.notification_service import EmailNotConfigured
from validators import validate_completion_email_request

logger = logging.getLogger(__name__)

# Create blueprint
email_bp = Blueprint('email_bp', __name__)


@email_bp.route('/api/email/job-completion', methods=['POST'])
@login_required
def send_completion_email():
    """Send the job completion email with completed forms and attached photos"""
    try:
        data = request.get_json(silent=True) or {}
        is_valid, error = validate_completion_email_request(data)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        result = current_app.notification_service.send_job_completion(
            data['jobId'], data['claimNumber'],
            job_title=data.get('jobTitle') or '',
            forms=data.get('forms') or [],
            photos=data.get('photos') or [],
        )
        return jsonify({'success': True, 'message': 'Completion email sent successfully', **result})

    except EmailNotConfigured as e:
        logger.error(f"Completion email skipped: {e}")
        return jsonify({'success': False, 'error': 'Email is not configured'}), 503
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending completion email: {e}")
        return jsonify({'success': False, 'error': 'Failed to send completion email', 'details': str(e)}), 500
    except Exception as e:
        logger.error(f"Unexpected error in completion email: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
