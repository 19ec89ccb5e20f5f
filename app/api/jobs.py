"""
Jobs Routes Blueprint

Handles job management and claim text parsing:
- /api/jobs: List/create jobs
- /api/jobs/<job_id>: Get/update/delete a job
- /api/jobs/check-exists: Duplicate claim/policy lookup
- /api/jobs/parse: Extract claim fields from pasted text
"""

from flask import Blueprint, request, jsonify, current_app
import logging

import auth
from auth import login_required, admin_required
from services.claim_parser import parse_job_text, suggest_job
from services.jobs_repository import STAFF_EDITABLE_FIELDS
from validators import (
    JOB_TEXT_FIELDS,
    validate_create_job_request,
    validate_job_fields,
    validate_string_fields,
)

logger = logging.getLogger(__name__)

# Create blueprint
jobs_bp = Blueprint('jobs_bp', __name__)


def _can_access(user, job):
    return auth.can_view_all_jobs(user) or job.get('assignedTo') == user['id']


# ============================================================================
# JOB CRUD
# ============================================================================

@jobs_bp.route('/api/jobs', methods=['GET'])
@login_required
def get_jobs():
    """List jobs; staff only see jobs assigned to them"""
    try:
        user = auth.get_current_user()
        assigned_to = request.args.get('assignedTo') or None
        if not auth.can_view_all_jobs(user):
            assigned_to = user['id']

        jobs = current_app.jobs_repo.list_jobs(
            assigned_to=assigned_to,
            status=request.args.get('status') or None,
        )
        return jsonify({'success': True, 'jobs': jobs})
    except Exception as e:
        logger.error(f"Error listing jobs: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>', methods=['GET'])
@login_required
def get_job(job_id):
    job = current_app.jobs_repo.get_job(job_id)
    if not job:
        return jsonify({'success': False, 'error': 'Job not found'}), 404
    if not _can_access(auth.get_current_user(), job):
        return jsonify({'success': False, 'error': 'Access denied'}), 403
    return jsonify({'success': True, 'job': job})


@jobs_bp.route('/api/jobs', methods=['POST'])
@admin_required
def create_job():
    """Create a job, optionally merging fields parsed from ``rawText``"""
    try:
        data = request.get_json(silent=True) or {}
        is_valid, error = validate_string_fields(data, JOB_TEXT_FIELDS)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        parsed = None
        if data.get('rawText'):
            parsed = parse_job_text(data['rawText'])
            suggested = suggest_job(data['rawText'], parsed, current_app.companies_repo.list_companies())
            for key in ('title', 'description', 'companyId'):
                if not data.get(key) and suggested.get(key):
                    data[key] = suggested[key]

        is_valid, error = validate_create_job_request(data)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        if not current_app.users_repo.get_user(data['assignedTo']):
            return jsonify({'success': False, 'error': 'Assigned user not found'}), 400

        job = current_app.jobs_repo.create_job(data, assigned_by=auth.get_current_user()['id'], parsed=parsed)
        return jsonify({'success': True, 'job': job}), 201

    except Exception as e:
        logger.error(f"Error creating job: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>', methods=['PUT'])
@login_required
def update_job(job_id):
    """Admins update any field; the assigned staff member updates status and notes"""
    try:
        user = auth.get_current_user()
        job = current_app.jobs_repo.get_job(job_id)
        if not job:
            return jsonify({'success': False, 'error': 'Job not found'}), 404

        data = request.get_json(silent=True) or {}

        if not auth.is_admin(user):
            if job.get('assignedTo') != user['id']:
                return jsonify({'success': False, 'error': 'Access denied'}), 403
            data = {k: v for k, v in data.items() if k in STAFF_EDITABLE_FIELDS}
            if not data:
                return jsonify({
                    'success': False,
                    'error': f"Only {', '.join(STAFF_EDITABLE_FIELDS)} can be updated"
                }), 400

        is_valid, error = validate_job_fields(data)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        if 'assignedTo' in data and not current_app.users_repo.get_user(data['assignedTo']):
            return jsonify({'success': False, 'error': 'Assigned user not found'}), 400

        updated = current_app.jobs_repo.update_job(job_id, data)
        if updated['status'] != job['status']:
            logger.info(f"Job {job_id} status {job['status']} -> {updated['status']} by {user['username']}")
        return jsonify({'success': True, 'job': updated})

    except Exception as e:
        logger.error(f"Error updating job: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>', methods=['DELETE'])
@admin_required
def delete_job(job_id):
    try:
        if not current_app.jobs_repo.delete_job(job_id):
            return jsonify({'success': False, 'error': 'Job not found'}), 404
        return jsonify({'success': True})
    except Exception as e:
        logger.error(f"Error deleting job: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# CLAIM HELPERS
# ============================================================================

@jobs_bp.route('/api/jobs/check-exists', methods=['GET'])
@login_required
def check_job_exists():
    """Check whether a job already carries the given claim or policy number"""
    claim_no = request.args.get('claimNo', '')
    policy_no = request.args.get('policyNo', '')
    if not claim_no.strip() and not policy_no.strip():
        return jsonify({'success': False, 'error': 'claimNo or policyNo is required'}), 400

    job = current_app.jobs_repo.find_existing(claim_no=claim_no, policy_no=policy_no)
    if job:
        return jsonify({'success': True, 'exists': True, 'job': job})
    return jsonify({'success': True, 'exists': False})


@jobs_bp.route('/api/jobs/parse', methods=['POST'])
@login_required
def parse_job():
    """Parse pasted claim text into fields and a suggested job"""
    try:
        data = request.get_json(silent=True) or {}
        raw_text = data.get('rawText') or ''
        if not isinstance(raw_text, str) or not raw_text.strip():
            return jsonify({'success': False, 'error': 'rawText is required'}), 400

        parsed = parse_job_text(raw_text)
        suggested = suggest_job(raw_text, parsed, current_app.companies_repo.list_companies())
        return jsonify({'success': True, 'parsed': parsed, 'suggested': suggested})

    except Exception as e:
        logger.error(f"Error parsing job text: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
