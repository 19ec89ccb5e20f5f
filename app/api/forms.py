"""
Forms Routes Blueprint

Handles dynamic form templates and per-job submissions:
- /api/forms: List/create form templates
- /api/forms/<form_id>: Get/update/delete a template
- /api/jobs/<job_id>/forms/<form_id>/prefill: Auto-filled initial values
- /api/form-submissions: Submit / list submissions
- /api/form-submissions/<submission_id>[/pdf]: Get one submission, or render it
"""

import io
import json
import logging
from flask import Blueprint, request, jsonify, current_app, send_file

import auth
from auth import login_required, admin_required
from services.form_autofill import build_prefill, fields_by_section, visible_fields
from app.utils.pdf_utils import render_submission_pdf
from validators import (
    FORM_TEXT_FIELDS,
    ValidationError,
    format_validation_error,
    sanitize_filename,
    validate_form_definition,
    validate_form_submission,
    validate_string_fields,
)

logger = logging.getLogger(__name__)

# Create blueprint
forms_bp = Blueprint('forms_bp', __name__)


def _fields_from_payload(data):
    """Field list from ``fields`` or from a JSON ``rawSchema`` string."""
    if 'rawSchema' in data and data['rawSchema']:
        raw = data['rawSchema']
        try:
            schema = json.loads(raw) if isinstance(raw, str) else raw
        except json.JSONDecodeError as e:
            raise ValidationError(f"rawSchema is not valid JSON: {e.msg}", field='rawSchema')
        if isinstance(schema, dict):
            schema = schema.get('fields', [])
        return schema
    return data.get('fields')


def _job_for_user(job_id):
    """Return (job, error_response) for a job the current user may work on."""
    job = current_app.jobs_repo.get_job(job_id)
    if not job:
        return None, (jsonify({'success': False, 'error': 'Job not found'}), 404)
    user = auth.get_current_user()
    if not auth.can_view_all_jobs(user) and job.get('assignedTo') != user['id']:
        return None, (jsonify({'success': False, 'error': 'Access denied'}), 403)
    return job, None


# ============================================================================
# FORM TEMPLATES
# ============================================================================

@forms_bp.route('/api/forms', methods=['GET'])
@login_required
def get_forms():
    """List forms, hiding company-restricted forms from other companies"""
    forms = current_app.forms_repo.list_forms(company_id=request.args.get('companyId') or None)
    return jsonify({'success': True, 'forms': forms})


@forms_bp.route('/api/forms/<form_id>', methods=['GET'])
@login_required
def get_form(form_id):
    form = current_app.forms_repo.get_form(form_id)
    if not form:
        return jsonify({'success': False, 'error': 'Form not found'}), 404
    return jsonify({'success': True, 'form': form})


@forms_bp.route('/api/forms', methods=['POST'])
@admin_required
def create_form():
    try:
        data = request.get_json(silent=True) or {}
        is_valid, error = validate_string_fields(data, FORM_TEXT_FIELDS)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400
        if not (data.get('name') or '').strip():
            return jsonify({'success': False, 'error': 'Form name is required'}), 400

        fields = _fields_from_payload(data)
        is_valid, error = validate_form_definition(fields if fields is not None else [])
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400
        data['fields'] = fields or []

        form = current_app.forms_repo.create_form(data, created_by=auth.get_current_user()['id'])
        return jsonify({'success': True, 'form': form}), 201

    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Error creating form: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@forms_bp.route('/api/forms/<form_id>', methods=['PUT'])
@admin_required
def update_form(form_id):
    try:
        data = request.get_json(silent=True) or {}
        is_valid, error = validate_string_fields(data, FORM_TEXT_FIELDS)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400
        if 'fields' in data or data.get('rawSchema'):
            fields = _fields_from_payload(data)
            is_valid, error = validate_form_definition(fields)
            if not is_valid:
                return jsonify({'success': False, 'error': error}), 400
            data['fields'] = fields

        form = current_app.forms_repo.update_form(form_id, data)
        if not form:
            return jsonify({'success': False, 'error': 'Form not found'}), 404
        return jsonify({'success': True, 'form': form})

    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Error updating form: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@forms_bp.route('/api/forms/<form_id>', methods=['DELETE'])
@admin_required
def delete_form(form_id):
    if not current_app.forms_repo.delete_form(form_id):
        return jsonify({'success': False, 'error': 'Form not found'}), 404
    return jsonify({'success': True})


@forms_bp.route('/api/jobs/<job_id>/forms/<form_id>/prefill', methods=['GET'])
@login_required
def prefill_form(job_id, form_id):
    """Initial values for a job's copy of a form"""
    job, error_response = _job_for_user(job_id)
    if error_response:
        return error_response

    form = current_app.forms_repo.get_form(form_id)
    if not form:
        return jsonify({'success': False, 'error': 'Form not found'}), 404

    staff = current_app.users_repo.get_user(job['assignedTo']) if job.get('assignedTo') else None
    values = build_prefill(form, job, staff)
    return jsonify({
        'success': True,
        'formId': form_id,
        'jobId': job_id,
        'values': values,
        'visibleFields': [f['id'] for f in visible_fields(form, values)],
        'sections': fields_by_section(form),
    })


# ============================================================================
# SUBMISSIONS
# ============================================================================

@forms_bp.route('/api/form-submissions', methods=['POST'])
@login_required
def submit_form():
    """Validate and store a form submission (at most 3 per job and form)"""
    try:
        data = request.get_json(silent=True) or {}
        job_id = data.get('jobId')
        form_id = data.get('formId')
        if not job_id or not form_id:
            return jsonify({'success': False, 'error': 'jobId and formId are required'}), 400

        job, error_response = _job_for_user(job_id)
        if error_response:
            return error_response

        form = current_app.forms_repo.get_form(form_id)
        if not form:
            return jsonify({'success': False, 'error': 'Form not found'}), 404

        values = data.get('data') or {}
        if not isinstance(values, dict):
            return jsonify({'success': False, 'error': 'data must be an object'}), 400

        is_valid, errors = validate_form_submission(form, values)
        if not is_valid:
            return jsonify({'success': False, 'error': 'Validation failed', 'errors': errors}), 400

        submission = current_app.forms_repo.create_submission(
            job_id, form_id,
            submitted_by=auth.get_current_user()['id'],
            data=values,
            signature=data.get('signature'),
        )
        return jsonify({'success': True, 'submission': submission}), 201

    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Error submitting form: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@forms_bp.route('/api/form-submissions', methods=['GET'])
@login_required
def get_submissions():
    user = auth.get_current_user()
    submissions = current_app.forms_repo.list_submissions(
        job_id=request.args.get('jobId') or None,
        form_id=request.args.get('formId') or None,
    )
    if not auth.can_view_all_jobs(user):
        own_jobs = {j['id'] for j in current_app.jobs_repo.list_jobs(assigned_to=user['id'])}
        submissions = [s for s in submissions if s['jobId'] in own_jobs]
    return jsonify({'success': True, 'submissions': submissions})


@forms_bp.route('/api/form-submissions/<submission_id>', methods=['GET'])
@login_required
def get_submission(submission_id):
    submission = current_app.forms_repo.get_submission(submission_id)
    if not submission:
        return jsonify({'success': False, 'error': 'Submission not found'}), 404
    return jsonify({'success': True, 'submission': submission})


@forms_bp.route('/api/form-submissions/<submission_id>/pdf', methods=['GET'])
@login_required
def download_submission_pdf(submission_id):
    """Render a submission as a PDF download"""
    try:
        submission = current_app.forms_repo.get_submission(submission_id)
        if not submission:
            return jsonify({'success': False, 'error': 'Submission not found'}), 404

        form = current_app.forms_repo.get_form(submission['formId']) or {
            'name': submission.get('formType') or 'Form', 'fields': []
        }
        job = current_app.jobs_repo.get_job(submission['jobId'])
        submitter = current_app.users_repo.get_user(submission['submittedBy'])

        pdf_bytes = render_submission_pdf(
            form, submission, job=job, submitter=submitter,
            company_name=current_app.config.get('COMPANY_SIGNATURE'),
        )
        download_name = sanitize_filename(f"{form.get('name', 'form')}-{submission['submissionNumber']}.pdf")
        return send_file(io.BytesIO(pdf_bytes), mimetype='application/pdf',
                         as_attachment=True, download_name=download_name)

    except Exception as e:
        logger.error(f"Error rendering submission PDF: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
