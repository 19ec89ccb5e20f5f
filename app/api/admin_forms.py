"""
Admin Form Management Routes Blueprint

Admin-only management of PDF templates and form variable mappings:
- /api/admin/pdf-files: List/upload PDF templates
- /api/admin/pdf-files/rename: Rename a template, re-pointing forms
- /api/admin/pdf-files/<file_name>: Delete an unused template
- /api/admin/forms/<form_id>/variable-mappings: Field <-> PDF/database mappings
- /api/admin/forms/link-pdf, /api/admin/forms/<form_id>/pdf: Link/unlink templates
- /api/admin/database-schema: Submission schema with dynamic form columns
"""

import logging
from flask import Blueprint, request, jsonify, current_app

from auth import admin_required
from app.utils.helpers import utc_now_iso
from services.forms_repository import column_name
from validators import ValidationError, validate_pdf_upload, validate_string_fields

logger = logging.getLogger(__name__)

# Create blueprint
admin_forms_bp = Blueprint('admin_forms_bp', __name__)

SUBMISSION_COLUMNS = {
    'id': {'type': 'string', 'primary': True},
    'jobId': {'type': 'string', 'required': True},
    'formId': {'type': 'string', 'required': True},
    'formType': {'type': 'string', 'required': False},
    'submittedBy': {'type': 'string', 'required': True},
    'submittedAt': {'type': 'datetime', 'required': True},
    'submissionNumber': {'type': 'number', 'required': True},
    'signature': {'type': 'object', 'required': False},
    'data': {'type': 'object', 'required': True},
}


def _mapped_form_names(file_name):
    return [f['name'] for f in current_app.forms_repo.forms_using_pdf(file_name)]


# ============================================================================
# PDF FILES
# ============================================================================

@admin_forms_bp.route('/api/admin/pdf-files', methods=['GET'])
@admin_required
def get_pdf_files():
    try:
        files = current_app.pdf_templates.list_files()
        for info in files:
            info['mappedForms'] = _mapped_form_names(info['name'])
        return jsonify({'success': True, 'files': files})
    except Exception as e:
        logger.error(f"Error getting PDF files: {e}")
        return jsonify({'success': False, 'error': 'Failed to get PDF files'}), 500


@admin_forms_bp.route('/api/admin/pdf-files', methods=['POST'])
@admin_required
def upload_pdf():
    try:
        file = request.files.get('pdf')
        is_valid, error, safe_name = validate_pdf_upload(file, current_app.config.get('MAX_PDF_SIZE'))
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        if current_app.pdf_templates.exists(safe_name):
            return jsonify({'success': False, 'error': f'A file named {safe_name} already exists'}), 400

        info = current_app.pdf_templates.save(file, safe_name)
        info['mappedForms'] = []
        return jsonify({'success': True, 'message': 'PDF uploaded successfully', 'file': info}), 201

    except ValidationError as e:
        return jsonify({'success': False, 'error': e.message}), 400
    except Exception as e:
        logger.error(f"Error uploading PDF: {e}")
        return jsonify({'success': False, 'error': 'Failed to upload PDF'}), 500


@admin_forms_bp.route('/api/admin/pdf-files/rename', methods=['PUT'])
@admin_required
def rename_pdf():
    try:
        data = request.get_json(silent=True) or {}
        is_valid, error = validate_string_fields(data, ('oldName', 'newName'))
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        old_name = data.get('oldName')
        new_name = data.get('newName')
        if not old_name or not new_name:
            return jsonify({'success': False, 'error': 'Old name and new name are required'}), 400

        if current_app.pdf_templates.rename(old_name, new_name) is None:
            return jsonify({'success': False, 'error': 'File not found'}), 404

        moved = current_app.forms_repo.repoint_pdf(old_name, new_name)
        logger.info(f"Re-pointed {moved} forms from {old_name} to {new_name}")
        return jsonify({'success': True, 'message': 'PDF renamed successfully',
                        'oldName': old_name, 'newName': new_name, 'updatedForms': moved})

    except ValidationError as e:
        return jsonify({'success': False, 'error': e.message}), 400
    except Exception as e:
        logger.error(f"Error renaming PDF: {e}")
        return jsonify({'success': False, 'error': 'Failed to rename PDF'}), 500


@admin_forms_bp.route('/api/admin/pdf-files/<file_name>', methods=['DELETE'])
@admin_required
def delete_pdf(file_name):
    try:
        if not current_app.pdf_templates.exists(file_name):
            return jsonify({'success': False, 'error': 'File not found'}), 404

        dependent = _mapped_form_names(file_name)
        if dependent:
            return jsonify({
                'success': False,
                'error': 'Cannot delete PDF - it is being used by forms',
                'dependentForms': dependent,
            }), 400

        current_app.pdf_templates.delete(file_name)
        return jsonify({'success': True, 'message': 'PDF deleted successfully', 'fileName': file_name})

    except Exception as e:
        logger.error(f"Error deleting PDF: {e}")
        return jsonify({'success': False, 'error': 'Failed to delete PDF'}), 500


# ============================================================================
# VARIABLE MAPPINGS
# ============================================================================

@admin_forms_bp.route('/api/admin/forms/<form_id>/variable-mappings', methods=['GET'])
@admin_required
def get_variable_mappings(form_id):
    form = current_app.forms_repo.get_form(form_id)
    if not form:
        return jsonify({'success': False, 'error': 'Form not found'}), 404

    mappings = []
    for field in form['fields']:
        variable = column_name(field['id'])
        mappings.append({
            'id': f"mapping-{field['id']}",
            'formFieldId': field['id'],
            'formFieldLabel': field.get('label'),
            'pdfVariable': variable,
            'databaseColumn': variable.lower(),
            'required': bool(field.get('required')),
            'fieldType': field.get('type'),
            'autoFillFrom': field.get('autoFillFrom'),
        })

    return jsonify({'success': True, 'formId': form_id, 'formName': form['name'], 'mappings': mappings})


@admin_forms_bp.route('/api/admin/forms/<form_id>/variable-mappings', methods=['PUT'])
@admin_required
def update_variable_mappings(form_id):
    data = request.get_json(silent=True) or {}
    mappings = data.get('mappings')
    if not isinstance(mappings, list):
        return jsonify({'success': False, 'error': 'mappings must be an array'}), 400

    form = current_app.forms_repo.update_field_mappings(form_id, mappings)
    if not form:
        return jsonify({'success': False, 'error': 'Form not found'}), 404

    return jsonify({'success': True, 'message': 'Variable mappings updated successfully',
                    'formId': form_id, 'mappings': mappings})


# ============================================================================
# PDF LINKS
# ============================================================================

@admin_forms_bp.route('/api/admin/forms/link-pdf', methods=['POST'])
@admin_required
def link_pdf_to_form():
    data = request.get_json(silent=True) or {}
    is_valid, error = validate_string_fields(data, ('formId', 'pdfFileName'))
    if not is_valid:
        return jsonify({'success': False, 'error': error}), 400

    form_id = data.get('formId')
    pdf_file_name = data.get('pdfFileName')
    if not form_id or not pdf_file_name:
        return jsonify({'success': False, 'error': 'Form ID and PDF filename are required'}), 400

    if not current_app.forms_repo.get_form(form_id):
        return jsonify({'success': False, 'error': 'Form not found'}), 404
    if not current_app.pdf_templates.exists(pdf_file_name):
        return jsonify({'success': False, 'error': 'PDF file not found'}), 404

    form = current_app.forms_repo.set_pdf_template(form_id, pdf_file_name)
    return jsonify({'success': True, 'message': 'PDF linked to form successfully',
                    'formId': form_id, 'pdfFileName': pdf_file_name, 'formName': form['name']})


@admin_forms_bp.route('/api/admin/forms/<form_id>/pdf', methods=['DELETE'])
@admin_required
def unlink_pdf_from_form(form_id):
    form = current_app.forms_repo.get_form(form_id)
    if not form:
        return jsonify({'success': False, 'error': 'Form not found'}), 404

    current_app.forms_repo.set_pdf_template(form_id, None)
    return jsonify({'success': True, 'message': 'PDF unlinked from form successfully',
                    'formId': form_id, 'oldPdfTemplate': form.get('pdfTemplate'), 'formName': form['name']})


@admin_forms_bp.route('/api/admin/database-schema', methods=['GET'])
@admin_required
def get_database_schema():
    forms = current_app.forms_repo.list_forms()
    dynamic = {}
    for form in forms:
        for field in form['fields']:
            dynamic[column_name(field['id']).lower()] = {
                'type': field.get('type'),
                'required': bool(field.get('required')),
                'formId': form['id'],
                'formName': form['name'],
                'fieldLabel': field.get('label'),
                'autoFillFrom': field.get('autoFillFrom'),
            }

    return jsonify({
        'success': True,
        'schema': {'formSubmissions': SUBMISSION_COLUMNS, 'dynamicFormFields': dynamic},
        'totalForms': len(forms),
        'totalFields': len(dynamic),
        'lastUpdated': utc_now_iso(),
    })
