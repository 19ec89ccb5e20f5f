"""
Forms Repository - dynamic form templates and their per-job submissions.
"""

import copy
import logging
import re
import threading
from typing import List, Dict, Optional

from app.utils.helpers import generate_id, utc_now_iso
from validators import ValidationError

logger = logging.getLogger(__name__)

FORM_FIELDS = ('name', 'description', 'fields', 'isTemplate', 'restrictedToCompanies', 'pdfTemplate', 'formType')


def column_name(field_id: str) -> str:
    """Column-safe version of a field id: non-alphanumerics become underscores."""
    return re.sub(r'[^a-zA-Z0-9]', '_', field_id)


class FormsRepository:
    """Repository for form templates and form submissions."""

    def __init__(self, max_submissions_per_form: int = 3):
        self.max_submissions_per_form = max_submissions_per_form
        self._forms: List[Dict] = []
        self._submissions: List[Dict] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Form templates
    # ------------------------------------------------------------------

    def load_templates(self, forms: List[Dict]) -> int:
        """Seed predefined templates, skipping ids already present."""
        with self._lock:
            known = {f['id'] for f in self._forms}
            added = 0
            for form in forms:
                if form['id'] in known:
                    continue
                record = copy.deepcopy(form)
                record.setdefault('restrictedToCompanies', [])
                record.setdefault('isTemplate', True)
                self._forms.append(record)
                added += 1
            logger.info(f"Loaded {added} predefined form templates")
            return added

    def _find(self, form_id: str) -> Optional[Dict]:
        return next((f for f in self._forms if f['id'] == form_id), None)

    def list_forms(self, company_id: str = None) -> List[Dict]:
        """List forms; company-restricted forms only show for their companies."""
        with self._lock:
            forms = [
                f for f in self._forms
                if company_id is None
                or not f.get('restrictedToCompanies')
                or company_id in f['restrictedToCompanies']
            ]
            return copy.deepcopy(forms)

    def get_form(self, form_id: str) -> Optional[Dict]:
        with self._lock:
            form = self._find(form_id)
            return copy.deepcopy(form) if form else None

    def count(self) -> int:
        with self._lock:
            return len(self._forms)

    @staticmethod
    def _with_field_ids(fields: List[Dict]) -> List[Dict]:
        result = []
        used = set()
        for idx, field in enumerate(fields, start=1):
            field = dict(field)
            field_id = field.get('id') or f"field-{idx}"
            while field_id in used:
                field_id = f"{field_id}-{idx}"
            field['id'] = field_id
            field.setdefault('required', False)
            used.add(field_id)
            result.append(field)
        return result

    def create_form(self, data: Dict, created_by: str) -> Dict:
        """Create a form template; missing field ids are generated."""
        with self._lock:
            now = utc_now_iso()
            form = {
                'id': data.get('id') or generate_id('form'),
                'name': data['name'].strip(),
                'description': data.get('description', ''),
                'fields': self._with_field_ids(data.get('fields', [])),
                'isTemplate': bool(data.get('isTemplate', False)),
                'restrictedToCompanies': list(data.get('restrictedToCompanies') or []),
                'createdBy': created_by,
                'createdAt': now,
                'updatedAt': now,
            }
            for key in ('pdfTemplate', 'formType'):
                if data.get(key):
                    form[key] = data[key]

            if self._find(form['id']):
                raise ValidationError(f"Form '{form['id']}' already exists", field='id')

            self._forms.append(form)
            logger.info(f"Created form {form['id']} with {len(form['fields'])} fields")
            return copy.deepcopy(form)

    def update_form(self, form_id: str, data: Dict) -> Optional[Dict]:
        with self._lock:
            form = self._find(form_id)
            if not form:
                return None
            for key in FORM_FIELDS:
                if key in data:
                    form[key] = self._with_field_ids(data[key]) if key == 'fields' else data[key]
            form['updatedAt'] = utc_now_iso()
            return copy.deepcopy(form)

    def delete_form(self, form_id: str) -> bool:
        with self._lock:
            form = self._find(form_id)
            if not form:
                return False
            self._forms.remove(form)
            logger.info(f"Deleted form {form_id}")
            return True

    # ------------------------------------------------------------------
    # PDF template links
    # ------------------------------------------------------------------

    def forms_using_pdf(self, file_name: str) -> List[Dict]:
        with self._lock:
            return copy.deepcopy([f for f in self._forms if f.get('pdfTemplate') == file_name])

    def repoint_pdf(self, old_name: str, new_name: str) -> int:
        """Move every form referencing ``old_name`` over to ``new_name``."""
        with self._lock:
            now = utc_now_iso()
            moved = 0
            for form in self._forms:
                if form.get('pdfTemplate') == old_name:
                    form['pdfTemplate'] = new_name
                    form['updatedAt'] = now
                    moved += 1
            return moved

    def set_pdf_template(self, form_id: str, file_name: Optional[str]) -> Optional[Dict]:
        """Link a PDF template to a form, or unlink it when ``file_name`` is None."""
        with self._lock:
            form = self._find(form_id)
            if not form:
                return None
            if file_name:
                form['pdfTemplate'] = file_name
            else:
                form.pop('pdfTemplate', None)
            form['updatedAt'] = utc_now_iso()
            return copy.deepcopy(form)

    def update_field_mappings(self, form_id: str, mappings: List[Dict]) -> Optional[Dict]:
        """Apply ``autoFillFrom`` / ``required`` from variable mappings to matching fields."""
        with self._lock:
            form = self._find(form_id)
            if not form:
                return None
            by_id = {field['id']: field for field in form['fields']}
            for mapping in mappings:
                field = by_id.get(mapping.get('formFieldId'))
                if field is None:
                    continue
                if 'autoFillFrom' in mapping:
                    if mapping['autoFillFrom']:
                        field['autoFillFrom'] = mapping['autoFillFrom']
                    else:
                        field.pop('autoFillFrom', None)
                if 'required' in mapping:
                    field['required'] = bool(mapping['required'])
            form['updatedAt'] = utc_now_iso()
            return copy.deepcopy(form)

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def create_submission(self, job_id: str, form_id: str, submitted_by: str,
                          data: Dict, signature: Dict = None) -> Dict:
        """
        Store a submission, numbering it per job/form pair.

        Raises:
            ValidationError: When the job/form pair already has the maximum
                number of submissions
        """
        with self._lock:
            previous = [s for s in self._submissions if s['jobId'] == job_id and s['formId'] == form_id]
            if len(previous) >= self.max_submissions_per_form:
                raise ValidationError(
                    f"Maximum of {self.max_submissions_per_form} submissions reached for this form on this job",
                    field='formId'
                )

            form = self._find(form_id) or {}
            submission = {
                'id': generate_id('submission'),
                'jobId': job_id,
                'formId': form_id,
                'formType': form.get('formType') or form.get('name'),
                'submittedBy': submitted_by,
                'data': copy.deepcopy(data),
                'submittedAt': utc_now_iso(),
                'submissionNumber': len(previous) + 1,
            }
            if signature:
                submission['signature'] = copy.deepcopy(signature)

            self._submissions.append(submission)
            logger.info(f"Stored submission #{submission['submissionNumber']} of {form_id} for job {job_id}")
            return copy.deepcopy(submission)

    def list_submissions(self, job_id: str = None, form_id: str = None) -> List[Dict]:
        with self._lock:
            return copy.deepcopy([
                s for s in self._submissions
                if (job_id is None or s['jobId'] == job_id)
                and (form_id is None or s['formId'] == form_id)
            ])

    def get_submission(self, submission_id: str) -> Optional[Dict]:
        with self._lock:
            submission = next((s for s in self._submissions if s['id'] == submission_id), None)
            return copy.deepcopy(submission) if submission else None
