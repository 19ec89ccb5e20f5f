"""
Form Auto-fill - resolves a form's ``autoFillFrom`` bindings against job data.
"""

import logging
from datetime import date
from typing import Dict, Any, List, Optional

from services.claim_parser import CAPITALIZED_KEYS
from validators import is_field_visible

logger = logging.getLogger(__name__)

DEFAULT_STAFF_NAME = 'Staff Member'


def _job_value(job: Dict, key: str) -> Any:
    value = job.get(key)
    if value in (None, '') and key in CAPITALIZED_KEYS:
        value = job.get(CAPITALIZED_KEYS[key])
    return value


def resolve_binding(binding: str, job: Dict, staff: Optional[Dict]) -> Any:
    """
    Resolve one ``autoFillFrom`` key.

    Args:
        binding: Binding name, e.g. ``claimNo`` or ``assignedStaffName``
        job: Job dictionary
        staff: Assigned staff user, if known

    Returns:
        The bound value, or None when the job carries nothing for it
    """
    if binding == 'assignedStaffName':
        return (staff or {}).get('name') or DEFAULT_STAFF_NAME

    if binding in ('clientName', 'insuredName'):
        return _job_value(job, 'insuredName') or (job.get('client') or {}).get('name')

    if binding == 'riskAddress':
        return _job_value(job, 'riskAddress') or job.get('address')

    value = _job_value(job, binding)
    return value if value not in ('', None) else None


def build_prefill(form: Dict, job: Dict, staff: Optional[Dict] = None, today: date = None) -> Dict[str, Any]:
    """
    Initial values for a job's copy of a form.

    Bound fields take job data; unbound fields fall back to their
    ``defaultValue``; date fields labelled ``Date...`` default to today.

    Args:
        form: Form template
        job: Job the form is being filled for
        staff: Assigned staff user
        today: Date used for date defaults

    Returns:
        Dict of field id -> value (fields without a value are omitted)
    """
    today = today or date.today()
    values: Dict[str, Any] = {}

    for field in form.get('fields', []):
        field_id = field['id']
        value = None

        if field.get('autoFillFrom'):
            value = resolve_binding(field['autoFillFrom'], job, staff)
        if value is None and field.get('defaultValue') not in (None, ''):
            value = field['defaultValue']
        if value is None and field.get('type') == 'date' and field.get('label', '').strip().lower().startswith('date'):
            value = today.isoformat()

        if value is not None:
            values[field_id] = value

    logger.debug(f"Prefilled {len(values)} of {len(form.get('fields', []))} fields for job {job.get('id')}")
    return values


def visible_fields(form: Dict, values: Dict[str, Any]) -> List[Dict]:
    """Fields currently shown given the values entered so far."""
    return [f for f in form.get('fields', []) if is_field_visible(f, values)]


def fields_by_section(form: Dict) -> Dict[str, List[str]]:
    """Field ids grouped by the ``staff`` / ``client`` section (unmarked fields are staff)."""
    sections: Dict[str, List[str]] = {'staff': [], 'client': []}
    for field in form.get('fields', []):
        sections.setdefault(field.get('section') or 'staff', []).append(field['id'])
    return sections
