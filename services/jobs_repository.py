"""
Jobs Repository - In-memory job store with sequential job numbers.
"""

import copy
import logging
import threading
from typing import List, Dict, Optional
from dateutil import parser as date_parser

from app.utils.helpers import generate_id, utc_now_iso
from services.claim_parser import CAPITALIZED_KEYS

logger = logging.getLogger(__name__)

JOB_FIELDS = (
    'title', 'description', 'assignedTo', 'companyId', 'formId', 'formIds',
    'status', 'priority', 'dueDate', 'duration', 'carryOver', 'notes',
    'category', 'categoryOther', 'pricing', 'isAssisting', 'client', 'address',
)

CLAIM_FIELDS = tuple(CAPITALIZED_KEYS.keys())
CLAIM_ALIASES = {alias: key for key, alias in CAPITALIZED_KEYS.items()}

# Fields the assigned staff member may change on their own job
STAFF_EDITABLE_FIELDS = ('status', 'notes')


class JobsRepository:
    """Repository for job operations."""

    def __init__(self):
        self._jobs: List[Dict] = []
        self._next_number = 1
        self._lock = threading.RLock()

    def _find(self, job_id: str) -> Optional[Dict]:
        return next((j for j in self._jobs if j['id'] == job_id), None)

    def list_jobs(self, assigned_to: str = None, status: str = None) -> List[Dict]:
        """List jobs ordered by job number."""
        with self._lock:
            jobs = [
                j for j in self._jobs
                if (assigned_to is None or j.get('assignedTo') == assigned_to)
                and (status is None or j.get('status') == status)
            ]
            return copy.deepcopy(sorted(jobs, key=lambda j: j['jobNumber']))

    def get_job(self, job_id: str) -> Optional[Dict]:
        """Get a single job by ID."""
        with self._lock:
            job = self._find(job_id)
            return copy.deepcopy(job) if job else None

    def create_job(self, data: Dict, assigned_by: str, parsed: Dict = None) -> Dict:
        """
        Create a new job.

        Args:
            data: Validated request payload
            assigned_by: Id of the admin creating the job
            parsed: Claim fields extracted from pasted text, if any

        Returns:
            The stored job
        """
        with self._lock:
            now = utc_now_iso()
            job = {
                'id': generate_id('job'),
                'jobNumber': self._next_number,
                'title': data['title'].strip(),
                'description': data.get('description', ''),
                'assignedTo': data['assignedTo'],
                'assignedBy': assigned_by,
                'status': data.get('status', 'pending'),
                'priority': data.get('priority', 'medium'),
                'formIds': list(data.get('formIds') or ([data['formId']] if data.get('formId') else [])),
                'createdAt': now,
                'updatedAt': now,
            }
            for field in JOB_FIELDS:
                if field in data and field not in job:
                    job[field] = data[field]
            if 'dueDate' in job:
                job['dueDate'] = self._parse_date(job['dueDate'])

            claim_data = dict(parsed or {})
            claim_data.update({k: v for k, v in data.items() if k in CLAIM_FIELDS or k in CLAIM_ALIASES})
            self._apply_claim_fields(job, claim_data)

            self._jobs.append(job)
            self._next_number += 1
            logger.info(f"Created job #{job['jobNumber']} ({job['id']}) assigned to {job['assignedTo']}")
            return copy.deepcopy(job)

    def update_job(self, job_id: str, data: Dict) -> Optional[Dict]:
        """Update a job in place."""
        with self._lock:
            job = self._find(job_id)
            if not job:
                return None

            for field in JOB_FIELDS:
                if field in data:
                    job[field] = data[field]
            if 'dueDate' in data:
                job['dueDate'] = self._parse_date(data['dueDate'])
            if 'formId' in data and 'formIds' not in data and data['formId']:
                if data['formId'] not in job.get('formIds', []):
                    job.setdefault('formIds', []).append(data['formId'])

            self._apply_claim_fields(job, {k: v for k, v in data.items() if k in CLAIM_FIELDS or k in CLAIM_ALIASES})

            job['updatedAt'] = utc_now_iso()
            return copy.deepcopy(job)

    def delete_job(self, job_id: str) -> bool:
        """Delete a job."""
        with self._lock:
            job = self._find(job_id)
            if not job:
                return False
            self._jobs.remove(job)
            logger.info(f"Deleted job {job_id}")
            return True

    def find_existing(self, claim_no: str = None, policy_no: str = None) -> Optional[Dict]:
        """Find a job carrying the given claim or policy number."""
        claim_no = (claim_no or '').strip().lower()
        policy_no = (policy_no or '').strip().lower()
        if not claim_no and not policy_no:
            return None

        with self._lock:
            for job in self._jobs:
                if claim_no and str(job.get('claimNo', '')).strip().lower() == claim_no:
                    return copy.deepcopy(job)
                if policy_no and str(job.get('policyNo', '')).strip().lower() == policy_no:
                    return copy.deepcopy(job)
            return None

    def stats(self) -> Dict:
        with self._lock:
            return {
                'totalJobs': len(self._jobs),
                'pendingJobs': sum(1 for j in self._jobs if j['status'] == 'pending'),
                'inProgressJobs': sum(1 for j in self._jobs if j['status'] == 'in_progress'),
                'completedJobs': sum(1 for j in self._jobs if j['status'] == 'completed'),
            }

    def _apply_claim_fields(self, job: Dict, claim_data: Dict):
        """Store claim fields under both their camelCase key and capitalized alias."""
        for key, value in claim_data.items():
            canonical = CLAIM_ALIASES.get(key, key)
            if canonical not in CAPITALIZED_KEYS:
                continue
            job[canonical] = value
            job[CAPITALIZED_KEYS[canonical]] = value

    def _parse_date(self, date_value):
        """Normalize a due date to ISO format; unparseable input is kept verbatim."""
        if not date_value:
            return None
        if isinstance(date_value, str):
            try:
                parsed = date_parser.parse(date_value)
            except (ValueError, OverflowError):
                logger.warning(f"Unparseable due date kept as-is: {date_value!r}")
                return date_value
            if len(date_value.strip()) <= 10:
                return parsed.date().isoformat()
            return parsed.isoformat()
        return date_value
