"""
Companies Repository - insurers whose claims are serviced.
"""

import copy
import threading
from typing import List, Dict, Optional

from app.utils.helpers import utc_now_iso

DEFAULT_COMPANIES = (
    ('company-absa', 'ABSA'),
    ('company-sahl', 'SAHL'),
    ('company-discovery', 'Discovery'),
)


class CompaniesRepository:
    """Repository for company lookups."""

    def __init__(self, seed: bool = True):
        self._companies: List[Dict] = []
        self._lock = threading.RLock()
        if seed:
            created = utc_now_iso()
            for company_id, name in DEFAULT_COMPANIES:
                self._companies.append({'id': company_id, 'name': name, 'createdAt': created})

    def list_companies(self) -> List[Dict]:
        with self._lock:
            return copy.deepcopy(self._companies)

    def get_company(self, company_id: str) -> Optional[Dict]:
        with self._lock:
            company = next((c for c in self._companies if c['id'] == company_id), None)
            return copy.deepcopy(company) if company else None
