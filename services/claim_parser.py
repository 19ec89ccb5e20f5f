"""
Claim Parser - best-effort extraction of claim fields from pasted appointment text.

Three layouts are understood, and may be mixed within one paste:

    ClaimNo<TAB>5586306<TAB>PolicyNo<TAB>PL-HOC6525797942/03   (tab pairs)
    Claim: 3801751                                               (colon lines)
    Description of Loss                                          (label line,
    Burst geyser in the roof                                      value below)

Every recognised field is returned under its camelCase key and under its
capitalized alias (``claimNo`` and ``ClaimNo``).
"""

import re
import logging
from datetime import date
from typing import Dict, Any, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Canonical key -> accepted labels (compared after normalization)
FIELD_LABELS = {
    'claimNo': ['claimno', 'claim', 'claimnumber', 'claimref', 'refnumber', 'reference'],
    'policyNo': ['policyno', 'policy', 'policynumber'],
    'spmNo': ['spmno', 'spm', 'spmnumber'],
    'underwriter': ['underwriter', 'insurer', 'insurance'],
    'branch': ['branch'],
    'broker': ['broker'],
    'claimSpecialist': ['claimspecialist', 'specialist', 'claimshandler', 'handler'],
    'email': ['email', 'emailaddress'],
    'riskAddress': ['riskaddress', 'address', 'serviceaddress', 'propertyaddress'],
    'claimStatus': ['claimstatus', 'status'],
    'insuredName': ['insuredname', 'insured', 'client', 'clientname', 'name'],
    'insCell': ['inscell', 'cell', 'contact', 'contactnumber', 'mobile', 'cellphone'],
    'insHometel': ['inshometel', 'hometel', 'hometelephone', 'telephone'],
    'insEmail': ['insemail', 'clientemail', 'insuredemail'],
    'sumInsured': ['suminsured'],
    'incidentDate': ['incidentdate', 'dateofloss', 'dateofincident', 'lossdate'],
    'descriptionOfLoss': ['descriptionofloss', 'lossdescription', 'description'],
    'claimEstimate': ['claimestimate', 'estimate'],
    'section': ['section'],
    'peril': ['peril'],
    'excess': ['excess'],
    'dateReported': ['datereported', 'reporteddate'],
}

CAPITALIZED_KEYS = {
    'claimNo': 'ClaimNo',
    'policyNo': 'PolicyNo',
    'spmNo': 'SPMNo',
    'underwriter': 'Underwriter',
    'branch': 'Branch',
    'broker': 'Broker',
    'claimSpecialist': 'ClaimSpecialist',
    'email': 'Email',
    'riskAddress': 'RiskAddress',
    'claimStatus': 'ClaimStatus',
    'insuredName': 'InsuredName',
    'insCell': 'InsCell',
    'insHometel': 'InsHometel',
    'insEmail': 'InsEmail',
    'sumInsured': 'SumInsured',
    'incidentDate': 'IncidentDate',
    'descriptionOfLoss': 'DescriptionOfLoss',
    'claimEstimate': 'ClaimEstimate',
    'section': 'Section',
    'peril': 'Peril',
    'excess': 'Excess',
    'dateReported': 'DateReported',
}

NUMERIC_FIELDS = {'sumInsured', 'claimEstimate'}

DESCRIPTION_PREVIEW = 200

_LABEL_LOOKUP = {label: key for key, labels in FIELD_LABELS.items() for label in labels}
_COLON_LINE = re.compile(r'^\s*([A-Za-z][A-Za-z .#/_-]{0,40}?)\s*[:=]\s*(.*)$')


def normalize_label(label: str) -> str:
    """Lowercase a label and drop everything but letters."""
    return re.sub(r'[^a-z]', '', (label or '').lower())


def canonical_key(label: str) -> Optional[str]:
    return _LABEL_LOOKUP.get(normalize_label(label))


def parse_amount(value: Any) -> Optional[float]:
    """Parse amounts like ``R 12 500,00`` or ``R12,500.00``; None when not numeric."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = re.sub(r'(?i)^\s*(zar|r)\s*', '', str(value or ''))
    text = re.sub(r'\s+', '', text)
    if re.fullmatch(r'\d+,\d{2}', text):
        text = text.replace(',', '.')
    elif re.fullmatch(r'[\d.]+,\d{2}', text):
        text = text.replace('.', '').replace(',', '.')
    else:
        text = text.replace(',', '')
    try:
        return float(text)
    except ValueError:
        return None


def _pairs_from_line(line: str) -> List[Tuple[str, str]]:
    if '\t' in line:
        cells = [c.strip() for c in line.split('\t')]
        cells = [c for c in cells if c]
        pairs = []
        i = 0
        while i < len(cells):
            if canonical_key(cells[i]) and i + 1 < len(cells):
                pairs.append((cells[i], cells[i + 1]))
                i += 2
            else:
                i += 1
        if pairs:
            return pairs

    match = _COLON_LINE.match(line)
    if match and canonical_key(match.group(1)):
        return [(match.group(1), match.group(2).strip())]
    return []


def parse_job_text(raw_text: str) -> Dict[str, Any]:
    """
    Extract claim fields from freeform text.

    The first occurrence of a field wins. Empty values are ignored.

    Args:
        raw_text: Pasted appointment / notification text

    Returns:
        Dict of parsed fields (camelCase plus capitalized aliases)
    """
    parsed: Dict[str, Any] = {}
    lines = [line.rstrip() for line in (raw_text or '').splitlines()]

    def store(key: str, value: str):
        value = (value or '').strip()
        if not value or key in parsed:
            return
        if key in NUMERIC_FIELDS:
            amount = parse_amount(value)
            if amount is None:
                return
            parsed[key] = amount
        else:
            parsed[key] = value

    pending_key = None
    for line in lines:
        if not line.strip():
            continue

        pairs = _pairs_from_line(line)
        if pairs:
            pending_key = None
            for label, value in pairs:
                key = canonical_key(label)
                if value:
                    store(key, value)
                else:
                    pending_key = key
            continue

        key = canonical_key(line)
        if key:
            pending_key = key
        elif pending_key:
            store(pending_key, line)
            pending_key = None

    for key, alias in CAPITALIZED_KEYS.items():
        if key in parsed:
            parsed[alias] = parsed[key]

    logger.debug(f"Parsed {len([k for k in parsed if k in CAPITALIZED_KEYS])} claim fields")
    return parsed


def first_value(parsed: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = parsed.get(key)
        if value:
            return str(value)
    return ''


def build_job_title(parsed: Dict[str, Any]) -> str:
    """Claim number and client, falling back to policy number, then client alone."""
    client = first_value(parsed, 'InsuredName', 'insuredName', 'clientName')
    claim = first_value(parsed, 'ClaimNo', 'claimNo', 'refNumber')
    policy = first_value(parsed, 'PolicyNo', 'policyNo', 'policyNumber')

    if claim and client:
        return f"{claim} - {client}"
    if claim:
        return claim
    if policy and client:
        return f"{policy} - {client}"
    if policy:
        return policy
    if client:
        return client
    return 'New Claim'


def build_job_description(parsed: Dict[str, Any]) -> str:
    if parsed.get('description'):
        return parsed['description']

    section = first_value(parsed, 'Section', 'section') or 'General'
    peril = first_value(parsed, 'Peril', 'peril') or 'claim'
    description = f"{section} {peril}"

    loss = first_value(parsed, 'descriptionOfLoss', 'DescriptionOfLoss')
    if loss:
        preview = loss[:DESCRIPTION_PREVIEW]
        if len(loss) > DESCRIPTION_PREVIEW:
            preview += '...'
        description += f" - {preview}"
    return description.strip()


def detect_company(raw_text: str, companies: List[Dict]) -> str:
    """Pick ABSA or SAHL when named in the text, otherwise Discovery."""
    text = (raw_text or '').lower()
    if 'absa' in text:
        needle = 'absa'
    elif 'sahl' in text:
        needle = 'sahl'
    else:
        needle = 'discovery'
    match = next((c for c in companies if needle in c.get('name', '').lower()), None)
    return match['id'] if match else ''


def detect_priority(parsed: Dict[str, Any]) -> str:
    excess = first_value(parsed, 'Excess', 'excess')
    return 'high' if 'urgent' in excess.lower() else 'medium'


def suggest_job(raw_text: str, parsed: Dict[str, Any], companies: List[Dict]) -> Dict[str, Any]:
    """Job attributes derived from a parse, ready to pre-populate a create request."""
    return {
        'title': build_job_title(parsed),
        'description': build_job_description(parsed),
        'companyId': detect_company(raw_text, companies),
        'priority': detect_priority(parsed),
        'dueDate': date.today().isoformat(),
        'client': {'name': first_value(parsed, 'InsuredName', 'insuredName')} if parsed.get('insuredName') else None,
    }
