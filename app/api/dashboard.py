"""
Dashboard and Companies Routes Blueprint

Handles dashboard functionality:
- /api/companies: List insurers
- /api/companies/<company_id>: Get one insurer
- /api/dashboard/stats: Job, staff and form counts
"""

import logging
from flask import Blueprint, jsonify, current_app

from auth import login_required

logger = logging.getLogger(__name__)

# Create blueprint
dashboard_bp = Blueprint('dashboard_bp', __name__)


# ============================================================================
# COMPANIES
# ============================================================================

@dashboard_bp.route('/api/companies', methods=['GET'])
@login_required
def get_companies():
    return jsonify({'success': True, 'companies': current_app.companies_repo.list_companies()})


@dashboard_bp.route('/api/companies/<company_id>', methods=['GET'])
@login_required
def get_company(company_id):
    company = current_app.companies_repo.get_company(company_id)
    if not company:
        return jsonify({'success': False, 'error': 'Company not found'}), 404
    return jsonify({'success': True, 'company': company})


# ============================================================================
# STATS
# ============================================================================

@dashboard_bp.route('/api/dashboard/stats', methods=['GET'])
@login_required
def get_dashboard_stats():
    """Get headline counts for the admin dashboard."""
    try:
        stats = current_app.jobs_repo.stats()
        stats['totalStaff'] = current_app.users_repo.count(role='staff')
        stats['totalForms'] = current_app.forms_repo.count()
        return jsonify({'success': True, 'stats': stats})
    except Exception as e:
        logger.error(f"Error getting dashboard stats: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
