"""
Authentication Routes Blueprint

Handles login/logout with mock bearer tokens and the user management API.
"""

from flask import Blueprint, request, jsonify, current_app
import logging

import auth
from auth import login_required, admin_required
from validators import ValidationError, format_validation_error, validate_user_request

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


# ============================================================================
# LOGIN/LOGOUT ROUTES
# ============================================================================

@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """API endpoint for user login"""
    try:
        data = request.get_json(silent=True) or {}
        username = (data.get('username') or '').strip()
        password = data.get('password') or ''

        if not username or not password:
            return jsonify({'success': False, 'error': 'Username and password required'}), 400

        user = auth.authenticate_user(username, password)
        if not user:
            return jsonify({'success': False, 'error': 'Invalid credentials'}), 401

        return jsonify({'success': True, 'user': user, 'token': auth.issue_token(user)})

    except Exception as e:
        logger.error(f"Login error: {e}")
        return jsonify({'success': False, 'error': 'Login failed'}), 500


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """API endpoint for user logout (tokens are stateless; the client drops it)"""
    user = auth.get_current_user()
    if user:
        logger.info(f"User logged out: {user['username']}")
    return jsonify({'success': True})


@auth_bp.route('/api/auth/me', methods=['GET'])
@login_required
def api_me():
    return jsonify({'success': True, 'user': auth.get_current_user()})


# ============================================================================
# USER MANAGEMENT API
# ============================================================================

@auth_bp.route('/api/auth/users', methods=['GET'])
@login_required
def get_users():
    """Get all users, optionally filtered by role"""
    try:
        users = current_app.users_repo.list_users(role=request.args.get('role') or None)
        return jsonify({'success': True, 'users': users})
    except Exception as e:
        logger.error(f"Error listing users: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@auth_bp.route('/api/auth/users/<user_id>', methods=['GET'])
@login_required
def get_user(user_id):
    user = current_app.users_repo.get_user(user_id)
    if not user:
        return jsonify({'success': False, 'error': 'User not found'}), 404
    return jsonify({'success': True, 'user': user})


@auth_bp.route('/api/auth/users', methods=['POST'])
@admin_required
def create_user():
    """Create new user (admin only)"""
    try:
        data = request.get_json(silent=True) or {}

        is_valid, error = validate_user_request(data, creating=True)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        user = current_app.users_repo.create_user(data)
        return jsonify({'success': True, 'user': user}), 201

    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Error creating user: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@auth_bp.route('/api/auth/users/<user_id>', methods=['PUT'])
@login_required
def update_user(user_id):
    """Update user (admin, or the user editing their own profile)"""
    try:
        current = auth.get_current_user()
        if not auth.is_admin(current) and current['id'] != user_id:
            return jsonify({'success': False, 'error': 'Admin access required'}), 403

        data = request.get_json(silent=True) or {}
        if not auth.is_admin(current) and 'role' in data and data['role'] != current['role']:
            return jsonify({'success': False, 'error': 'Only admins can change roles'}), 403

        is_valid, error = validate_user_request(data, creating=False)
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        user = current_app.users_repo.update_user(user_id, data)
        if not user:
            return jsonify({'success': False, 'error': 'User not found'}), 404

        return jsonify({'success': True, 'user': user})

    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Error updating user: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@auth_bp.route('/api/auth/users/<user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    """Delete user (admin only)"""
    try:
        if auth.get_current_user()['id'] == user_id:
            return jsonify({'success': False, 'error': 'Cannot delete your own account'}), 400

        if not current_app.users_repo.delete_user(user_id):
            return jsonify({'success': False, 'error': 'User not found'}), 404

        return jsonify({'success': True, 'message': 'User deleted'})

    except Exception as e:
        logger.error(f"Error deleting user: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
