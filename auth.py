"""
User Authentication and Authorization Module
Handles demo user seeding, login, mock bearer tokens and role checks.

Tokens are ``mock-token-<userId>`` and carry no signature; a token is valid
while the user it names exists. The only authorization rule beyond "logged
in" is the admin check (``role == 'admin'``).
"""
import logging
from functools import wraps
from flask import current_app, g, jsonify, request

logger = logging.getLogger(__name__)

TOKEN_PREFIX = 'mock-token-'

# Roles that see every job and receive photo notifications alongside admins
SUPERVISOR_ROLES = ('supervisor', 'apollo')

DEMO_USERS = (
    {'id': 'admin-1', 'username': 'vinesh', 'name': 'Vinesh', 'role': 'admin',
     'email': 'vinesh@bbplumbers.co.za', 'location': {'city': 'Johannesburg', 'address': ''}},
    {'id': 'apollo-1', 'username': 'sune', 'name': 'Sune', 'role': 'apollo',
     'email': 'sune@bbplumbers.co.za', 'location': {'city': 'Cape Town', 'address': ''}},
    {'id': 'apollo-2', 'username': 'frans', 'name': 'Frans', 'role': 'apollo',
     'email': 'frans@bbplumbers.co.za', 'location': {'city': 'Johannesburg', 'address': ''}},
    {'id': 'staff-1', 'username': 'lebo', 'name': 'Lebo', 'role': 'staff',
     'email': 'lebo@bbplumbers.co.za', 'location': {'city': 'Johannesburg', 'address': ''}},
    {'id': 'staff-2', 'username': 'freedom', 'name': 'Freedom', 'role': 'staff',
     'email': 'freedom@bbplumbers.co.za', 'location': {'city': 'Johannesburg', 'address': ''}},
    {'id': 'staff-3', 'username': 'keenan', 'name': 'Keenan', 'role': 'staff',
     'email': 'keenan@bbplumbers.co.za', 'location': {'city': 'Cape Town', 'address': ''}},
    {'id': 'staff-4', 'username': 'zaundre', 'name': 'Zaundre', 'role': 'staff',
     'email': 'zaundre@bbplumbers.co.za', 'location': {'city': 'Cape Town', 'address': ''}},
)


def seed_demo_users(users_repo):
    """
    Create the demo accounts (password ``<username>123``) if they are missing.

    Returns:
        Number of users created
    """
    created = 0
    for demo in DEMO_USERS:
        if users_repo.get_user(demo['id']):
            continue
        users_repo.create_user({**demo, 'password': f"{demo['username']}123"})
        created += 1
    if created:
        logger.info(f"Seeded {created} demo users")
    return created


# ============================================================================
# TOKENS
# ============================================================================

def issue_token(user):
    """Token handed to the client after a successful login."""
    return f"{TOKEN_PREFIX}{user['id']}"


def resolve_token(token, users_repo):
    """Return the user a token names, or None for unknown or malformed tokens."""
    if not token or not token.startswith(TOKEN_PREFIX):
        return None
    user_id = token[len(TOKEN_PREFIX):]
    if not user_id:
        return None
    return users_repo.get_user(user_id)


def get_bearer_token():
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip()
    return None


def authenticate_user(username, password):
    """Check credentials against the user store."""
    user = current_app.users_repo.verify_password(username, password)
    if user:
        logger.info(f"User logged in: {user['username']} ({user['role']})")
    else:
        logger.warning(f"Failed login attempt for username: {username}")
    return user


def get_current_user():
    """User named by the request's bearer token, cached on ``g``."""
    if 'current_user' not in g:
        g.current_user = resolve_token(get_bearer_token(), current_app.users_repo)
    return g.current_user


def is_authenticated():
    return get_current_user() is not None


def is_admin(user):
    return bool(user) and user.get('role') == 'admin'


def can_view_all_jobs(user):
    return is_admin(user) or (bool(user) and user.get('role') in SUPERVISOR_ROLES)


# Decorators for route protection
def login_required(f):
    """Decorator to require a valid bearer token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require the admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return jsonify({'success': False, 'error': 'Authentication required'}), 401

        if not is_admin(get_current_user()):
            return jsonify({'success': False, 'error': 'Admin access required'}), 403

        return f(*args, **kwargs)
    return decorated_function
