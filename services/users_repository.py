"""
Users Repository - In-memory user store for staff, supervisors and admins.
"""

import copy
import logging
import threading
from typing import List, Optional, Dict
from werkzeug.security import generate_password_hash, check_password_hash

from app.utils.helpers import generate_id, utc_now_iso
from validators import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SHIFT_START = '05:00'
NORMAL_SHIFT_END = '16:00'
LATE_SHIFT_END = '19:00'

PROFILE_FIELDS = (
    'email', 'name', 'role', 'phone', 'address', 'emergencyContact',
    'emergencyPhone', 'bio', 'location',
)


def resolve_schedule(schedule: Optional[Dict]) -> Dict:
    """Fill shift defaults: 05:00 start, 16:00 end (19:00 on a late shift)."""
    schedule = dict(schedule or {})
    late = bool(schedule.get('workingLateShift') or schedule.get('weekType') == 'late')
    schedule['workingLateShift'] = late
    schedule.setdefault('weekType', 'late' if late else 'normal')
    schedule['shiftStartTime'] = schedule.get('shiftStartTime') or DEFAULT_SHIFT_START
    schedule['shiftEndTime'] = schedule.get('shiftEndTime') or (LATE_SHIFT_END if late else NORMAL_SHIFT_END)
    return schedule


def merge_schedule(current: Optional[Dict], changes: Dict) -> Dict:
    """
    Apply a schedule update on top of the stored schedule.

    Changing ``workingLateShift`` or ``weekType`` re-derives the other one,
    and the end time unless the update sets it.
    """
    merged = {**(current or {}), **changes}
    if 'workingLateShift' in changes and 'weekType' not in changes:
        merged.pop('weekType', None)
    elif 'weekType' in changes and 'workingLateShift' not in changes:
        merged.pop('workingLateShift', None)
    if ('workingLateShift' in changes or 'weekType' in changes) and 'shiftEndTime' not in changes:
        merged.pop('shiftEndTime', None)
    return resolve_schedule(merged)


class UsersRepository:
    """Repository for user operations."""

    def __init__(self, hash_method: str = 'pbkdf2:sha256'):
        self.hash_method = hash_method
        self._users: List[Dict] = []
        self._lock = threading.RLock()

    @staticmethod
    def _public(user: Dict) -> Dict:
        return {k: copy.deepcopy(v) for k, v in user.items() if k != 'passwordHash'}

    def _find(self, user_id: str) -> Optional[Dict]:
        return next((u for u in self._users if u['id'] == user_id), None)

    def _find_by_username(self, username: str) -> Optional[Dict]:
        username = (username or '').strip().lower()
        return next((u for u in self._users if u['username'].lower() == username), None)

    def list_users(self, role: str = None) -> List[Dict]:
        """List users, optionally restricted to one role."""
        with self._lock:
            users = [u for u in self._users if role is None or u['role'] == role]
            return [self._public(u) for u in sorted(users, key=lambda u: u['username'])]

    def get_user(self, user_id: str) -> Optional[Dict]:
        """Get a user by ID."""
        with self._lock:
            user = self._find(user_id)
            return self._public(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[Dict]:
        """Get a user by username (case-insensitive)."""
        with self._lock:
            user = self._find_by_username(username)
            return self._public(user) if user else None

    def create_user(self, data: Dict) -> Dict:
        """Create a new user."""
        with self._lock:
            username = (data.get('username') or '').strip()
            if self._find_by_username(username):
                raise ValidationError(f"Username '{username}' already exists", field='username')

            user = {
                'id': data.get('id') or generate_id('user'),
                'username': username,
                'email': data.get('email', ''),
                'role': data.get('role', 'staff'),
                'name': data.get('name') or username,
                'createdAt': utc_now_iso(),
                'passwordHash': generate_password_hash(data['password'], method=self.hash_method),
            }
            for key in PROFILE_FIELDS:
                if key in data and key not in user:
                    user[key] = data[key]
            user['schedule'] = resolve_schedule(data.get('schedule'))

            self._users.append(user)
            logger.info(f"Created user: {user['id']} ({user['role']})")
            return self._public(user)

    def update_user(self, user_id: str, data: Dict) -> Optional[Dict]:
        """Update a user's profile, password or schedule."""
        with self._lock:
            user = self._find(user_id)
            if not user:
                return None

            if 'username' in data and data['username']:
                other = self._find_by_username(data['username'])
                if other and other['id'] != user_id:
                    raise ValidationError(f"Username '{data['username']}' already exists", field='username')
                user['username'] = data['username'].strip()

            for key in PROFILE_FIELDS:
                if key in data:
                    user[key] = data[key]

            if 'schedule' in data:
                user['schedule'] = merge_schedule(user.get('schedule'), data['schedule'] or {})

            if data.get('password'):
                user['passwordHash'] = generate_password_hash(data['password'], method=self.hash_method)

            user['updatedAt'] = utc_now_iso()
            logger.info(f"Updated user: {user_id}")
            return self._public(user)

    def delete_user(self, user_id: str) -> bool:
        """Remove a user."""
        with self._lock:
            user = self._find(user_id)
            if not user:
                return False
            self._users.remove(user)
            logger.info(f"Deleted user: {user_id}")
            return True

    def verify_password(self, username: str, password: str) -> Optional[Dict]:
        """Return the user when the password matches, else None."""
        with self._lock:
            user = self._find_by_username(username)
            if not user or not check_password_hash(user['passwordHash'], password or ''):
                return None
            return self._public(user)

    def count(self, role: str = None) -> int:
        with self._lock:
            return sum(1 for u in self._users if role is None or u['role'] == role)
