"""
Chat Service - in-memory message history and presence for the realtime chat.

State lives in one process:
- an ordered message list, trimmed to the newest ``history_limit`` entries
  after every append
- a presence list with one entry per user id, pointing at the user's most
  recent socket id

Transport (Socket.IO emits) is handled by the caller; every mutating method
returns what the caller needs to broadcast.
"""

import copy
import logging
import threading
from typing import Dict, List, Optional, Iterable

from app.utils.helpers import generate_id, utc_now_iso
from validators import ValidationError

logger = logging.getLogger(__name__)

SYSTEM_SENDER = {'senderId': 'system', 'senderName': 'System', 'senderRole': 'system'}

MESSAGE_TYPE_TEXT = 'message'
MESSAGE_TYPE_IMAGE = 'image_notification'

MAX_MESSAGE_LENGTH = 5000


def image_notification_text(uploader_name: str, job_title: str, photo_count: int) -> str:
    return f'📸 {uploader_name} uploaded a photo to job "{job_title}". Total photos: {photo_count}'


class ChatService:
    """Message history and presence list shared by all socket connections."""

    def __init__(self, history_limit: int = 1000, replay_size: int = 50,
                 notify_roles: Iterable[str] = ('admin', 'apollo')):
        self.history_limit = history_limit
        self.replay_size = replay_size
        self.notify_roles = tuple(notify_roles)
        self._messages: List[Dict] = []
        self._connected: List[Dict] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def register(self, user_data: Dict, socket_id: str) -> List[Dict]:
        """
        Add a participant, or move an already-present user to a new socket.

        Args:
            user_data: ``{id, name, role}`` sent by the client
            socket_id: Socket id of the registering connection

        Returns:
            Snapshot of the presence list after the change

        Raises:
            ValidationError: If the user id is missing
        """
        user_id = str(user_data.get('id') or '').strip()
        if not user_id:
            raise ValidationError("User id is required to register", field='id')

        with self._lock:
            existing = next((u for u in self._connected if u['id'] == user_id), None)
            if existing:
                existing['socketId'] = socket_id
            else:
                self._connected.append({
                    'id': user_id,
                    'name': user_data.get('name') or user_id,
                    'role': user_data.get('role') or 'staff',
                    'socketId': socket_id,
                })
            logger.info(f"User registered: {user_data.get('name')} ({user_data.get('role')}) on {socket_id}")
            return copy.deepcopy(self._connected)

    def disconnect(self, socket_id: str) -> Optional[List[Dict]]:
        """
        Drop presence entries bound to a closed socket.

        Returns:
            The new presence list, or None when nothing was bound to the socket
        """
        with self._lock:
            remaining = [u for u in self._connected if u['socketId'] != socket_id]
            if len(remaining) == len(self._connected):
                return None
            self._connected = remaining
            logger.info(f"User disconnected: {socket_id}")
            return copy.deepcopy(self._connected)

    def connected_users(self) -> List[Dict]:
        with self._lock:
            return copy.deepcopy(self._connected)

    def user_for_socket(self, socket_id: str) -> Optional[Dict]:
        with self._lock:
            user = next((u for u in self._connected if u['socketId'] == socket_id), None)
            return copy.deepcopy(user) if user else None

    def notification_recipients(self) -> List[str]:
        """Socket ids of connected users whose role receives image notifications."""
        with self._lock:
            return [u['socketId'] for u in self._connected if u['role'] in self.notify_roles]

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def history(self, limit: int = None) -> List[Dict]:
        """The newest ``limit`` messages (default: the replay size), oldest first."""
        limit = self.replay_size if limit is None else limit
        with self._lock:
            if limit <= 0:
                return []
            return copy.deepcopy(self._messages[-limit:])

    def message_count(self) -> int:
        with self._lock:
            return len(self._messages)

    def _append(self, message: Dict) -> Dict:
        with self._lock:
            self._messages.append(message)
            overflow = len(self._messages) - self.history_limit
            if overflow > 0:
                del self._messages[:overflow]
            return copy.deepcopy(message)

    def post_message(self, data: Dict) -> Dict:
        """
        Record a chat message from a participant.

        Args:
            data: ``{senderId, senderName, senderRole, message}``

        Returns:
            The stored message

        Raises:
            ValidationError: On a missing sender or empty text
        """
        text = str(data.get('message') or '').strip()
        if not text:
            raise ValidationError("Message text is required", field='message')
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Message too long (maximum {MAX_MESSAGE_LENGTH} characters)", field='message')
        if not data.get('senderId'):
            raise ValidationError("senderId is required", field='senderId')

        message = {
            'id': generate_id('msg'),
            'senderId': data['senderId'],
            'senderName': data.get('senderName', ''),
            'senderRole': data.get('senderRole', ''),
            'message': text,
            'timestamp': utc_now_iso(),
            'type': MESSAGE_TYPE_TEXT,
        }
        stored = self._append(message)
        logger.info(f"Message from {message['senderName']}: {text[:80]}")
        return stored

    def post_image_notification(self, data: Dict) -> Dict:
        """
        Record a system message announcing a job photo upload.

        Args:
            data: ``{jobId, jobTitle, uploaderName, uploaderRole, photoCount}``

        Returns:
            The stored notification message
        """
        job_id = data.get('jobId')
        job_title = data.get('jobTitle') or f"Job {job_id}"
        message = {
            'id': generate_id('notif'),
            **SYSTEM_SENDER,
            'message': image_notification_text(data.get('uploaderName', 'Someone'), job_title, data.get('photoCount', 0)),
            'timestamp': utc_now_iso(),
            'type': MESSAGE_TYPE_IMAGE,
            'jobId': job_id,
        }
        stored = self._append(message)
        logger.info(f"Image upload notification: {message['message']}")
        return stored
