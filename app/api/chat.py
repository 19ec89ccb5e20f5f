"""
Chat Routes and Socket.IO Events

Realtime chat and presence on the default namespace:
- register: join the presence list, receive recent history
- send_message: broadcast a chat message
- image_uploaded: photo notification, delivered to admins and apollo users
- typing_start / typing_stop: typing indicators relayed to everyone else
- disconnect: leave the presence list

REST endpoints:
- /api/chat/messages: Recent message history
- /api/chat/users: Connected users
"""

import logging
from flask import Blueprint, request, jsonify, current_app
from flask_socketio import SocketIO, emit

from auth import login_required
from validators import ValidationError

logger = logging.getLogger(__name__)

# Bound to each application in create_app via socketio.init_app
socketio = SocketIO()

# Create blueprint
chat_bp = Blueprint('chat_bp', __name__)


def _deliver_image_notification(message, sender=None):
    """Send an image notification to every connected admin/apollo socket."""
    send = sender or socketio.emit
    recipients = current_app.chat_service.notification_recipients()
    for sid in recipients:
        send('new_message', message, to=sid)
    return len(recipients)


def broadcast_image_notification(data):
    """
    Record an image notification and push it to notified roles.

    Called from HTTP handlers (photo upload), outside any socket context.

    Returns:
        The stored notification message
    """
    message = current_app.chat_service.post_image_notification(data)
    delivered = _deliver_image_notification(message)
    logger.debug(f"Image notification {message['id']} delivered to {delivered} sockets")
    return message


# ============================================================================
# SOCKET.IO EVENTS
# ============================================================================

@socketio.on('connect')
def handle_connect(auth=None):
    logger.info(f"User connected: {request.sid}")


@socketio.on('register')
def handle_register(user_data):
    chat = current_app.chat_service
    try:
        users = chat.register(user_data or {}, request.sid)
    except ValidationError as e:
        emit('chat_error', {'error': e.message, 'field': e.field})
        return

    emit('users_updated', users, broadcast=True)
    emit('message_history', chat.history())


@socketio.on('send_message')
def handle_send_message(message_data):
    try:
        message = current_app.chat_service.post_message(message_data or {})
    except ValidationError as e:
        emit('chat_error', {'error': e.message, 'field': e.field})
        return

    emit('new_message', message, broadcast=True)


@socketio.on('image_uploaded')
def handle_image_uploaded(notification_data):
    message = current_app.chat_service.post_image_notification(notification_data or {})
    _deliver_image_notification(message, sender=emit)


@socketio.on('typing_start')
def handle_typing_start(user_data):
    emit('user_typing', user_data, broadcast=True, include_self=False)


@socketio.on('typing_stop')
def handle_typing_stop(user_data):
    emit('user_stopped_typing', user_data, broadcast=True, include_self=False)


@socketio.on('disconnect')
def handle_disconnect(reason=None):
    chat_service = current_app.chat_service
    user = chat_service.user_for_socket(request.sid)
    if user:
        logger.info(f"{user['name']} ({user['role']}) left the chat: {reason}")

    users = chat_service.disconnect(request.sid)
    socketio.emit('users_updated', users if users is not None else chat_service.connected_users())


# ============================================================================
# REST
# ============================================================================

@chat_bp.route('/api/chat/messages', methods=['GET'])
@login_required
def get_messages():
    """Recent chat history (default: the replay size)"""
    limit = request.args.get('limit', type=int)
    if limit is not None and limit < 0:
        return jsonify({'success': False, 'error': 'limit must be a non-negative integer'}), 400
    messages = current_app.chat_service.history(limit)
    return jsonify({'success': True, 'messages': messages})


@chat_bp.route('/api/chat/users', methods=['GET'])
@login_required
def get_connected_users():
    return jsonify({'success': True, 'users': current_app.chat_service.connected_users()})
