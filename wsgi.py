"""
WSGI Entry Point

Gunicorn can serve ``wsgi:app``; Socket.IO long-polling works with any worker,
websockets need a worker that supports them. Running this module directly
starts the Flask-SocketIO development server.
"""
import os

from app_init import create_app
from app import socketio

app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    socketio.run(app, host='0.0.0.0', port=port, debug=app.debug, allow_unsafe_werkzeug=True)
