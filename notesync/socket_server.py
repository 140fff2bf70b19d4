"""
Socket.IO transport for the event broadcaster.

Each connected socket becomes one broadcaster subscriber bound to the user
its access token belongs to.
"""
import logging
import threading

from flask import request
from flask_socketio import SocketIO, ConnectionRefusedError

from notesync.auth import user_id_from_token

logger = logging.getLogger('main')


class SocketTransport:
    """Bridges Socket.IO connections to an EventBroadcaster"""

    def __init__(self, socketio, broadcaster, require_auth=True):
        self.socketio = socketio
        self.broadcaster = broadcaster
        self.require_auth = require_auth
        self._subscriptions = {}
        self._lock = threading.Lock()

    def _deliver_to(self, sid):
        def deliver(event, payload):
            # emit queues the packet on the socket server, it does not wait for the client
            self.socketio.emit(event, payload, to=sid, namespace='/')
        return deliver

    def register_handlers(self):
        socketio = self.socketio

        @socketio.on('connect')
        def handle_connect(auth=None):
            token = None
            if isinstance(auth, dict):
                token = auth.get('token')
            token = token or request.args.get('token')

            user_id = user_id_from_token(token)
            if user_id is None and self.require_auth:
                logger.warning(f"Refused realtime connection {request.sid}: missing or invalid token")
                raise ConnectionRefusedError('unauthorized')

            subscription_id = self.broadcaster.subscribe(self._deliver_to(request.sid), user_id=user_id)
            with self._lock:
                self._subscriptions[request.sid] = subscription_id
            logger.info(f"Client connected {request.sid} (user={user_id})")

        @socketio.on('disconnect')
        def handle_disconnect(*args):
            with self._lock:
                subscription_id = self._subscriptions.pop(request.sid, None)
            if subscription_id:
                self.broadcaster.unsubscribe(subscription_id)
            logger.info(f"Client disconnected {request.sid}")

        return self


def init_socketio(app, broadcaster):
    """Create the app's SocketIO server and attach the broadcaster to it"""
    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        message_queue=app.config.get('SOCKETIO_MESSAGE_QUEUE'),
        engineio_logger=False,
        logger=False,
    )
    SocketTransport(socketio, broadcaster, require_auth=app.config['REALTIME_REQUIRE_AUTH']).register_handlers()
    logger.info(f"SocketIO initialized (async_mode={app.config['SOCKETIO_ASYNC_MODE']})")
    return socketio
