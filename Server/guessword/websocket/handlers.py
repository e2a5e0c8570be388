"""
WebSocket Event Handlers

Pushes round updates to players in real time. Each player listens in a
Socket.IO room named after their player id.
"""

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from ..utils.game_logger import game_logger


class SocketIORenderObserver:
    """Render observer that emits a player's round updates to their room."""

    def __init__(self, socketio, player_id: str):
        self.socketio = socketio
        self.player_id = player_id

    def render(self, view):
        self.socketio.emit('round_update', view, to=self.player_id)

    def signal(self, name: str):
        self.socketio.emit('round_signal', {'signal': name}, to=self.player_id)

    def error(self, message: str):
        self.socketio.emit('round_error', {'error': message}, to=self.player_id)


def register_websocket_handlers(socketio):
    """Register all WebSocket event handlers."""

    @socketio.on('connect')
    def handle_connect():
        """Handle WebSocket connection."""
        game_logger.log_game_event(None, 'socket_connected', sid=request.sid)

    @socketio.on('join_round')
    def handle_join_round(data):
        """Subscribe this socket to a player's round updates."""
        player_id = (data or {}).get('player_id')
        if not player_id:
            emit('round_error', {'error': 'player_id is required'})
            return

        join_room(player_id)
        game_logger.log_game_event(player_id, 'socket_joined', sid=request.sid)

        # Send the current view so the client can draw immediately
        session = current_app.game_service.get_session(player_id)
        emit('round_update', session.view())

    @socketio.on('leave_round')
    def handle_leave_round(data):
        """Unsubscribe this socket from a player's round updates."""
        player_id = (data or {}).get('player_id')
        if player_id:
            leave_room(player_id)
