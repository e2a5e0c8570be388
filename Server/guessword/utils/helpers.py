"""
Helper Functions

Contains utility functions used throughout the application.
"""

import threading
from typing import Any, Callable, Optional

DEFAULT_PLAYER_ID = 'guest'


def get_player_id(request_obj=None) -> str:
    """Player identity from the X-Player-Id header or a player_id body field."""
    if request_obj is None:
        from flask import request
        request_obj = request

    player_id = request_obj.headers.get('X-Player-Id')
    if not player_id:
        data = request_obj.get_json(silent=True) or {}
        player_id = data.get('player_id')
    return str(player_id).strip() if player_id else DEFAULT_PLAYER_ID


def spawn_background(target: Callable[..., Any], *args: Any) -> Optional[threading.Thread]:
    """Run target on a daemon thread without waiting for it."""
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread
