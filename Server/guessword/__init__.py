"""
Guess the Word Game Server Application Package

Timed word-guessing rounds with three difficulties, LLM-generated target
words, round scoring, resumable rounds and per-player statistics.
"""

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from .config import Config


def create_app(config_class=Config, word_source=None, stats_store=None, snapshot_store=None, **session_options):
    """
    Application factory pattern for creating Flask app instances.

    Args:
        config_class: Configuration class to use
        word_source: Word source override (defaults to the Gemini WordService)
        stats_store: Statistics store override
        snapshot_store: Round snapshot store override
        **session_options: Extra GameSession options (ticker_factory, spawn, ...)

    Returns:
        Tuple of the Flask application and its SocketIO instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    CORS(app)
    socketio = SocketIO(app, cors_allowed_origins="*", logger=False, engineio_logger=False)

    from .services.game_service import GameService
    from .services.stats_service import StatsService
    from .services.stores import (
        MemorySnapshotStore, MemoryStatsStore, MongoSnapshotStore, MongoStatsStore, connect_mongo
    )
    from .services.word_service import WordService
    from .websocket.handlers import SocketIORenderObserver, register_websocket_handlers

    # Storage: MongoDB when configured, process memory otherwise
    if stats_store is None or snapshot_store is None:
        if app.config.get('MONGO_URI'):
            db = connect_mongo(app.config['MONGO_URI'], app.config['MONGO_DB_NAME'])
            stats_store = stats_store or MongoStatsStore(db)
            snapshot_store = snapshot_store or MongoSnapshotStore(db)
        else:
            stats_store = stats_store or MemoryStatsStore()
            snapshot_store = snapshot_store or MemorySnapshotStore()

    word_service = WordService(
        api_key=app.config.get('GEMINI_API_KEY'),
        model=app.config.get('GEMINI_MODEL', 'gemini-1.5-flash'),
        timeout=app.config.get('WORD_FETCH_TIMEOUT_SECONDS', 5)
    )
    stats_service = StatsService(stats_store)

    session_options.setdefault('tick_interval', app.config.get('TICK_INTERVAL_SECONDS', 1))
    game_service = GameService(
        word_source=word_source or word_service,
        persistence=stats_service,
        snapshot_store=snapshot_store,
        observer_factory=lambda player_id: SocketIORenderObserver(socketio, player_id),
        **session_options
    )

    # Register blueprints
    from .controllers.game_controller import game_bp
    app.register_blueprint(game_bp, url_prefix='/api')

    # Register WebSocket handlers
    register_websocket_handlers(socketio)

    # Store services for use in controllers and handlers
    app.socketio = socketio
    app.word_service = word_service
    app.stats_service = stats_service
    app.game_service = game_service

    return app, socketio
