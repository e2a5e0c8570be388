"""
Guess the Word Server - Main Entry Point

This is the main entry point for the game server.
It validates the game configuration, starts the session cleanup worker and
runs the Flask-SocketIO application.
"""

import os
import threading
from guessword import create_app
from guessword.config import config, validate_word_pool_integrity
from guessword.utils.game_logger import game_logger


def session_cleanup_worker(app, stop_event=None):
    """
    Background worker that periodically forgets idle sessions.
    Runs every SESSION_CLEANUP_INTERVAL_SECONDS until stop_event is set.
    """
    stop_event = stop_event or threading.Event()
    interval = app.config['SESSION_CLEANUP_INTERVAL_SECONDS']
    max_idle = app.config['SESSION_IDLE_TIMEOUT_SECONDS']

    while True:
        try:
            evicted = app.game_service.evict_idle_sessions(max_idle)
            if evicted > 0:
                game_logger.logger.info(f"Session cleanup: Removed {evicted} idle sessions")
        except Exception as e:
            game_logger.logger.error(f"Session cleanup error: {e}")

        if stop_event.wait(interval):
            break


def main():
    """Main function to validate configuration and start the server."""
    config_class = config[os.getenv('FLASK_ENV', 'default')]
    try:
        print("Validating game configuration...")
        validate_word_pool_integrity()
        print("✓ Fallback word pool valid")

        if not config_class.GEMINI_API_KEY:
            print("✗ GEMINI_API_KEY not configured - rounds will use the fallback word pool")
        if not config_class.MONGO_URI:
            print("✗ MONGO_URI not configured - statistics and saved rounds are kept in memory")

        print("Creating Flask application...")
        app, socketio = create_app(config_class)
        print("✓ Flask application created successfully")

        # Start session cleanup worker in background thread
        cleanup_thread = threading.Thread(target=session_cleanup_worker, args=(app,), daemon=True)
        cleanup_thread.start()
        print(f"✓ Session cleanup worker started - checking every {config_class.SESSION_CLEANUP_INTERVAL_SECONDS:g} seconds")

        game_logger.logger.info("Guess the Word Server starting")

        print(f"\nStarting Guess the Word Server on {config_class.HOST}:{config_class.PORT}")
        print(f"Debug mode: {config_class.DEBUG}")
        print("=" * 50)

        socketio.run(app, host=config_class.HOST, port=config_class.PORT, debug=config_class.DEBUG)

    except KeyboardInterrupt:
        print("\nServer shutting down...")
        game_logger.logger.info("Guess the Word Server shutting down (KeyboardInterrupt)")
    except Exception as e:
        print(f"Error starting server: {e}")
        game_logger.logger.error(f"Error starting server: {e}")
        raise


if __name__ == '__main__':
    main()
