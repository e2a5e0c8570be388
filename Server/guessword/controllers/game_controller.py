"""
Game Controller

Handles all round-related HTTP endpoints. Every endpoint acts on the
requesting player's session.
"""

from flask import Blueprint, current_app, request, jsonify
from ..exceptions import InvalidDifficultyError, WordUnavailableError
from ..utils.game_logger import game_logger
from ..utils.helpers import get_player_id

game_bp = Blueprint('game', __name__)

SERVICE_UNAVAILABLE = {
    'success': False,
    'error': 'Game service unavailable'
}


def _game_service():
    return getattr(current_app, 'game_service', None)


def _session_action(action: str, operation):
    """
    Runs a simple session operation and returns the player's round view.

    Args:
        action: Action name used in the logs
        operation: Callable taking the session and returning a bool or None
    """
    player_id = get_player_id()
    try:
        game_service = _game_service()
        if not game_service:
            return jsonify(SERVICE_UNAVAILABLE), 500

        game_logger.log_user_action(request, action, player_id)

        session = game_service.get_session(player_id)
        changed = operation(session)

        response_data = {
            'success': True,
            'changed': bool(changed),
            'state': session.view()
        }
        game_logger.log_server_response(request, action, True, response_data, player_id)
        return jsonify(response_data)

    except Exception as e:
        game_logger.log_error(request, e, action, player_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, action, False, error_response, player_id)
        return jsonify(error_response), 500


@game_bp.route('/new_game', methods=['POST'])
def new_game():
    """Start a new round at the requested difficulty."""
    player_id = get_player_id()
    try:
        game_service = _game_service()
        if not game_service:
            return jsonify(SERVICE_UNAVAILABLE), 500

        data = request.get_json(silent=True) or {}
        difficulty = data.get('difficulty')

        game_logger.log_user_action(request, 'new_game', player_id, difficulty=difficulty)

        try:
            difficulty = int(difficulty)
        except (TypeError, ValueError):
            raise InvalidDifficultyError(difficulty)

        state = game_service.get_session(player_id).start(difficulty)

        response_data = {
            'success': True,
            'state': state
        }
        game_logger.log_server_response(
            request, 'new_game', True, response_data, player_id,
            difficulty=difficulty, max_attempts=state['max_attempts']
        )
        return jsonify(response_data)

    except InvalidDifficultyError as e:
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'new_game', False, error_response, player_id)
        return jsonify(error_response), 400

    except WordUnavailableError as e:
        game_logger.log_error(request, e, 'new_game', player_id)
        error_response = {
            'success': False,
            'error': 'Could not start the round: no word available'
        }
        game_logger.log_server_response(request, 'new_game', False, error_response, player_id)
        return jsonify(error_response), 503

    except Exception as e:
        game_logger.log_error(request, e, 'new_game', player_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'new_game', False, error_response, player_id)
        return jsonify(error_response), 500


@game_bp.route('/game/input', methods=['POST'])
def game_input():
    """Send one key ('key') or a sequence of keys ('keys') to the round."""
    player_id = get_player_id()
    try:
        game_service = _game_service()
        if not game_service:
            return jsonify(SERVICE_UNAVAILABLE), 500

        data = request.get_json(silent=True) or {}
        keys = data.get('keys')
        if keys is None:
            keys = [data['key']] if 'key' in data else []

        if not isinstance(keys, list) or not keys:
            error_response = {
                'success': False,
                'error': 'A key is required'
            }
            game_logger.log_server_response(request, 'input', False, error_response, player_id)
            return jsonify(error_response), 400

        game_logger.log_user_action(request, 'input', player_id, keys=keys)

        session = game_service.get_session(player_id)
        accepted = [session.handle_input(key) for key in keys]

        response_data = {
            'success': True,
            'accepted': accepted,
            'state': session.view()
        }
        game_logger.log_server_response(request, 'input', True, response_data, player_id)
        return jsonify(response_data)

    except Exception as e:
        game_logger.log_error(request, e, 'input', player_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'input', False, error_response, player_id)
        return jsonify(error_response), 500


@game_bp.route('/game/pause', methods=['POST'])
def pause_game():
    """Pause the round timer and input."""
    return _session_action('pause', lambda session: session.pause())


@game_bp.route('/game/resume_pause', methods=['POST'])
def resume_paused_game():
    """Unpause the round."""
    return _session_action('resume_pause', lambda session: session.resume_from_pause())


@game_bp.route('/game/quit', methods=['POST'])
def quit_game():
    """Abandon the round without scoring it."""
    return _session_action('quit', lambda session: session.quit_to_home())


@game_bp.route('/game/state', methods=['GET'])
def get_state():
    """Get the current round view."""
    return _session_action('get_state', lambda session: None)


@game_bp.route('/game/resume', methods=['POST'])
def resume_saved_game():
    """Resume the player's saved round."""
    player_id = get_player_id()
    try:
        game_service = _game_service()
        if not game_service:
            return jsonify(SERVICE_UNAVAILABLE), 500

        game_logger.log_user_action(request, 'resume', player_id)

        session = game_service.get_session(player_id)
        if session.state.is_playing:
            error_response = {
                'success': False,
                'error': 'A round is already in progress'
            }
            game_logger.log_server_response(request, 'resume', False, error_response, player_id)
            return jsonify(error_response), 409

        if not session.resume():
            error_response = {
                'success': False,
                'error': 'No saved round to resume'
            }
            game_logger.log_server_response(request, 'resume', False, error_response, player_id)
            return jsonify(error_response), 404

        response_data = {
            'success': True,
            'state': session.view()
        }
        game_logger.log_server_response(request, 'resume', True, response_data, player_id)
        return jsonify(response_data)

    except Exception as e:
        game_logger.log_error(request, e, 'resume', player_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'resume', False, error_response, player_id)
        return jsonify(error_response), 500


@game_bp.route('/game/restart', methods=['POST'])
def restart_game():
    """Start a new round at the last played difficulty."""
    player_id = get_player_id()
    try:
        game_service = _game_service()
        if not game_service:
            return jsonify(SERVICE_UNAVAILABLE), 500

        game_logger.log_user_action(request, 'restart', player_id)

        state = game_service.get_session(player_id).restart()
        if state is None:
            error_response = {
                'success': False,
                'error': 'No previous round to restart'
            }
            game_logger.log_server_response(request, 'restart', False, error_response, player_id)
            return jsonify(error_response), 400

        response_data = {
            'success': True,
            'state': state
        }
        game_logger.log_server_response(request, 'restart', True, response_data, player_id)
        return jsonify(response_data)

    except WordUnavailableError as e:
        game_logger.log_error(request, e, 'restart', player_id)
        return jsonify({
            'success': False,
            'error': 'Could not start the round: no word available'
        }), 503

    except Exception as e:
        game_logger.log_error(request, e, 'restart', player_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'restart', False, error_response, player_id)
        return jsonify(error_response), 500


@game_bp.route('/stats', methods=['GET'])
def get_stats():
    """Get the player's statistics, progress and achievements."""
    player_id = get_player_id()
    try:
        stats_service = getattr(current_app, 'stats_service', None)
        if not stats_service:
            return jsonify({
                'success': False,
                'error': 'Stats service unavailable'
            }), 500

        game_logger.log_user_action(request, 'get_stats', player_id)

        document = stats_service.get_stats(player_id)
        response_data = {
            'success': True,
            'stats': document['stats'],
            'progress': document['progress'],
            'achievements': document['achievements'],
            'words_solved': document['word_history']['total_solved']
        }
        game_logger.log_server_response(request, 'get_stats', True, response_data, player_id)
        return jsonify(response_data)

    except Exception as e:
        game_logger.log_error(request, e, 'get_stats', player_id)
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'get_stats', False, error_response, player_id)
        return jsonify(error_response), 500


@game_bp.route('/generate-word', methods=['POST'])
def generate_word():
    """Generate a random word of the requested length with the Gemini API."""
    try:
        word_service = getattr(current_app, 'word_service', None)
        if not word_service:
            return jsonify({
                'success': False,
                'error': 'Word service unavailable'
            }), 500

        data = request.get_json(silent=True) or {}
        length = data.get('length')

        game_logger.log_user_action(request, 'generate_word', length=length)

        if not isinstance(length, int) or length <= 0:
            return jsonify({
                'success': False,
                'error': 'length must be a positive integer'
            }), 400

        word = word_service.generate_word(length)
        # The word itself stays out of the logs
        game_logger.log_server_response(request, 'generate_word', True, {'success': True}, length=length)
        return jsonify({'success': True, 'word': word})

    except Exception as e:
        game_logger.log_error(request, e, 'generate_word')
        error_response = {
            'success': False,
            'error': str(e)
        }
        game_logger.log_server_response(request, 'generate_word', False, error_response)
        return jsonify(error_response), 500


@game_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    try:
        game_service = _game_service()

        game_logger.log_user_action(request, 'health_check')

        response_data = {
            'status': 'healthy',
            'sessions': len(game_service.sessions) if game_service else 0,
            'active_rounds': game_service.active_rounds_count() if game_service else 0,
            'log_stats': game_logger.get_log_stats(),
            'word_generation_configured': bool(current_app.config.get('GEMINI_API_KEY')),
            'database_configured': bool(current_app.config.get('MONGO_URI'))
        }
        game_logger.log_server_response(request, 'health_check', True, response_data)
        return jsonify(response_data)

    except Exception as e:
        game_logger.log_error(request, e, 'health_check')
        error_response = {
            'status': 'error',
            'error': str(e)
        }
        game_logger.log_server_response(request, 'health_check', False, error_response)
        return jsonify(error_response), 500
