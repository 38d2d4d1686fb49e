"""
HTTP API routes for inspecting the tic-tac-toe server.

These endpoints are read-only.  Rooms are created, joined and played
over Socket.IO (see websocket_handlers.py).
"""

from flask import Blueprint, jsonify, current_app
from .game_server import SessionNotFound

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _registry():
    return current_app.extensions['session_registry']


def _game_summary(session):
    data = session.snapshot()
    data.update({
        'game_id': session.id,
        'players': len(session.participants),
        'max_players': 2,
    })
    return data


@api_bp.route('/games', methods=['GET'])
def get_all_games():
    """Get information about all games on the server."""
    registry = _registry()
    games_list = [_game_summary(registry.get_session(game_id))
                  for game_id in registry.list_sessions()]
    
    return jsonify({
        'success': True,
        'data': {
            'games': games_list,
            'total_games': len(games_list)
        }
    }), 200

@api_bp.route('/games/<game_id>', methods=['GET'])
def get_game(game_id):
    """Get information about a specific game."""
    try:
        session = _registry().get_session(game_id)
    except SessionNotFound:
        return jsonify({'success': False, 'error': 'Game not found'}), 404
    
    return jsonify({
        'success': True,
        'data': _game_summary(session)
    }), 200
