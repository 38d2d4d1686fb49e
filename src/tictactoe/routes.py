"""
Top-level HTTP routes.

The game itself is played entirely over Socket.IO; this only answers
liveness checks.
"""

from flask import Blueprint, jsonify, current_app

bp = Blueprint('main', __name__)

@bp.route('/')
def index():
    """Server status."""
    registry = current_app.extensions['session_registry']
    return jsonify({
        'success': True,
        'data': {
            'service': 'tictactoe',
            'active_games': len(registry)
        }
    }), 200
