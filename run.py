"""
Development server entry point.

Run this script to start the Flask development server with WebSocket support.
HOST and PORT may be set in the environment.
"""

import os
from tictactoe.app import create_app

if __name__ == '__main__':
    app, socketio = create_app()
    socketio.run(app, debug=True,
                 host=os.environ.get('HOST', '0.0.0.0'),
                 port=int(os.environ.get('PORT', 4000)))
