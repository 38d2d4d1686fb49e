"""
Flask application factory and main application entry point.

This module creates and configures the Flask application instance
with WebSocket support for real-time game communication.
"""

import sys
from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from loguru import logger

from .game_server import SessionRegistry


def create_app(config=None):
    """
    Create and configure the Flask application.
    
    Args:
        config: Dictionary of configuration overrides
        
    Returns:
        Tuple of (Flask application, SocketIO instance)
    """
    app = Flask(__name__)
    
    # Default configuration
    app.config.update({
        'SECRET_KEY': 'dev-key-change-in-production',
        'DEBUG': True,
        'CORS_ORIGINS': '*',
        'ROOM_ID_LENGTH': 6,
        'LOG_LEVEL': 'INFO',
    })
    
    if config:
        app.config.update(config)
    
    # Configure logging
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="{time} | {level} | {message}",
        level=app.config['LOG_LEVEL'],
        colorize=True
    )
    logger.info("Starting tic-tac-toe game server")
    
    # Enable CORS for all HTTP requests
    CORS(app, origins=app.config['CORS_ORIGINS'])
    
    # Initialize SocketIO for WebSocket support
    socketio = SocketIO(app, cors_allowed_origins=app.config['CORS_ORIGINS'])
    
    # One registry per application; it lives as long as the server process
    registry = SessionRegistry(id_length=app.config['ROOM_ID_LENGTH'])
    app.extensions['session_registry'] = registry
    
    from . import routes
    app.register_blueprint(routes.bp)
    
    from . import api
    app.register_blueprint(api.api_bp)
    
    # Initialize WebSocket handlers
    from . import websocket_handlers
    websocket_handlers.init_socketio_handlers(socketio, registry)
    
    return app, socketio
