"""
WebSocket event handlers for real-time game communication.

This module binds the room lifecycle to Socket.IO events: creating and
joining rooms, relaying moves, restarting, and cleaning up on disconnect.
Replies are returned from the handlers and reach the client as the event
acknowledgement; state changes are broadcast to the Socket.IO room whose
name is the session id.

Each handler runs to completion under the registry lock, so two events
for the same room never interleave even though Flask-SocketIO may
dispatch them on different threads.
"""

from functools import wraps
from flask import request
from flask_socketio import join_room
from loguru import logger

from .game_server import SessionRegistry, SessionNotFound, SessionFull
from .tictactoe_game import InvalidMove
from .messages import (
    CreateGame, JoinGame, MakeMove, RestartGame,
    Accepted, JoinAccepted, Rejected, GameUpdate, OpponentLeft,
    NOT_FOUND, FULL, INVALID_MOVE, INTERNAL_ERROR,
)


def _guarded(event, lock):
    """Run a handler while holding lock, mapping any unexpected failure to
    a generic rejection."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            with lock:
                try:
                    return f(*args, **kwargs)
                except Exception:
                    logger.exception(f"Unhandled error in '{event}' from {request.sid}")
                    return Rejected(INTERNAL_ERROR, "Internal server error").to_dict()
        return decorated_function
    return decorator


def init_socketio_handlers(socketio, registry: SessionRegistry):
    """Initialize WebSocket event handlers against the given registry."""

    def broadcast_state(session_id):
        session = registry.get_session(session_id)
        socketio.emit('updateGame', GameUpdate.from_session(session).to_dict(), to=session_id)

    @socketio.on('connect')
    def handle_connect(auth=None):
        logger.info(f"User connected: {request.sid}")

    @socketio.on('createGame')
    @_guarded('createGame', registry.lock)
    def handle_create_game(*args):
        req = CreateGame.from_args(args)
        logger.debug(f"{request.sid} -> {req}")
        session_id = registry.create_session(request.sid)
        join_room(session_id)
        logger.info(f"Game created with ID: {session_id} by user: {request.sid}")
        return session_id

    @socketio.on('joinGame')
    @_guarded('joinGame', registry.lock)
    def handle_join_game(*args):
        req = JoinGame.from_args(args)
        logger.debug(f"{request.sid} -> {req}")
        try:
            joined = registry.join_session(req.room_id, request.sid)
        except SessionNotFound as e:
            logger.warning(f"Game {req.room_id} does not exist. User {request.sid} cannot join.")
            return Rejected(NOT_FOUND, e.reason).to_dict()
        except SessionFull as e:
            logger.warning(f"Game {req.room_id} is full. User {request.sid} cannot join.")
            return Rejected(FULL, e.reason).to_dict()

        join_room(req.room_id)
        logger.info(f"User {request.sid} joined game {req.room_id} as {joined['mark'].symbol}")
        return JoinAccepted(joined['board'], joined['turnOwner'], joined['mark']).to_dict()

    @socketio.on('makeMove')
    @_guarded('makeMove', registry.lock)
    def handle_make_move(*args):
        req = MakeMove.from_args(args)
        logger.debug(f"{request.sid} -> {req}")
        try:
            state = registry.apply_move(req.room_id, req.index, request.sid)
        except SessionNotFound:
            logger.warning(f"Invalid move in game {req.room_id} by {request.sid}: no such game")
            return Rejected(INVALID_MOVE, InvalidMove.reason).to_dict()
        except InvalidMove as e:
            logger.warning(f"Invalid move in game {req.room_id} by {request.sid}: {e}")
            return Rejected(INVALID_MOVE, InvalidMove.reason, str(e)).to_dict()

        logger.info(f"Move made in game {req.room_id} by {request.sid}: {state['board']}")
        if state['outcome'] != 'undecided':
            logger.info(f"Game {req.room_id} finished: {state['outcome']}")
        broadcast_state(req.room_id)
        return Accepted().to_dict()

    @socketio.on('restartGame')
    @_guarded('restartGame', registry.lock)
    def handle_restart_game(*args):
        req = RestartGame.from_args(args)
        logger.debug(f"{request.sid} -> {req}")
        try:
            registry.reset_session(req.room_id)
        except SessionNotFound as e:
            logger.warning(f"Attempted restart for non-existent game {req.room_id} by {request.sid}")
            return Rejected(NOT_FOUND, e.reason).to_dict()

        logger.info(f"Game {req.room_id} restarted by {request.sid}")
        broadcast_state(req.room_id)
        return Accepted().to_dict()

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        """Handle WebSocket disconnection."""
        logger.info(f"User disconnected: {request.sid}")

        with registry.lock:
            for departure in registry.remove_participant(request.sid):
                logger.info(f"User {request.sid} left game {departure.session_id}")

                if departure.opponent:
                    socketio.emit('opponentLeft', OpponentLeft().to_dict(), to=departure.opponent)

                if departure.deleted:
                    logger.info(f"Game {departure.session_id} deleted due to no active players")
