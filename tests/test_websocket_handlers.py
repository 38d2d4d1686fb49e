"""
Tests for the Socket.IO event handlers.

Each test drives the server through Flask-SocketIO test clients, one per
simulated browser connection.
"""

import threading
import time
import pytest
from tictactoe.app import create_app
from tictactoe.websocket_handlers import _guarded


@pytest.fixture
def app():
    """Create a test Flask application with a fresh registry."""
    app, socketio = create_app({'TESTING': True})
    app.socketio = socketio  # Store socketio instance for testing
    return app


@pytest.fixture
def registry(app):
    return app.extensions['session_registry']


@pytest.fixture
def connect(app):
    """Factory for connected Socket.IO test clients; disconnects leftovers."""
    clients = []

    def _connect():
        sio_client = app.socketio.test_client(app)
        assert sio_client.is_connected()
        clients.append(sio_client)
        return sio_client

    yield _connect

    for sio_client in clients:
        if sio_client.is_connected():
            sio_client.disconnect()


def events_named(sio_client, name):
    """Return the first argument of every received event called name."""
    return [msg['args'][0] for msg in sio_client.get_received() if msg['name'] == name]


def start_game(connect):
    """Create a room with one client and join it with another."""
    player_x = connect()
    player_o = connect()
    room_id = player_x.emit('createGame', callback=True)
    response = player_o.emit('joinGame', room_id, callback=True)
    assert response['success'] is True
    player_x.get_received()
    player_o.get_received()
    return room_id, player_x, player_o


def play(player_x, player_o, room_id, cells):
    """Alternate moves between the two clients, X first."""
    players = [player_x, player_o]
    responses = []
    for turn, cell in enumerate(cells):
        responses.append(players[turn % 2].emit('makeMove', room_id, cell, callback=True))
    return responses


class TestCreateAndJoin:
    """Creating and joining rooms."""

    def test_create_game_returns_room_id(self, connect, registry):
        client = connect()
        room_id = client.emit('createGame', callback=True)
        assert isinstance(room_id, str)
        assert len(room_id) == 6
        assert room_id in registry
        assert len(registry.get_session(room_id).participants) == 1

    def test_create_then_join(self, connect, registry):
        """Second connection joins and sees an empty board with X to move."""
        creator = connect()
        joiner = connect()
        room_id = creator.emit('createGame', callback=True)

        response = joiner.emit('joinGame', room_id, callback=True)

        assert response['success'] is True
        assert response['board'] == [None] * 9
        assert response['turnOwner'] == 'X'
        assert response['isXTurn'] is True
        assert response['mark'] == 'O'
        assert len(registry.get_session(room_id).participants) == 2

    def test_join_nonexistent_game(self, connect):
        client = connect()
        response = client.emit('joinGame', 'nope00', callback=True)
        assert response == {'success': False, 'code': 'NotFound', 'reason': 'Game does not exist'}

    def test_join_full_game(self, connect):
        """A third connection is turned away."""
        room_id, player_x, player_o = start_game(connect)
        third = connect()

        response = third.emit('joinGame', room_id, callback=True)

        assert response['success'] is False
        assert response['code'] == 'Full'
        assert response['reason'] == 'Game is full'

    def test_join_without_room_id(self, connect):
        client = connect()
        response = client.emit('joinGame', callback=True)
        assert response['code'] == 'NotFound'


class TestMoves:
    """Relaying moves and broadcasting state."""

    def test_move_broadcasts_to_both_players(self, connect):
        room_id, player_x, player_o = start_game(connect)

        response = player_x.emit('makeMove', room_id, 4, callback=True)

        assert response == {'success': True}
        for client in (player_x, player_o):
            updates = events_named(client, 'updateGame')
            assert len(updates) == 1
            update = updates[0]
            assert update['board'][4] == 'X'
            assert update['turnOwner'] == 'O'
            assert update['isXTurn'] is False
            assert update['outcome'] == 'undecided'
            assert update['winner'] is None

    def test_move_on_taken_cell_rejected(self, connect):
        room_id, player_x, player_o = start_game(connect)
        player_x.emit('makeMove', room_id, 0, callback=True)
        player_x.get_received()
        player_o.get_received()

        response = player_o.emit('makeMove', room_id, 0, callback=True)

        assert response['success'] is False
        assert response['code'] == 'InvalidMove'
        assert response['reason'] == 'Invalid move or game already won'
        assert 'already taken' in response['detail']
        assert events_named(player_x, 'updateGame') == []

    def test_move_out_of_range_rejected(self, connect):
        room_id, player_x, player_o = start_game(connect)
        for index in (-1, 9, 'a', None):
            response = player_x.emit('makeMove', room_id, index, callback=True)
            assert response['code'] == 'InvalidMove'

    def test_move_in_unknown_room_rejected(self, connect):
        client = connect()
        response = client.emit('makeMove', 'nope00', 0, callback=True)
        assert response['success'] is False
        assert response['code'] == 'InvalidMove'

    def test_x_wins_top_row(self, connect, registry):
        """X plays 0, 1, 2 while O plays elsewhere."""
        room_id, player_x, player_o = start_game(connect)

        responses = play(player_x, player_o, room_id, [0, 3, 1, 4, 2])

        assert all(r['success'] for r in responses)
        final = events_named(player_o, 'updateGame')[-1]
        assert final['outcome'] == 'X'
        assert final['winner'] == 'X'
        assert final['board'][:3] == ['X', 'X', 'X']
        # The turn passes on even after the winning move
        assert final['turnOwner'] == 'O'

    def test_no_moves_after_win(self, connect):
        room_id, player_x, player_o = start_game(connect)
        play(player_x, player_o, room_id, [0, 3, 1, 4, 2])

        response = player_o.emit('makeMove', room_id, 8, callback=True)

        assert response['success'] is False
        assert response['code'] == 'InvalidMove'

    def test_draw(self, connect):
        room_id, player_x, player_o = start_game(connect)

        responses = play(player_x, player_o, room_id, [0, 1, 2, 4, 3, 5, 7, 6, 8])

        assert all(r['success'] for r in responses)
        final = events_named(player_x, 'updateGame')[-1]
        assert final['outcome'] == 'draw'
        assert final['winner'] == 'Draw'
        assert None not in final['board']


class TestRestart:
    """Restarting a room."""

    def test_restart_resets_board_for_both(self, connect, registry):
        room_id, player_x, player_o = start_game(connect)
        play(player_x, player_o, room_id, [0, 3, 1, 4, 2])
        player_x.get_received()
        player_o.get_received()

        response = player_o.emit('restartGame', room_id, callback=True)

        assert response == {'success': True}
        for client in (player_x, player_o):
            update = events_named(client, 'updateGame')[-1]
            assert update['board'] == [None] * 9
            assert update['turnOwner'] == 'X'
            assert update['outcome'] == 'undecided'
        assert len(registry.get_session(room_id).participants) == 2

    def test_play_continues_after_restart(self, connect):
        room_id, player_x, player_o = start_game(connect)
        play(player_x, player_o, room_id, [0, 3, 1, 4, 2])
        player_x.emit('restartGame', room_id, callback=True)

        response = player_x.emit('makeMove', room_id, 0, callback=True)

        assert response['success'] is True

    def test_restart_nonexistent_game(self, connect):
        client = connect()
        response = client.emit('restartGame', 'nope00', callback=True)
        assert response == {'success': False, 'code': 'NotFound', 'reason': 'Game does not exist'}


class TestDisconnect:
    """Cleaning up when connections go away."""

    def test_opponent_notified(self, connect, registry):
        room_id, player_x, player_o = start_game(connect)

        player_x.disconnect()

        notices = events_named(player_o, 'opponentLeft')
        assert notices == [{'message': 'Your opponent has left the game'}]
        assert room_id in registry
        assert len(registry.get_session(room_id).participants) == 1

    def test_both_leave_deletes_room(self, connect, registry):
        room_id, player_x, player_o = start_game(connect)

        player_x.disconnect()
        player_o.disconnect()

        assert room_id not in registry
        latecomer = connect()
        response = latecomer.emit('joinGame', room_id, callback=True)
        assert response['code'] == 'NotFound'

    def test_creator_alone_leaves(self, connect, registry):
        creator = connect()
        room_id = creator.emit('createGame', callback=True)

        creator.disconnect()

        assert room_id not in registry

    def test_free_seat_after_opponent_left(self, connect):
        room_id, player_x, player_o = start_game(connect)
        player_x.disconnect()

        newcomer = connect()
        response = newcomer.emit('joinGame', room_id, callback=True)

        assert response['success'] is True

    def test_disconnect_without_game(self, connect, registry):
        client = connect()
        client.disconnect()
        assert len(registry) == 0


class TestInternalErrors:
    """Unexpected failures become generic rejections."""

    def test_unexpected_error_reported(self, connect, registry, monkeypatch):
        def broken(requester):
            raise RuntimeError("boom")
        monkeypatch.setattr(registry, 'create_session', broken)
        client = connect()

        response = client.emit('createGame', callback=True)

        assert response == {'success': False, 'code': 'InternalError', 'reason': 'Internal server error'}
        assert client.is_connected()


def emit_together(*emits):
    """Send each (client, event, *args) on its own thread at the same moment
    and return the acknowledgements in order."""
    barrier = threading.Barrier(len(emits))
    responses = [None] * len(emits)

    def worker(position, client, event, *args):
        barrier.wait()
        responses[position] = client.emit(event, *args, callback=True)

    threads = [threading.Thread(target=worker, args=(i,) + tuple(emit)) for i, emit in enumerate(emits)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return responses


class TestConcurrentEvents:
    """Events for one room arriving on several threads at once."""

    def test_handlers_never_overlap(self):
        lock = threading.RLock()
        in_flight = []
        overlaps = []

        @_guarded('slowEvent', lock)
        def slow_handler():
            in_flight.append(1)
            if len(in_flight) > 1:
                overlaps.append(len(in_flight))
            time.sleep(0.001)
            in_flight.pop()
            return True

        threads = [threading.Thread(target=slow_handler) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []

    def test_simultaneous_moves_alternate_marks(self, connect, registry):
        room_id, player_x, player_o = start_game(connect)

        for _ in range(20):
            responses = emit_together((player_x, 'makeMove', room_id, 0),
                                      (player_o, 'makeMove', room_id, 1))

            assert all(r['success'] for r in responses)
            session = registry.get_session(room_id)
            assert sorted(session.board_symbols()[:2]) == ['O', 'X']
            assert session.turn_owner.symbol == 'X'
            player_x.emit('restartGame', room_id, callback=True)

    def test_simultaneous_joins_never_overfill(self, connect, registry):
        for _ in range(20):
            creator = connect()
            room_id = creator.emit('createGame', callback=True)
            joiners = [connect() for _ in range(3)]

            responses = emit_together(*[(joiner, 'joinGame', room_id) for joiner in joiners])

            accepted = [r for r in responses if r['success']]
            assert len(accepted) == 1
            assert accepted[0]['mark'] == 'O'
            assert sorted(r.get('code') for r in responses if not r['success']) == ['Full', 'Full']
            assert len(registry.get_session(room_id).participants) == 2
