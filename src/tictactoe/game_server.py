"""Process-wide store of live game rooms.

Flask-SocketIO runs each event in its own thread, so every read or write
of a session goes through the registry lock.
"""
import secrets
import string
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .board_state import Session, Mark
from . import tictactoe_game


ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits


class SessionNotFound(KeyError):
    """Raised when a room id does not name a live session."""

    reason = "Game does not exist"

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Game '{session_id}' does not exist")


class SessionFull(RuntimeError):
    """Raised when joining a session that already has two participants."""

    reason = "Game is full"

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Game '{session_id}' is full")


@dataclass
class Departure(object):
    """What happened to one session when a connection left it."""
    session_id: str
    remaining: List[str]
    deleted: bool

    @property
    def opponent(self) -> Optional[str]:
        """The participant to tell about the departure, if exactly one is left."""
        if len(self.remaining) == 1:
            return self.remaining[0]
        return None


def random_room_id(length: int = 6) -> str:
    return ''.join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(length))


class SessionRegistry(object):
    """Represents every live game room in the process.

    The model here is:
    - A session is created explicitly by a connection, which becomes its
      first participant.
    - A session holds at most two participants; join order decides marks.
    - A session disappears as soon as its last participant leaves.
    - Connections only ever refer to a session by its id.

    `lock` is reentrant.  Callers that need several registry operations to
    happen as one step (check, mutate, then read back for a broadcast) hold
    it around the whole sequence.

    """
    def __init__(self, id_factory: Optional[Callable[[], str]] = None, id_length: int = 6):
        """Initialize the registry with no sessions."""
        self.sessions: Dict[str, Session] = {}
        self.id_length = id_length
        self.lock = threading.RLock()
        self._id_factory = id_factory or (lambda: random_room_id(self.id_length))

    def __len__(self):
        with self.lock:
            return len(self.sessions)

    def __contains__(self, session_id):
        with self.lock:
            return session_id in self.sessions

    def _new_id(self) -> str:
        # Rejection loop: a candidate already in use is simply redrawn.
        while True:
            candidate = self._id_factory()
            if candidate not in self.sessions:
                return candidate

    def create_session(self, requester: str) -> str:
        """Create a new session with requester as its first participant and
        return its id.

        """
        with self.lock:
            session_id = self._new_id()
            self.sessions[session_id] = Session(session_id, participants=[requester])
            return session_id

    def get_session(self, session_id: str) -> Session:
        """Look up a session.  Raises SessionNotFound if it doesn't exist.

        """
        with self.lock:
            try:
                return self.sessions[session_id]
            except (KeyError, TypeError):
                raise SessionNotFound(session_id)

    def list_sessions(self) -> List[str]:
        """Lists current session ids.

        """
        with self.lock:
            return list(self.sessions.keys())

    def join_session(self, session_id: str, requester: str) -> dict:
        """Adds requester as the next participant of the session.

        Raise SessionNotFound if the session doesn't exist.
        Raise SessionFull if it already has two participants.

        Returns the board and turn owner the joiner should start from, and
        the mark of the seat just taken.  A connection joining a room it is
        already in takes the second seat too, and is told 'O'.

        """
        with self.lock:
            session = self.get_session(session_id)
            if session.is_full:
                raise SessionFull(session_id)

            session.participants.append(requester)
            seat = len(session.participants) - 1
            snapshot = session.snapshot()
            return {
                'board': snapshot['board'],
                'turnOwner': snapshot['turnOwner'],
                'mark': Mark.X if seat == 0 else Mark.O,
            }

    def apply_move(self, session_id: str, cell_index, requester: Optional[str] = None) -> dict:
        """Apply a move to a session under the registry lock.

        Raises SessionNotFound, or InvalidMove from the engine.

        """
        with self.lock:
            session = self.get_session(session_id)
            return tictactoe_game.apply_move(session, cell_index, requester)

    def remove_participant(self, requester: str) -> List[Departure]:
        """Remove a connection from every session it belongs to.

        Sessions left with no participants are deleted.  One Departure is
        returned per session the connection was found in.

        """
        departures = []
        with self.lock:
            for session_id, session in list(self.sessions.items()):
                if requester not in session.participants:
                    continue

                session.participants = [p for p in session.participants if p != requester]
                deleted = not session.participants
                if deleted:
                    del self.sessions[session_id]
                departures.append(Departure(session_id, list(session.participants), deleted))

        return departures

    def reset_session(self, session_id: str) -> dict:
        """Reset a session's board, turn and outcome, keeping its participants.

        - Raises SessionNotFound if session_id doesn't exist.

        """
        with self.lock:
            session = self.get_session(session_id)
            session.reset()
            return session.snapshot()
