"""Message shapes exchanged with clients over Socket.IO.

Inbound events are parsed into one request variant per event kind.  Every
reply and broadcast is built from a variant with a to_dict() method so the
wire shapes live in one place.

"""
from dataclasses import dataclass
from typing import Any, Optional

from .board_state import Mark, Outcome, Session


# Failure codes
NOT_FOUND = 'NotFound'
FULL = 'Full'
INVALID_MOVE = 'InvalidMove'
INTERNAL_ERROR = 'InternalError'

OPPONENT_LEFT_MESSAGE = "Your opponent has left the game"


# ---- Requests ----
#
# Socket.IO hands handlers whatever positional arguments the client sent.
# from_args() takes them in order, fills missing ones with None and ignores
# extras, so a malformed event still becomes a well-formed request.

def _arg(args, position):
    return args[position] if len(args) > position else None


@dataclass(frozen=True)
class CreateGame:
    @classmethod
    def from_args(cls, args) -> 'CreateGame':
        return cls()


@dataclass(frozen=True)
class JoinGame:
    room_id: Any

    @classmethod
    def from_args(cls, args) -> 'JoinGame':
        return cls(_arg(args, 0))


@dataclass(frozen=True)
class MakeMove:
    room_id: Any
    index: Any

    @classmethod
    def from_args(cls, args) -> 'MakeMove':
        return cls(_arg(args, 0), _arg(args, 1))


@dataclass(frozen=True)
class RestartGame:
    room_id: Any

    @classmethod
    def from_args(cls, args) -> 'RestartGame':
        return cls(_arg(args, 0))


# ---- Replies ----

@dataclass(frozen=True)
class Accepted:
    def to_dict(self) -> dict:
        return {'success': True}


@dataclass(frozen=True)
class JoinAccepted:
    board: list
    turn_owner: str
    mark: Mark

    def to_dict(self) -> dict:
        return {
            'success': True,
            'board': self.board,
            'turnOwner': self.turn_owner,
            'isXTurn': self.turn_owner == Mark.X.symbol,
            'mark': self.mark.symbol,
        }


@dataclass(frozen=True)
class Rejected:
    code: str
    reason: str
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {'success': False, 'code': self.code, 'reason': self.reason}
        if self.detail:
            payload['detail'] = self.detail
        return payload


# ---- Broadcasts ----

@dataclass(frozen=True)
class GameUpdate:
    board: list
    turn_owner: Mark
    outcome: Outcome

    @classmethod
    def from_session(cls, session: Session) -> 'GameUpdate':
        return cls(session.board_symbols(), session.turn_owner, session.outcome)

    def to_dict(self) -> dict:
        return {
            'board': self.board,
            'turnOwner': self.turn_owner.symbol,
            'outcome': self.outcome.value,
            'isXTurn': self.turn_owner is Mark.X,
            'winner': self.outcome.winner,
        }


@dataclass(frozen=True)
class OpponentLeft:
    message: str = OPPONENT_LEFT_MESSAGE

    def to_dict(self) -> dict:
        return {'message': self.message}
