"""Contains basic data structures that represent a tic-tac-toe session

The move validation and outcome logic is contained in tictactoe_game.py.

"""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, Optional
import numpy as np


BOARD_SIZE = 9

# Cell value for an empty square
EMPTY = 0


class Mark(IntEnum):
    """The two marks a participant can play.

    The first participant of a session plays X, the second plays O.
    """
    X = 1
    O = 2

    @property
    def other(self) -> 'Mark':
        return Mark.O if self is Mark.X else Mark.X

    @property
    def symbol(self) -> str:
        return self.name


class Outcome(Enum):
    """Terminal classification of a session."""
    UNDECIDED = 'undecided'
    X_WINS = 'X'
    O_WINS = 'O'
    DRAW = 'draw'

    @classmethod
    def win_for(cls, mark: Mark) -> 'Outcome':
        return cls.X_WINS if mark is Mark.X else cls.O_WINS

    @property
    def winner(self) -> Optional[str]:
        """The outcome in the reference wire format: None, 'X', 'O' or 'Draw'."""
        if self is Outcome.UNDECIDED:
            return None
        if self is Outcome.DRAW:
            return 'Draw'
        return self.value


# The 8 winning triples: rows, then columns, then diagonals.  The order
# matters, the first completed triple decides the winner.
WINNING_LINES = np.array([
    [0, 1, 2],
    [3, 4, 5],
    [6, 7, 8],
    [0, 3, 6],
    [1, 4, 7],
    [2, 5, 8],
    [0, 4, 8],
    [2, 4, 6],
], dtype=int)


def empty_board() -> np.ndarray:
    return np.full(BOARD_SIZE, EMPTY, dtype=np.int8)


def cell_symbol(value: int) -> Optional[str]:
    """Convert a raw cell value to 'X', 'O' or None."""
    if value == EMPTY:
        return None
    return Mark(int(value)).symbol


@dataclass
class Session(object):
    """Dataclass that contains the state of one game room.

    Attributes
    ----------
    id : str
        Room identifier, unique among live sessions
    board : np.ndarray
        Array of 9 small integers, row-major, where each cell is EMPTY,
        Mark.X or Mark.O
    turn_owner : Mark
        The mark that moves next
    participants : List[str]
        Connection ids in join order; the first plays X, the second O
    outcome : Outcome
        Whether the game is undecided, won by a mark, or drawn

    """
    id: str
    board: np.ndarray
    turn_owner: Mark
    participants: List[str]
    outcome: Outcome

    def __init__(self, id: str,
                 participants: Optional[List[str]] = None,
                 board: Optional[np.ndarray] = None,
                 turn_owner: Mark = Mark.X,
                 outcome: Outcome = Outcome.UNDECIDED):
        """Initialize a new session.

        Parameters
        ----------
        id : str
            Room identifier
        participants : List[str], optional
            Initial connection ids. If None, the session starts empty.
        board : np.ndarray, optional
            Initial board. If None, creates an empty board. Must be an array
            of 9 integers.
        turn_owner : Mark, optional
            Mark to move first. Defaults to X.
        outcome : Outcome, optional
            Initial outcome. Defaults to undecided.

        Raises
        ------
        ValueError
            If the board has the wrong shape or there are more than two
            participants

        """
        self.id = id

        if participants is None:
            self.participants = []
        else:
            if len(participants) > 2:
                raise ValueError(f"A session holds at most 2 participants, got {len(participants)}")
            self.participants = list(participants)

        if board is None:
            self.board = empty_board()
        else:
            if board.shape != (BOARD_SIZE,):
                raise ValueError(f"board must be an array of {BOARD_SIZE} integers")
            self.board = board.astype(np.int8)

        self.turn_owner = Mark(turn_owner)
        self.outcome = outcome

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= 2

    def reset(self):
        """Put the board, turn and outcome back to their initial values.

        The board array is refilled in place, participants are untouched.
        """
        self.board.fill(EMPTY)
        self.turn_owner = Mark.X
        self.outcome = Outcome.UNDECIDED

    def board_symbols(self) -> List[Optional[str]]:
        return [cell_symbol(value) for value in self.board.tolist()]

    def snapshot(self) -> dict:
        """Plain-data copy of the broadcastable state."""
        return {
            'board': self.board_symbols(),
            'turnOwner': self.turn_owner.symbol,
            'outcome': self.outcome.value,
        }
