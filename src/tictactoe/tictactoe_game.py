"""Turn authority for tic-tac-toe sessions.

Validates a move against a session, applies it in place, and works out
whether the game has ended.  Nothing here knows about connections or rooms.

"""
from typing import Optional
import numpy as np
from .board_state import Session, Outcome, Mark, EMPTY, BOARD_SIZE, WINNING_LINES


class InvalidMove(ValueError):
    """Base exception for any rejected move.

    Callers that only care whether a move was accepted can catch this;
    the subclasses say which precondition failed.

    Attributes
    ----------
    cell_index
        The index that was requested, exactly as received
    """

    reason = "Invalid move or game already won"

    def __init__(self, cell_index, message: Optional[str] = None):
        self.cell_index = cell_index
        super().__init__(message or self.reason)


class CellOutOfRange(InvalidMove):
    def __init__(self, cell_index):
        super().__init__(cell_index, f"Cell index {cell_index!r} is not in 0..{BOARD_SIZE - 1}")


class CellOccupied(InvalidMove):
    def __init__(self, cell_index):
        super().__init__(cell_index, f"Cell {cell_index} is already taken")


class GameOver(InvalidMove):
    def __init__(self, cell_index, outcome: Outcome):
        self.outcome = outcome
        super().__init__(cell_index, f"Game is already decided ({outcome.value})")


def _is_cell_index(value) -> bool:
    # bool is an int subclass but never a meaningful cell
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, np.integer)) and 0 <= value < BOARD_SIZE


def check_outcome(board: np.ndarray) -> Outcome:
    """Classify a board as won, drawn or still undecided.

    Parameters
    ----------
    board : np.ndarray
        Array of 9 cell values

    Returns
    -------
    Outcome
        A win for the mark filling the first completed triple in
        WINNING_LINES order, DRAW if no cell is empty, otherwise UNDECIDED

    """
    lines = board[WINNING_LINES]
    completed = (lines[:, 0] != EMPTY) & (lines == lines[:, :1]).all(axis=1)
    winning = np.flatnonzero(completed)
    if winning.size > 0:
        return Outcome.win_for(Mark(int(lines[winning[0], 0])))
    if not (board == EMPTY).any():
        return Outcome.DRAW
    return Outcome.UNDECIDED


def apply_move(session: Session, cell_index, requester: Optional[str] = None) -> dict:
    """Validate and apply a move for whoever owns the turn.

    The preconditions are checked in order and the first failure wins:
    the index must address a cell, the cell must be empty, and the game
    must be undecided.  A rejected move never touches the session.

    The turn passes to the other mark after every accepted move, including
    the one that ends the game.

    Parameters
    ----------
    session : Session
        The session to mutate
    cell_index
        Requested cell, 0..8 in row-major order
    requester : str, optional
        Connection id of the caller; not used to gate the move

    Returns
    -------
    dict
        The session snapshot after the move

    Raises
    ------
    CellOutOfRange, CellOccupied, GameOver
        All subclasses of InvalidMove

    """
    if not _is_cell_index(cell_index):
        raise CellOutOfRange(cell_index)
    if session.board[cell_index] != EMPTY:
        raise CellOccupied(cell_index)
    if session.outcome is not Outcome.UNDECIDED:
        raise GameOver(cell_index, session.outcome)

    session.board[cell_index] = session.turn_owner
    session.outcome = check_outcome(session.board)
    session.turn_owner = session.turn_owner.other
    return session.snapshot()
