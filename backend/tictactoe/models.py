import threading
from typing import Dict, List, Optional, Tuple

ROLE_X = 'X'
ROLE_O = 'O'
ROLES = (ROLE_X, ROLE_O)  # admission order
EMPTY = ''
DRAW = 'draw'

# Session phases
WAITING = 'waiting'
PLAYING = 'playing'
ENDED = 'ended'
RESETTING = 'resetting'
PHASES = (WAITING, PLAYING, ENDED, RESETTING)

MAX_PARTICIPANTS = 2


def empty_board() -> List[List[str]]:
    return [[EMPTY] * 3 for _ in range(3)]


class Participant:
    def __init__(self, sid: str, name: str, role: Optional[str]):
        self.sid = sid
        self.name = name
        self.role = role

    def to_dict(self):
        return {
            'username': self.name,
            'symbol': self.role,
        }

    def __repr__(self):
        return f"Participant(sid={self.sid!r}, name={self.name!r}, role={self.role!r})"


class Session:
    """The single shared game instance.

    Role bookkeeping lives in two maps: ``participants[sid].role`` and
    ``role_owner[role] -> sid``. They are kept in agreement by
    ``tictactoe.services.games.registry.verify``.
    """

    def __init__(self):
        self.board = empty_board()
        self.participants: Dict[str, Participant] = {}
        self.role_owner: Dict[str, Optional[str]] = {role: None for role in ROLES}
        self.move_count = 0
        self.last_move: Optional[Tuple[int, int]] = None
        self.winner: Optional[str] = None  # 'X', 'O' or 'draw'
        self.winning_line: Optional[List[List[int]]] = None
        self.phase = WAITING
        # Reset protocol guards
        self.is_resetting = False
        self.last_reset_at: Optional[float] = None
        self.reset_generation = 0
        # Drift repairs recorded by registry.verify, drained by the dispatcher
        self.repair_log: List[str] = []
        # Held for the full body of every event handler
        self.lock = threading.RLock()

    def participant_for_role(self, role: str) -> Optional[Participant]:
        sid = self.role_owner.get(role)
        return self.participants.get(sid) if sid else None

    def players_payload(self):
        return {sid: p.to_dict() for sid, p in self.participants.items()}

    def board_payload(self):
        from tictactoe.services.games.board import current_turn
        return {
            'board': [row[:] for row in self.board],
            'nextTurnSymbol': current_turn(self.move_count),
            'lastMove': list(self.last_move) if self.last_move else None,
        }

    def to_dict(self):
        data = self.board_payload()
        data.update({
            'players': self.players_payload(),
            'phase': self.phase,
            'moveCount': self.move_count,
            'winner': self.winner,
            'winningCombo': self.winning_line,
            'isResetting': self.is_resetting,
        })
        return data
