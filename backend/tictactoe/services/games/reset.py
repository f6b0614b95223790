from typing import Callable, Optional

from tictactoe import socketio
from tictactoe.models import MAX_PARTICIPANTS, PLAYING, RESETTING, WAITING, Session, empty_board
from . import registry


def can_reset(session: Session, now: float, cooldown_sec: float) -> bool:
    if session.is_resetting:
        return False
    if session.last_reset_at is not None and now - session.last_reset_at < cooldown_sec:
        return False
    return True


def announce_reset(session: Session, now: float, cooldown_sec: float, force: bool = False) -> Optional[int]:
    """First half of a reset: freeze the session and hand back a generation.

    Returns ``None`` when the request is debounced. ``force`` skips the
    cooldown window (used after a disconnect) but never overlaps a reset
    that is already in flight.
    """
    if session.is_resetting:
        return None
    if not force and not can_reset(session, now, cooldown_sec):
        return None
    session.is_resetting = True
    session.phase = RESETTING
    session.last_reset_at = now
    session.reset_generation += 1
    return session.reset_generation


def commit_reset(session: Session, generation: int) -> bool:
    """Second half of a reset. Role ownership is left untouched."""
    if not session.is_resetting or generation != session.reset_generation:
        return False
    session.board = empty_board()
    session.move_count = 0
    session.last_move = None
    session.winner = None
    session.winning_line = None
    registry.verify(session)
    session.phase = PLAYING if registry.count(session) == MAX_PARTICIPANTS else WAITING
    session.is_resetting = False
    return True


def schedule_commit(app, generation: int, on_commit: Callable[[int], None]) -> None:
    """Run ``on_commit(generation)`` once the settle delay has elapsed.

    - Runs inline in TESTING so socket tests stay deterministic, unless
      ENABLE_RESET_TIMER_IN_TESTS asks for the real background timer
    - Otherwise runs in a Socket.IO background task inside an app context
    """
    delay = max(0, int(app.config.get('RESET_SETTLE_MS', 500))) / 1000.0

    def _worker(gen: int, wait: float):
        if wait:
            socketio.sleep(wait)
        with app.app_context():
            app.logger.info(f"[reset-timer] generation={gen} fired after {wait:.3f}s")
            on_commit(gen)

    if app.config.get('TESTING') and not app.config.get('ENABLE_RESET_TIMER_IN_TESTS'):
        _worker(generation, delay)
    else:
        socketio.start_background_task(_worker, generation, delay)
