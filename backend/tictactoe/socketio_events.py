from flask import current_app, request
from flask_socketio import emit
from typing import Any, Optional, Tuple
import time

from tictactoe import socketio, get_session
from tictactoe.models import DRAW, EMPTY, ENDED, MAX_PARTICIPANTS, PLAYING, WAITING, Session
from tictactoe.services.games import board as board_rules
from tictactoe.services.games import registry
from tictactoe.services.games import reset as reset_protocol

NAMESPACE = '/ws'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _broadcast(event: str, payload: Any = None) -> None:
    # Fire-and-forget to every connection on the namespace
    if payload is None:
        socketio.emit(event, namespace=NAMESPACE)
    else:
        socketio.emit(event, payload, namespace=NAMESPACE)


def _log_repairs(session: Session) -> None:
    while session.repair_log:
        current_app.logger.warning(f"[verify-repair] {session.repair_log.pop(0)}")


def handle_connect(auth=None):
    session = get_session()
    with session.lock:
        registry.verify(session)
        _log_repairs(session)
        current_app.logger.info(f"[connect] sid={_get_sid()} phase={session.phase}")
        emit('initial_state', session.to_dict())


def handle_sync_state(data=None):
    session = get_session()
    with session.lock:
        emit('initial_state', session.to_dict())


def handle_user_join(data):
    sid = _get_sid()
    name = data.get('username') if isinstance(data, dict) else data
    session = get_session()
    with session.lock:
        if session.is_resetting:
            current_app.logger.info(f"[join-reject] sid={sid} reason=resetting")
            emit('resetting_in_progress', {'action': 'join'})
            return

        result = registry.admit(session, sid, name)
        _log_repairs(session)
        if not result.admitted:
            current_app.logger.info(f"[join-reject] sid={sid} reason={result.reason}")
            if result.reason == registry.FULL:
                emit('game_full')
            elif result.reason == registry.DUPLICATE_NAME:
                emit('username_already_exists')
            else:
                emit('join_rejected', {'reason': result.reason})
            return

        emit('symbol_assigned', result.role)
        if result.rejoined:
            return
        current_app.logger.info(f"[join] sid={sid} role={result.role} players={registry.count(session)}")
        _broadcast('players_list_update', session.players_payload())

        if session.phase == WAITING and registry.count(session) == MAX_PARTICIPANTS:
            session.phase = PLAYING
            current_app.logger.info("[phase] waiting -> playing")
            _broadcast('board_change', session.board_payload())


def _parse_move(data) -> Optional[Tuple[Any, Any, Any]]:
    if not isinstance(data, dict):
        return None
    move = data.get('move')
    if not isinstance(move, dict):
        return None
    return data.get('symbol'), move.get('row'), move.get('col')


def _move_rejection(session: Session, sid: str, parsed) -> Optional[str]:
    """Return why a move must be dropped, or None when it may be applied."""
    if parsed is None:
        return 'malformed'
    symbol, row, col = parsed
    if session.is_resetting:
        return 'resetting'
    if session.phase != PLAYING:
        return f'phase={session.phase}'
    participant = session.participants.get(sid)
    if participant is None:
        return 'not a participant'
    if participant.role != symbol:
        return f'claimed {symbol!r} but holds {participant.role!r}'
    if board_rules.current_turn(session.move_count) != symbol:
        return f'not {symbol} turn'
    if not board_rules.in_bounds(row, col):
        return f'out of bounds row={row!r} col={col!r}'
    if session.board[row - 1][col - 1] != EMPTY:
        return f'cell ({row},{col}) occupied'
    return None


def handle_move_made(data):
    sid = _get_sid()
    session = get_session()
    with session.lock:
        registry.verify(session)
        _log_repairs(session)

        parsed = _parse_move(data)
        reason = _move_rejection(session, sid, parsed)
        if reason:
            current_app.logger.info(f"[move-drop] sid={sid} {reason}")
            return

        symbol, row, col = parsed
        session.board[row - 1][col - 1] = symbol
        session.last_move = (row - 1, col - 1)
        session.move_count += 1
        current_app.logger.info(f"[move] {symbol} at ({row},{col}) move_count={session.move_count}")

        result = board_rules.evaluate(session.board)
        _broadcast('board_change', session.board_payload())
        if not result.is_terminal:
            return

        if result.status == board_rules.WIN:
            winner = session.participant_for_role(result.role)
            winner_name = winner.name if winner else result.role
            message = f"{winner_name} ({result.role}) wins!"
            session.winner = result.role
            session.winning_line = result.line
        else:
            message = "It's a draw!"
            session.winner = DRAW
        session.phase = ENDED
        current_app.logger.info(f"[game-done] winner={session.winner} moves={session.move_count}")
        _broadcast('game_done', {
            'result': session.winner,
            'message': message,
            'winningCombo': result.line,
        })


def _start_reset(session: Session, force: bool, origin: str) -> bool:
    app = current_app._get_current_object()
    cooldown = app.config.get('RESET_COOLDOWN_MS', 2000) / 1000.0
    generation = reset_protocol.announce_reset(session, time.monotonic(), cooldown, force=force)
    if generation is None:
        app.logger.info(f"[reset-drop] origin={origin} debounced")
        return False
    app.logger.info(f"[reset-announce] origin={origin} generation={generation} forced={force}")
    _broadcast('game_resetting', {'settleMs': app.config.get('RESET_SETTLE_MS', 500)})
    reset_protocol.schedule_commit(app, generation, _finish_reset)
    return True


def _finish_reset(generation: int) -> None:
    session = get_session()
    with session.lock:
        if not reset_protocol.commit_reset(session, generation):
            current_app.logger.info(f"[reset-stale] generation={generation} current={session.reset_generation}")
            return
        _log_repairs(session)
        current_app.logger.info(f"[reset-commit] generation={generation} phase={session.phase}")
        _broadcast('game_reset')
        _broadcast('board_change', session.board_payload())
        _broadcast('players_list_update', session.players_payload())


def handle_reset_game(data=None):
    sid = _get_sid()
    session = get_session()
    with session.lock:
        if session.is_resetting:
            emit('resetting_in_progress', {'action': 'reset'})
            return
        if session.phase == WAITING:
            current_app.logger.info(f"[reset-drop] origin={sid} nothing to reset while waiting")
            return
        _start_reset(session, force=False, origin=sid)


def handle_disconnect(reason=None):
    sid = _get_sid()
    session = get_session()
    with session.lock:
        phase_before = session.phase
        participant = registry.remove(session, sid)
        _log_repairs(session)
        if participant is None:
            current_app.logger.info(f"[disconnect] sid={sid} (observer)")
            return
        current_app.logger.info(
            f"[disconnect] sid={sid} name={participant.name} role={participant.role} phase={phase_before}"
        )
        _broadcast('player_disconnected')
        _broadcast('players_list_update', session.players_payload())
        if phase_before in (PLAYING, ENDED):
            _start_reset(session, force=True, origin=sid)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('user_join', handle_user_join, namespace=NAMESPACE)
    socketio.on_event('move_made', handle_move_made, namespace=NAMESPACE)
    socketio.on_event('reset_game', handle_reset_game, namespace=NAMESPACE)
    socketio.on_event('sync_state', handle_sync_state, namespace=NAMESPACE)
