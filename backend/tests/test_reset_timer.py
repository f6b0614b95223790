import time

import pytest

from tictactoe import create_app, get_session, socketio
from tictactoe.models import PLAYING, RESETTING, WAITING
from tictactoe.socketio_events import NAMESPACE
import conftest


class TimerConfig(conftest.TestConfig):
    ENABLE_RESET_TIMER_IN_TESTS = True
    RESET_SETTLE_MS = 200


@pytest.fixture()
def flask_app():
    application = create_app(TimerConfig)
    with application.app_context():
        yield application


def received(test_client):
    return test_client.get_received(NAMESPACE)


def names(packets):
    return [pkt['name'] for pkt in packets]


def wait_for(test_client, event, timeout=3.0):
    """Collect packets until ``event`` shows up or the deadline passes."""
    collected = []
    deadline = time.time() + timeout
    while time.time() < deadline:
        collected.extend(received(test_client))
        if event in names(collected):
            return collected
        socketio.sleep(0.05)
    return collected


def start_game(make_client):
    alice, bob = make_client(), make_client()
    alice.emit('user_join', 'Alice', namespace=NAMESPACE)
    bob.emit('user_join', 'Bob', namespace=NAMESPACE)
    received(alice)
    received(bob)
    return alice, bob


def test_board_stays_dirty_until_delayed_commit(flask_app, make_client):
    alice, bob = start_game(make_client)
    alice.emit('move_made', {'symbol': 'X', 'move': {'row': 1, 'col': 1}}, namespace=NAMESPACE)
    received(bob)
    session = get_session(flask_app)

    alice.emit('reset_game', namespace=NAMESPACE)
    assert session.phase == RESETTING
    assert session.is_resetting
    assert session.board[0][0] == 'X'
    assert names(received(bob)) == ['game_resetting']

    # Everything that arrives inside the settle window is turned away
    cara = make_client()
    received(cara)
    cara.emit('user_join', 'Cara', namespace=NAMESPACE)
    cara_packets = received(cara)
    assert names(cara_packets) == ['resetting_in_progress']
    assert cara_packets[0]['args'][0] == {'action': 'join'}

    bob.emit('reset_game', namespace=NAMESPACE)
    assert names(received(bob)) == ['resetting_in_progress']
    bob.emit('move_made', {'symbol': 'O', 'move': {'row': 2, 'col': 2}}, namespace=NAMESPACE)
    assert session.move_count == 1
    assert session.reset_generation == 1

    packets = wait_for(bob, 'players_list_update')
    assert names(packets) == ['game_reset', 'board_change', 'players_list_update']
    board = packets[1]['args'][0]
    assert board['board'] == [['', '', ''], ['', '', ''], ['', '', '']]
    assert board['nextTurnSymbol'] == 'X'

    assert session.phase == PLAYING
    assert not session.is_resetting
    assert session.move_count == 0
    assert sorted((p.name, p.role) for p in session.participants.values()) == [('Alice', 'X'), ('Bob', 'O')]


def test_disconnect_inside_cooldown_still_resets_to_waiting(flask_app, make_client):
    alice, bob = start_game(make_client)
    alice.emit('move_made', {'symbol': 'X', 'move': {'row': 1, 'col': 1}}, namespace=NAMESPACE)
    alice.emit('reset_game', namespace=NAMESPACE)
    wait_for(bob, 'players_list_update')
    session = get_session(flask_app)
    assert session.phase == PLAYING

    alice.emit('move_made', {'symbol': 'X', 'move': {'row': 3, 'col': 3}}, namespace=NAMESPACE)
    received(bob)
    alice.disconnect(namespace=NAMESPACE)
    assert session.phase == RESETTING
    assert session.board[2][2] == 'X'

    packets = wait_for(bob, 'game_reset')
    assert 'game_resetting' in names(packets)
    assert session.phase == WAITING
    assert session.board[2][2] == ''
    bob_sid = next(iter(session.participants))
    assert session.role_owner == {'X': None, 'O': bob_sid}
