from flask import Blueprint, jsonify
from tictactoe import get_session

games = Blueprint('games', __name__)


@games.route('/state', methods=['GET'])
def get_game_state():
    """
    Returns the full state of the session, the same snapshot a newly
    connected socket receives as 'initial_state'.
    """
    session = get_session()
    with session.lock:
        return jsonify(session.to_dict()), 200
