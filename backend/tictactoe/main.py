from flask import Blueprint, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Tic-tac-toe session server is running. Connect on /ws.'})
