from flask import Blueprint, current_app, jsonify, request

from varachess.services import persistence

players = Blueprint('players', __name__)


@players.route('/user', methods=['POST'])
def upsert_user():
    """
    Creates the player on first sight, otherwise refreshes name and last seen.
    """
    data = request.get_json(silent=True) or {}
    identity = data.get('identity') or data.get('wallet')
    display_name = data.get('displayName') or data.get('username')
    if not identity:
        return jsonify({'error': 'identity is required'}), 400

    user = persistence.upsert_user(identity, display_name)
    if user is None:
        return jsonify({'error': 'Could not save user'}), 500
    return jsonify(user.to_dict()), 200


@players.route('/user/<string:identity>', methods=['GET'])
def get_user(identity):
    user = persistence.get_user(identity)
    if not user:
        return jsonify({'error': 'User not found'}), 404
    return jsonify(user.to_dict()), 200


@players.route('/leaderboard', methods=['GET'])
def leaderboard():
    limit = current_app.config.get('LEADERBOARD_LIMIT', 100)
    return jsonify([u.to_dict() for u in persistence.query_leaderboard(limit)]), 200


@players.route('/games/<string:identity>', methods=['GET'])
def game_history(identity):
    """
    Finished games the player took part in, newest first.
    """
    limit = current_app.config.get('HISTORY_LIMIT', 50)
    games = persistence.query_user_games(identity, limit)
    return jsonify([g.to_dict() for g in games]), 200
