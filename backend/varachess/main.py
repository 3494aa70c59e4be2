from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Vara Chess game server!'})


@main.route('/api/health')
def health():
    lobby = current_app.extensions['varachess.lobby']
    return jsonify({'status': 'ok', 'online': lobby.online})
