from flask import Blueprint, current_app, jsonify

from beauty_contest.services.games.rules import SPECIAL_RULES, STANDARD_RULE_TEXT

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Beauty Contest game server!'})


@main.route('/api/game/state')
def game_state():
    """
    Returns the full state of the running game.
    """
    lifecycle = current_app.extensions['round_lifecycle']
    return jsonify(lifecycle.snapshot()), 200


@main.route('/api/game/rules')
def game_rules():
    return jsonify({
        'standard': STANDARD_RULE_TEXT,
        'special_rules': [rule.to_dict() for rule in SPECIAL_RULES],
    }), 200
