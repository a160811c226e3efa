from flask import Blueprint, g, jsonify, request
from truthnode.errors import TruthNodeError
from truthnode.routes.auth import error_response, require_user, user_service

users_bp = Blueprint('users', __name__)


@users_bp.route('/register', methods=['POST'])
def register():
    """Create an account and return a session token."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    try:
        user = user_service.register(data)
    except TruthNodeError as e:
        return error_response(e)

    token = user_service.issue_token(user)
    return jsonify({'token': token, 'user': user.to_dict()}), 201


@users_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')
    if not username or not password:
        return jsonify({'error': 'Username and password are required'}), 400

    token, user = user_service.authenticate(username, password)
    if not token:
        return jsonify({'error': 'Invalid credentials'}), 401
    return jsonify({'token': token, 'user': user.to_dict()})


@users_bp.route('/users/me')
@require_user
def me():
    return jsonify(g.current_user.to_dict())


@users_bp.route('/users/<int:user_id>')
def get_user(user_id):
    try:
        user = user_service.get_user(user_id)
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(user.to_public_dict())


@users_bp.route('/top-verifiers')
def top_verifiers():
    limit = request.args.get('limit', 3, type=int)
    return jsonify([u.to_public_dict() for u in user_service.top_verifiers(limit)])


@users_bp.route('/ens/verify', methods=['POST'])
@require_user
def verify_ens():
    """Attach a signed ENS name to the current user (no on-chain resolution)."""
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.link_ens_address(
            g.current_user.id,
            data.get('ens_name'),
            data.get('signature'),
            data.get('message'),
        )
    except TruthNodeError as e:
        return error_response(e)

    return jsonify({
        'success': True,
        'message': 'ENS verification successful',
        'ens_address': user.ens_address,
    })
