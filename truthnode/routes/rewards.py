from flask import Blueprint, g, jsonify, request
from truthnode.enums import UserRole
from truthnode.errors import TruthNodeError
from truthnode.routes.auth import error_response, require_user
from truthnode.services.reward_ledger import RewardLedger

rewards_bp = Blueprint('rewards', __name__)
ledger = RewardLedger()


@rewards_bp.route('/rewards/award', methods=['POST'])
@require_user
def award_tokens():
    """Manual award by a publisher. Settlement happens through the outbox."""
    if g.current_user.role is not UserRole.PUBLISHER:
        return jsonify({'error': 'Only publishers can award tokens'}), 403

    data = request.get_json(silent=True) or {}
    user_id = data.get('user_id')
    amount = data.get('amount')
    reason = data.get('reason')
    if not user_id or not amount or not reason:
        return jsonify({'error': 'User ID, amount, and reason are required'}), 400

    try:
        award = ledger.award(user_id, amount, reason)
    except TruthNodeError as e:
        return error_response(e)

    return jsonify({
        'success': True,
        'message': f'{amount} tokens awarded to user {user_id}',
        'award': award.to_dict(),
    })


@rewards_bp.route('/transactions/history')
@require_user
def transaction_history():
    awards = ledger.get_awards(g.current_user.id)
    return jsonify({
        'token_awards': [a.to_dict() for a in awards],
        'total_awarded': sum(a.amount for a in awards),
        'balance': g.current_user.truth_tokens,
    })
