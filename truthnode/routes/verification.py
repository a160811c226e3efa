from flask import Blueprint, g, jsonify, request
from truthnode.enums import UserRole
from truthnode.errors import TruthNodeError
from truthnode.routes.auth import error_response, require_user
from truthnode.services.verification_service import VerificationService

verification_bp = Blueprint('verification', __name__)
verification_service = VerificationService()


@verification_bp.route('/evidence', methods=['POST'])
@require_user
def submit_evidence():
    """Attach evidence to an article; the contributor earns tokens by type."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    required = ['article_id', 'type', 'description']
    missing = [f for f in required if f not in data]
    if missing:
        return jsonify({'error': f'Missing fields: {missing}'}), 400

    try:
        evidence = verification_service.submit_evidence(
            article_id=data['article_id'],
            user_id=g.current_user.id,
            evidence_type=data['type'],
            description=data['description'],
            files=data.get('files'),
            ipfs_hash=data.get('ipfs_hash'),
        )
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(evidence.to_dict()), 201


@verification_bp.route('/verifications', methods=['POST'])
@require_user
def submit_verification():
    """Record a publisher/journalist verdict on an article."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    required = ['article_id', 'status']
    missing = [f for f in required if f not in data]
    if missing:
        return jsonify({'error': f'Missing fields: {missing}'}), 400

    try:
        verification = verification_service.record_verification(
            article_id=data['article_id'],
            user_id=g.current_user.id,
            status=data['status'],
            reason=data.get('reason'),
        )
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(verification.to_dict()), 201


@verification_bp.route('/articles/<int:article_id>/score')
def article_score(article_id):
    try:
        score = verification_service.score(article_id)
    except TruthNodeError as e:
        return error_response(e)
    return jsonify({'article_id': article_id, **score.to_dict()})


@verification_bp.route('/articles/<int:article_id>/verify-truth', methods=['POST'])
@require_user
def verify_truth(article_id):
    """Run the score-threshold evaluation for an article."""
    if g.current_user.role is not UserRole.PUBLISHER:
        return jsonify({'error': 'Only publishers can verify article truth'}), 403

    try:
        result = verification_service.evaluate_truth(article_id)
    except TruthNodeError as e:
        return error_response(e)
    return jsonify({'success': True, **result.to_dict()})
