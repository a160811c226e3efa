import hmac
import logging
from functools import wraps
from flask import Blueprint, current_app, jsonify, request
from truthnode import feature_flags
from truthnode.enums import SettlementStatus, parse_enum
from truthnode.errors import TruthNodeError
from truthnode.models.reward import RewardSettlement
from truthnode.routes.auth import error_response
from truthnode.services.settlement_service import SettlementService
from truthnode.services.user_service import PublisherApplicationService
from truthnode.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)
application_service = PublisherApplicationService()
verification_service = VerificationService()


def _presented_admin_key():
    """
    X-Admin-Key wins over Authorization, since bearer tokens on this API are
    normally user session tokens.
    """
    key = (request.headers.get('X-Admin-Key') or '').strip()
    if key:
        return key
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return ''


def require_admin_key(func):
    """Gate moderation and outbox endpoints behind ADMIN_API_KEY."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        configured_key = current_app.config.get('ADMIN_API_KEY')
        if not configured_key:
            return jsonify({'error': 'Admin API is disabled: ADMIN_API_KEY is not configured'}), 503

        presented_key = _presented_admin_key()
        if not presented_key or not hmac.compare_digest(
            presented_key.encode('utf-8'), configured_key.encode('utf-8')
        ):
            logger.warning(f"Rejected admin request to {request.path} from {request.remote_addr}")
            return jsonify({'error': 'Unauthorized'}), 401

        return func(*args, **kwargs)

    return wrapper


@admin_bp.route('/publisher-applications/<int:application_id>', methods=['PATCH'])
@require_admin_key
def decide_application(application_id):
    """Approve or reject a publisher application."""
    data = request.get_json(silent=True) or {}
    if 'status' not in data:
        return jsonify({'error': 'JSON body with "status" required'}), 400

    try:
        application = application_service.decide(application_id, data['status'])
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(application.to_dict())


@admin_bp.route('/articles/<int:article_id>/status', methods=['PUT'])
@require_admin_key
def override_article_status(article_id):
    """Set an article's status directly. No thresholds, no rewards."""
    data = request.get_json(silent=True) or {}
    if 'status' not in data:
        return jsonify({'error': 'JSON body with "status" required'}), 400

    try:
        article = verification_service.override_status(article_id, data['status'])
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(article.to_dict())


@admin_bp.route('/settlements')
@require_admin_key
def list_settlements():
    """Outbox contents, optionally filtered by status."""
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 50, type=int)
    query = RewardSettlement.query

    status = request.args.get('status')
    if status:
        try:
            query = query.filter(RewardSettlement.status == parse_enum(SettlementStatus, status, 'status'))
        except TruthNodeError as e:
            return error_response(e)

    pagination = query.order_by(
        RewardSettlement.id.desc()
    ).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        'settlements': [s.to_dict() for s in pagination.items],
        'total': pagination.total,
        'page': page,
        'summary': SettlementService().summary(),
    })


@admin_bp.route('/settlements/drain', methods=['POST'])
@require_admin_key
def drain_settlements():
    """Settle due outbox rows now instead of waiting for the scheduler."""
    data = request.get_json(silent=True) or {}
    counts = SettlementService().drain(limit=data.get('limit', 50))
    return jsonify(counts)


@admin_bp.route('/settlements/retry', methods=['POST'])
@require_admin_key
def retry_settlements():
    count = SettlementService().retry_failed()
    return jsonify({'requeued': count})


@admin_bp.route('/flags')
@require_admin_key
def list_flags():
    """List all feature flags."""
    return jsonify(feature_flags.all_flags())


@admin_bp.route('/flags/<key>', methods=['PUT'])
@require_admin_key
def toggle_flag(key):
    """Toggle a feature flag at runtime."""
    data = request.get_json(silent=True)
    if data is None or 'value' not in data:
        return jsonify({'error': 'JSON body with "value" (bool) required'}), 400

    if not isinstance(data['value'], bool):
        return jsonify({'error': '"value" must be a boolean'}), 400

    feature_flags.set_flag(key, data['value'])
    return jsonify({'flag': key, 'value': feature_flags.is_enabled(key)})
