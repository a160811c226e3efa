from flask import Blueprint, g, jsonify, request
from truthnode.errors import TruthNodeError
from truthnode.routes.auth import error_response, require_user
from truthnode.services.notification_service import get_publisher
from truthnode.services.stats_service import StatsService
from truthnode.services.user_service import PublisherApplicationService

community_bp = Blueprint('community', __name__)
application_service = PublisherApplicationService()
stats_service = StatsService()


@community_bp.route('/publisher-applications', methods=['POST'])
@require_user
def apply_for_publisher():
    """Community users apply to become publishers."""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    try:
        application = application_service.apply(g.current_user.id, data)
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(application.to_dict()), 201


@community_bp.route('/stats')
def stats():
    return jsonify(stats_service.get_stats())


@community_bp.route('/events/recent')
def recent_events():
    """Poll notification events newer than ?since=<seq>."""
    since = request.args.get('since', 0, type=int)
    limit = request.args.get('limit', type=int)
    return jsonify({'events': get_publisher().recent(since=since, limit=limit)})
