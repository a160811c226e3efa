import logging
from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from truthnode.extensions import db
from truthnode.services.settlement_service import SettlementService

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


@health_bp.route('/ready')
def ready():
    """Database reachability plus the reward outbox backlog."""
    try:
        db.session.execute(text('SELECT 1'))
        outbox = SettlementService().summary()
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        db.session.rollback()
        return jsonify({'status': 'not_ready', 'db': False, 'settlements': None}), 503

    # Failed settlements need an operator but do not stop the service
    return jsonify({
        'status': 'ready',
        'db': True,
        'settlements': outbox,
        'settlements_need_attention': outbox.get('failed', 0) > 0,
    })
